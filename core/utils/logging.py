# core/utils/logging.py
import logging
from typing import Optional

from core.config import settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging for the API or CLI process.

    Args:
        level: Level name such as "INFO" or "DEBUG". Defaults to LOG_LEVEL.
    """
    level_name = (level or settings.log_level).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
    logging.getLogger().setLevel(getattr(logging, level_name, logging.INFO))
