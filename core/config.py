# core/config.py
import os
from dataclasses import dataclass, field
from typing import List


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    """Runtime settings read from the environment.

    Every value has a default so the API and the CLI start with no
    environment at all (a local SQLite file and a local storage folder).
    """
    database_url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///bookshare.db"))
    storage_dir: str = field(default_factory=lambda: os.getenv("STORAGE_DIR", "data/storage"))
    public_base_url: str = field(default_factory=lambda: os.getenv("PUBLIC_BASE_URL", "http://localhost:8000"))
    google_books_api_url: str = field(
        default_factory=lambda: os.getenv("GOOGLE_BOOKS_API_URL", "https://www.googleapis.com/books/v1")
    )
    google_books_api_key: str | None = field(default_factory=lambda: os.getenv("GOOGLE_BOOKS_API_KEY") or None)
    http_timeout: float = field(default_factory=lambda: float(os.getenv("HTTP_TIMEOUT", "10")))
    session_ttl_days: int = field(default_factory=lambda: int(os.getenv("SESSION_TTL_DAYS", "30")))
    due_soon_days: int = field(default_factory=lambda: int(os.getenv("DUE_SOON_DAYS", "1")))
    cors_origins: List[str] = field(
        default_factory=lambda: _split_csv(
            os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:4173,http://127.0.0.1:5173")
        )
    )
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


settings = Settings()
