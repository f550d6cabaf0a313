# core/services/storage.py
import logging
import time
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Optional

from PIL import Image, UnidentifiedImageError

from core.config import settings

logger = logging.getLogger(__name__)

BOOKS_BUCKET = "books"
AVATARS_BUCKET = "avatars"
BUCKETS = (BOOKS_BUCKET, AVATARS_BUCKET)

MAX_UPLOAD_BYTES = 5 * 1024 * 1024
MAX_IMAGE_HEIGHT = 800


def read_upload(stream: BinaryIO) -> bytes:
    """Read an uploaded file, stopping one byte past the size limit.

    The extra byte is enough for save_image to reject the upload as too large.
    """
    return stream.read(MAX_UPLOAD_BYTES + 1)


class ImageStorage:
    """Local-disk object storage for book covers and avatars.

    Files live under STORAGE_DIR/<bucket>/<path> and are served by the API
    at /storage/<bucket>/<path>.
    """

    def __init__(self, base_dir: Optional[str] = None, public_base_url: Optional[str] = None):
        self.base_dir = Path(base_dir or settings.storage_dir)
        self.public_base_url = (public_base_url or settings.public_base_url).rstrip('/')

    def _bucket_dir(self, bucket: str) -> Path:
        if bucket not in BUCKETS:
            raise ValueError(f"Unknown storage bucket '{bucket}'")
        directory = self.base_dir / bucket
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def _process_image(self, image_data: bytes, max_height: int = MAX_IMAGE_HEIGHT) -> bytes:
        """Convert an upload to JPEG and scale it down if it is too tall.

        Raises:
            ValueError: If the data is not a readable image
        """
        try:
            img = Image.open(BytesIO(image_data))
            img.load()
        except (UnidentifiedImageError, OSError):
            raise ValueError("Uploaded file is not a valid image")

        # Convert to RGB if necessary (e.g., if PNG with transparency)
        if img.mode != 'RGB':
            img = img.convert('RGB')

        if img.height > max_height:
            ratio = max_height / img.height
            new_width = max(1, int(img.width * ratio))
            img = img.resize((new_width, max_height), Image.Resampling.LANCZOS)

        output = BytesIO()
        img.save(output, format='JPEG', quality=85, optimize=True)
        return output.getvalue()

    def save_image(self, bucket: str, path: str, image_data: bytes) -> str:
        """Store an image and return its public URL.

        Raises:
            ValueError: If the file is empty, too large or not an image
        """
        if not image_data:
            raise ValueError("Uploaded file is empty")
        if len(image_data) > MAX_UPLOAD_BYTES:
            raise ValueError("Image must be 5 MB or smaller")

        processed = self._process_image(image_data)
        target = self._bucket_dir(bucket) / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(processed)
        logger.info("Stored %s/%s (%d bytes)", bucket, path, len(processed))
        return self.public_url(bucket, path)

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.public_base_url}/storage/{bucket}/{path}"

    def save_book_cover(self, book_id: str, image_data: bytes) -> str:
        return self.save_image(BOOKS_BUCKET, f"book-covers/{book_id}-{int(time.time() * 1000)}.jpg", image_data)

    def save_avatar(self, user_id: str, image_data: bytes) -> str:
        return self.save_image(AVATARS_BUCKET, f"{user_id}-{int(time.time() * 1000)}.jpg", image_data)
