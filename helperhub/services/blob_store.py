import os
from pathlib import Path

import aiofiles
from dotenv import load_dotenv

from helperhub.utils.exceptions import ExceptionContext, ValidationFailedError
from helperhub.utils.logging_config import get_logger

logger = get_logger(__name__)

load_dotenv()

UPLOAD_ROOT = os.getenv("UPLOAD_ROOT", "uploads")
MEDIA_URL_PREFIX = os.getenv("MEDIA_URL_PREFIX", "/media")
FOLDER_PROFILE_IMAGES = "profile_images"
MAX_IMAGE_BYTES = 5 * 1024 * 1024
CHUNK_SIZE = 1024 * 1024


class BlobStore:
    """Opaque blob storage on the local filesystem; one object per key, overwritten on re-upload"""

    def __init__(self, root: str = UPLOAD_ROOT, url_prefix: str = MEDIA_URL_PREFIX):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def setup(self) -> None:
        (self.root / FOLDER_PROFILE_IMAGES).mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        parts = [p for p in key.split("/") if p]
        if not parts or any(p in (".", "..") for p in parts):
            raise ValidationFailedError("Invalid blob key", field="key", value=key)
        return self.root.joinpath(*parts)

    def url_for(self, key: str) -> str:
        return f"{self.url_prefix}/{key.strip('/')}"

    async def upload(self, key: str, data: bytes) -> str:
        """Write ``data`` under ``key`` and return its URL reference."""
        path = self._path_for(key)
        with ExceptionContext("blob_upload", logger, failure_message="Failed to upload file. Please try again.", key=key):
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as out_file:
                for start in range(0, len(data), CHUNK_SIZE):
                    await out_file.write(data[start:start + CHUNK_SIZE])

        logger.info(f"Stored blob {key} ({len(data)} bytes)")
        return self.url_for(key)


def profile_image_key(user_id: str) -> str:
    return f"{FOLDER_PROFILE_IMAGES}/{user_id}"


blob_store = BlobStore()
