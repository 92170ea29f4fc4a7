from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from .config import IMAGE_URL_PREFIX, UPLOAD_DIR

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageUpload:
    filename: str
    content_type: str
    data: bytes

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")


class ImageStorageError(RuntimeError):
    pass


class RoomImageStore:
    """Room images kept as files named ``<uuid4>.<ext>`` under one directory."""

    def __init__(self, base_dir: str | Path = UPLOAD_DIR) -> None:
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def save(self, upload: ImageUpload) -> str:
        suffix = Path(upload.filename).suffix
        if "/" in suffix or "\\" in suffix:
            raise ValueError(f"Invalid image file name: {upload.filename}")
        extension = suffix[1:] or "bin"
        file_name = f"{uuid4()}.{extension}"
        try:
            (self.base_dir / file_name).write_bytes(upload.data)
        except OSError as error:
            raise ImageStorageError(f"Failed to store room image: {file_name}") from error
        return f"{IMAGE_URL_PREFIX}{file_name}"

    def path_for(self, image_url: str) -> Path:
        if not image_url.startswith(IMAGE_URL_PREFIX):
            raise ValueError(f"Not a room image url: {image_url}")
        file_name = image_url[len(IMAGE_URL_PREFIX) :]
        if not file_name or "/" in file_name or "\\" in file_name or file_name in {".", ".."}:
            raise ValueError(f"Not a room image url: {image_url}")
        return self.base_dir / file_name

    def release(self, image_url: str | None) -> bool:
        """Delete the blob behind ``image_url``; failures are logged, not raised."""
        if not image_url:
            return False
        try:
            self.path_for(image_url).unlink()
        except (OSError, ValueError) as error:
            logger.error("Error deleting room image %s: %s", image_url, error)
            return False
        return True
