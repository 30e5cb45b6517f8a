"""Local storage for uploaded post images."""

import logging
import uuid
from pathlib import Path

from feedboard.errors import ValidationError, violation

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpeg",
    "image/jpg": ".jpg",
    "image/png": ".png",
}


class ImageStore:
    """Store image uploads under random names and release them on request.

    References handed out look like ``images/<name>`` and are what posts keep
    in ``image_url``; the same prefix is used to serve them statically.
    """

    def __init__(
        self,
        base_dir: str | Path,
        url_prefix: str = "images",
        max_bytes: int = 10 * 1024 * 1024,
    ):
        self.base_dir = Path(base_dir)
        self.url_prefix = url_prefix.strip("/")
        self.max_bytes = max_bytes

    def store(self, data: bytes, content_type: str | None) -> str | None:
        """Write an upload and return its reference.

        Returns None when there is nothing to store or the type is not
        allowed. Rejection is not an error.

        Raises:
            ValidationError: the upload is larger than ``max_bytes``.
        """
        if not data or content_type not in ALLOWED_IMAGE_TYPES:
            logger.debug(f"Ignoring upload with content type {content_type!r}")
            return None
        if len(data) > self.max_bytes:
            raise ValidationError(
                [violation("image", f"File too large. Maximum size is {self.max_bytes} bytes.")]
            )

        self.base_dir.mkdir(parents=True, exist_ok=True)
        filename = f"{uuid.uuid4().hex}{ALLOWED_IMAGE_TYPES[content_type]}"
        (self.base_dir / filename).write_bytes(data)
        logger.debug(f"Stored image {filename} ({len(data)} bytes)")
        return f"{self.url_prefix}/{filename}"

    def _resolve(self, reference: str) -> Path | None:
        prefix = f"{self.url_prefix}/"
        if not reference.startswith(prefix):
            return None
        name = reference[len(prefix) :]
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            return None
        return self.base_dir / name

    def release(self, reference: str | None) -> bool:
        """Delete a stored image. Best-effort: failures are logged, never raised."""
        if not reference:
            return False
        path = self._resolve(reference)
        if path is None:
            logger.warning(f"Refusing to release image outside store: {reference!r}")
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning(f"Image already gone: {reference}")
            return False
        except OSError as e:
            logger.warning(f"Failed to release image {reference}: {e}")
            return False
        logger.debug(f"Released image {reference}")
        return True
