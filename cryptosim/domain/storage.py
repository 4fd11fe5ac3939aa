"""
Port and rules for uploaded images (avatars, ID cards).
"""

from abc import ABC, abstractmethod
from pathlib import PurePath

from cryptosim.domain.errors import InvalidUploadError

ALLOWED_IMAGE_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/gif"})
DEFAULT_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
}


def validate_image(content_type: str, size: int, max_bytes: int) -> None:
    """Reject anything that is not a jpeg/png/gif image within ``max_bytes``."""
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise InvalidUploadError(
            f"Unsupported file type {content_type!r}; allowed: jpg, jpeg, png, gif"
        )
    if size > max_bytes:
        raise InvalidUploadError(
            f"File too large: {size} bytes exceeds {max_bytes}", too_large=True
        )


def image_extension(filename: str, content_type: str) -> str:
    """Keep the original extension when it is an image one."""
    suffix = PurePath(filename or "").suffix.lower()
    if suffix in {".jpg", ".jpeg", ".png", ".gif"}:
        return suffix
    return DEFAULT_EXTENSIONS[content_type]


class ImageStorage(ABC):
    """Port for storing images and handing back their public URL."""

    @abstractmethod
    def save(self, folder: str, filename: str, content_type: str, data: bytes) -> str:
        """Validate and persist an image; return its public URL.

        Raises:
            InvalidUploadError: If the type or size is not accepted.
        """
        raise NotImplementedError
