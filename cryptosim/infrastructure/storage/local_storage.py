"""
Adapter: local disk image storage.

Files land in ``<root>/<folder>/<uuid><ext>`` and are served by the
``/uploads`` static mount.
"""

import logging
import uuid
from pathlib import Path

from cryptosim.domain.storage import ImageStorage, image_extension, validate_image

logger = logging.getLogger(__name__)


class LocalImageStorage(ImageStorage):
    """Writes validated images to a directory on the local filesystem."""

    def __init__(self, root: str, public_base_url: str, max_bytes: int) -> None:
        self._root = Path(root)
        self._public_base_url = public_base_url.rstrip("/")
        self._max_bytes = max_bytes

    def save(self, folder: str, filename: str, content_type: str, data: bytes) -> str:
        validate_image(content_type, len(data), self._max_bytes)
        name = f"{uuid.uuid4()}{image_extension(filename, content_type)}"
        target_dir = self._root / folder
        target_dir.mkdir(parents=True, exist_ok=True)
        (target_dir / name).write_bytes(data)
        logger.info("Stored upload folder=%s name=%s size=%d", folder, name, len(data))
        return f"{self._public_base_url}/uploads/{folder}/{name}"
