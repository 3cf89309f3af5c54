"""Content-addressable storage of screenshot images."""

from __future__ import annotations

import logging
from pathlib import Path

from screenshot_compare.identity import compute_image_hash
from screenshot_compare.persistence import write_screenshot_image

logger = logging.getLogger(__name__)

IMAGE_EXTENSION: str = ".png"


def image_filename(data: bytes) -> str:
    """Return the content-addressed filename for *data*."""
    return f"{compute_image_hash(data)}{IMAGE_EXTENSION}"


class ImageStore:
    """Stores screenshot bytes under ``<images_dir>/<md5>.png``.

    Identical bytes always map to the same name, so re-capturing an
    unchanged screen never creates a second file.
    """

    def __init__(self, images_dir: Path) -> None:
        self._images_dir = Path(images_dir)

    @property
    def images_dir(self) -> Path:
        return self._images_dir

    def path_for(self, filename: str) -> Path:
        """Absolute path of a stored image."""
        return (self._images_dir / filename).absolute()

    async def store(self, data: bytes) -> str:
        """Persist *data* if not already stored and return its filename.

        Raises:
            OSError: If the image could not be written.
        """
        filename = image_filename(data)
        written = await write_screenshot_image(self._images_dir / filename, data)
        if not written:
            logger.debug("Image %s already stored", filename)
        return filename
