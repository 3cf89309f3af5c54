"""Deterministic identities for screenshots, images, and comparisons.

MD5 is used throughout as a content identity, not a security boundary.
Values are rendered in a fixed textual form before hashing so that ids and
cache keys stay stable across processes and runs:

* booleans render as ``true`` / ``false``
* integral floats render without a fraction (``1.0`` -> ``1``)
* a missing user agent renders as the empty string
* other floats use Python's ``str`` (``1e-07``, ``0.1``)

Records written by tooling that renders a missing user agent as
``undefined``, or small floats as ``1e-7``, hash to different ids and cache
keys, so masters from such a build are not found and must be re-recorded.
"""

from __future__ import annotations

import hashlib

from screenshot_compare.errors import InvalidInputError
from screenshot_compare.models.emulate import EmulateConfig

SCREENSHOT_ID_LENGTH: int = 8
CACHE_KEY_LENGTH: int = 10


def _fmt(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def compute_image_hash(data: bytes) -> str:
    """Return the full hex MD5 digest of *data*."""
    return hashlib.md5(data).hexdigest()


def compute_screenshot_id(description: str, emulate_config: EmulateConfig) -> str:
    """Derive the stable id of a screenshot from its description and emulation.

    ``is_landscape`` is not part of the hash: ids of existing master builds
    were computed without it.

    Raises:
        InvalidInputError: If *description* is not a non-blank string.
    """
    if not isinstance(description, str) or not description.strip():
        raise InvalidInputError("invalid test description")

    digest = hashlib.md5()
    digest.update(f"{description}:".encode())
    digest.update(f"{_fmt(emulate_config.user_agent)}:".encode())

    viewport = emulate_config.viewport
    if viewport is not None:
        for value in (
            viewport.width,
            viewport.height,
            viewport.device_scale_factor,
            viewport.has_touch,
            viewport.is_mobile,
        ):
            digest.update(f"{_fmt(value)}:".encode())

    return digest.hexdigest()[:SCREENSHOT_ID_LENGTH].lower()


def compute_cache_key(image_a: str, image_b: str, threshold: float) -> str:
    """Derive the cache key of comparing *image_a* against *image_b*.

    The key is positional: swapping the two images yields a different key.
    """
    digest = hashlib.md5(f"{image_a}:{image_b}:{_fmt(threshold)}".encode())
    return digest.hexdigest()[:CACHE_KEY_LENGTH]
