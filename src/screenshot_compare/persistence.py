"""Filesystem persistence for screenshot records, images, and the diff cache.

Every write goes to a temporary file in the destination directory which is
then renamed into place, so readers never observe a half-written file and
concurrent writers of identical content cannot corrupt each other.

Blocking file I/O is dispatched via ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from screenshot_compare.cache import DiffCache
from screenshot_compare.models.screenshot import Screenshot

logger = logging.getLogger(__name__)


def _write_atomic(path: Path, data: bytes) -> None:
    """Write *data* to *path* through a temp file and ``os.replace``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _write_if_absent(path: Path, data: bytes) -> bool:
    if path.exists():
        return False
    _write_atomic(path, data)
    return True


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------


async def write_screenshot_image(path: Path, data: bytes) -> bool:
    """Write image *data* to *path* unless a file is already there.

    Returns ``True`` if this call performed the write.
    """
    written = await asyncio.to_thread(_write_if_absent, Path(path), data)
    if written:
        logger.debug("Wrote image %s (%d bytes)", path, len(data))
    return written


# ---------------------------------------------------------------------------
# Screenshot records
# ---------------------------------------------------------------------------


async def write_screenshot_data(data_dir: Path, screenshot: Screenshot) -> Path:
    """Persist *screenshot* as ``<data_dir>/<id>.json`` and return the path."""
    path = Path(data_dir) / f"{screenshot.id}.json"
    payload = json.dumps(
        screenshot.model_dump(mode="json", by_alias=True, exclude_none=True),
        indent=2,
    )
    await asyncio.to_thread(_write_atomic, path, payload.encode("utf-8"))
    logger.debug("Wrote screenshot record %s", path)
    return path


def _read_records(data_dir: Path) -> list[Screenshot]:
    records: list[Screenshot] = []
    if not data_dir.is_dir():
        return records
    for path in sorted(data_dir.glob("*.json")):
        try:
            records.append(Screenshot.model_validate_json(path.read_bytes()))
        except ValidationError as exc:
            logger.warning("Skipping invalid screenshot record %s: %s", path, exc)
    return records


async def read_screenshot_data(data_dir: Path) -> list[Screenshot]:
    """Load every screenshot record in *data_dir*.

    A missing directory yields an empty list.  Files that are not valid
    records are logged and skipped.
    """
    return await asyncio.to_thread(_read_records, Path(data_dir))


async def load_master_screenshots(data_dir: Path) -> dict[str, str]:
    """Return the ``id -> image`` lookup of a previous master build."""
    records = await read_screenshot_data(data_dir)
    masters = {record.id: record.image for record in records}
    logger.info("Loaded %d master screenshots from %s", len(masters), data_dir)
    return masters


# ---------------------------------------------------------------------------
# Diff cache
# ---------------------------------------------------------------------------


def _read_cache(path: Path) -> DiffCache:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return DiffCache()
    except (OSError, ValueError) as exc:
        logger.warning("Failed to load diff cache %s: %s. Starting empty.", path, exc)
        return DiffCache()
    if not isinstance(raw, dict):
        logger.warning("Diff cache %s is not a JSON object. Starting empty.", path)
        return DiffCache()
    return DiffCache.from_mapping(raw)


async def read_cache(path: Path) -> DiffCache:
    """Load a diff cache written by :func:`write_cache`.

    A missing or unreadable file yields an empty cache.
    """
    return await asyncio.to_thread(_read_cache, Path(path))


async def write_cache(path: Path, cache: DiffCache) -> None:
    """Persist *cache* as a JSON object of key -> count."""
    payload = json.dumps(cache.to_dict(), indent=2, sort_keys=True)
    await asyncio.to_thread(_write_atomic, Path(path), payload.encode("utf-8"))
    logger.debug("Wrote diff cache %s (%d entries)", path, len(cache))
