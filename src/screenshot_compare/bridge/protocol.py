"""Worker side of the comparison channel.

A worker script reads one JSON job line from stdin and writes one JSON reply
line to stdout: either the mismatched pixel count as a bare number, or an
object ``{"error": "<message>"}``.  A minimal worker looks like::

    import sys
    from screenshot_compare.bridge.protocol import serve

    def count_mismatches(job):
        ...  # compare job.image_a_path and job.image_b_path
        return mismatched

    if __name__ == "__main__":
        sys.exit(serve(count_mismatches))
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Callable, TextIO

from pydantic import ValidationError

from screenshot_compare.config import configure_logging, get_settings
from screenshot_compare.models.screenshot import PixelMatchInput

logger = logging.getLogger(__name__)


def read_job(stream: TextIO) -> PixelMatchInput:
    """Read and validate one job line from *stream*.

    Raises:
        EOFError: If the stream closed before a job arrived.
        pydantic.ValidationError: If the line is not a valid job.
    """
    line = stream.readline()
    if not line.strip():
        raise EOFError("no job received")
    return PixelMatchInput.model_validate_json(line)


def _send(payload: object, stream: TextIO) -> None:
    stream.write(json.dumps(payload) + "\n")
    stream.flush()


def _checked_count(count: object) -> int:
    valid = (
        not isinstance(count, bool)
        and isinstance(count, (int, float))
        and (not isinstance(count, float) or count.is_integer())
        and count >= 0
    )
    if not valid:
        raise ValueError(f"invalid mismatch count: {count!r}")
    return int(count)


def send_result(count: int, stream: TextIO) -> None:
    """Reply with a mismatched pixel count.

    Raises:
        ValueError: If *count* is not a non-negative whole number.
    """
    _send(_checked_count(count), stream)


def send_error(message: str, stream: TextIO) -> None:
    """Reply with a failure the parent will raise as ``WorkerError``."""
    _send({"error": message}, stream)


def serve(
    handler: Callable[[PixelMatchInput], int],
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> int:
    """Answer a single job with *handler* and return a process exit code."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    configure_logging(get_settings(), stream=sys.stderr)

    try:
        job = read_job(stdin)
    except (EOFError, ValidationError) as exc:
        logger.error("Invalid comparison job: %s", exc)
        send_error(f"invalid job: {exc}", stdout)
        return 2

    try:
        count = handler(job)
    except Exception as exc:
        logger.exception("Comparison of %s and %s failed", job.image_a_path, job.image_b_path)
        send_error(f"{type(exc).__name__}: {exc}", stdout)
        return 1

    try:
        count = _checked_count(count)
    except ValueError as exc:
        logger.error("Handler returned %s", exc)
        send_error(f"handler returned {exc}", stdout)
        return 1

    send_result(count, stdout)
    return 0
