"""
Build version helpers.

The bucket version is the build timestamp (milliseconds since the epoch),
stamped once per deployment. A new stamp means new bucket names, which is
what invalidates every cache on deploy.
"""

import logging
import time
from pathlib import Path

logger = logging.getLogger(__name__)

BUILD_PLACEHOLDER = "__BUILD_TIMESTAMP__"


def build_timestamp_version(now: float | None = None) -> str:
    """Milliseconds since the epoch, as a string."""
    ts = time.time() if now is None else now
    return str(int(ts * 1000))


def stamp_placeholder(path, version: str, placeholder: str = BUILD_PLACEHOLDER) -> int:
    """Replace *placeholder* in the file at *path*. Returns replacements made.

    Raises:
        FileNotFoundError: the file does not exist.
    """
    target = Path(path)
    content = target.read_text(encoding="utf-8")
    count = content.count(placeholder)
    if count:
        target.write_text(content.replace(placeholder, version), encoding="utf-8")
    logger.info("Stamped %s with build version %s (%d occurrences)", target, version, count)
    return count


def write_version_file(path, version: str) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(version + "\n", encoding="utf-8")
    return target


def read_build_version(path) -> str | None:
    try:
        value = Path(path).read_text(encoding="utf-8").strip()
    except OSError:
        return None
    return value or None
