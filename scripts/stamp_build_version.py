#!/usr/bin/env python3
"""
Stamp the build version used to name cache buckets.

Run once per deployment, before the gateway starts. Writes the version to
instance/BUILD_VERSION (read by offline_router.config) and optionally
replaces the __BUILD_TIMESTAMP__ placeholder in extra files.

Usage:
    python scripts/stamp_build_version.py                     # timestamp version
    python scripts/stamp_build_version.py --version 2024.06.1
    python scripts/stamp_build_version.py --stamp public/sw.js
"""

import argparse
import logging
import sys
from pathlib import Path

# Project root directory
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from offline_router.services.versioning import (  # noqa: E402
    build_timestamp_version,
    stamp_placeholder,
    write_version_file,
)

logger = logging.getLogger("stamp_build_version")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--version", help="Explicit version (default: build timestamp in ms)")
    parser.add_argument("--output", default=str(ROOT / "instance" / "BUILD_VERSION"),
                        help="Version file to write")
    parser.add_argument("--stamp", action="append", default=[], metavar="FILE",
                        help="File whose __BUILD_TIMESTAMP__ placeholder is replaced (repeatable)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    version = args.version or build_timestamp_version()

    try:
        path = write_version_file(args.output, version)
        for target in args.stamp:
            stamp_placeholder(target, version)
    except OSError as exc:
        logger.error("Failed to stamp build version: %s", exc)
        return 1

    logger.info("✓ Build version %s written to %s", version, path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
