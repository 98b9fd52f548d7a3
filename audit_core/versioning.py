from __future__ import annotations

from importlib import metadata
from pathlib import Path
from typing import Dict

from .commands import run_command

DIST_NAME = "osauditor"
UNKNOWN = "unknown"

_SOURCE_ROOT = Path(__file__).resolve().parent.parent


def get_app_version() -> str:
    try:
        return metadata.version(DIST_NAME)
    except metadata.PackageNotFoundError:
        return UNKNOWN


def get_build_id() -> str:
    """Short commit hash of the source tree, or ``unknown`` outside a git checkout."""
    result = run_command(
        "git",
        ["-C", str(_SOURCE_ROOT), "rev-parse", "--short", "HEAD"],
        start_timeout_ms=1000,
        timeout_ms=1500,
    )
    if not result.ok:
        return UNKNOWN
    return result.stdout.strip() or UNKNOWN


def get_build_info() -> Dict[str, str]:
    return {
        "app_version": get_app_version(),
        "build_id": get_build_id(),
    }
