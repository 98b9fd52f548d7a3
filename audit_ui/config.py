# =============================================================================
# NAV INDEX (search these tags)
# [NAV-00] Imports / constants
# [NAV-10] Config loading (defaults/roaming/env)
# [NAV-20] Public getters / setters
# [NAV-99] End
# =============================================================================

# === [NAV-00] Imports / constants ============================================
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict, Tuple

from audit_core.commands import DEFAULT_START_TIMEOUT_MS, DEFAULT_TIMEOUT_MS

CONFIG_PATH = Path("data/roaming/auditor_config.json")
TIMEOUT_ENV = "OSAUDITOR_TIMEOUT_MS"
_DEFAULT_AUDITOR_CONFIG = {
    "preserve_expanded": True,
    "start_timeout_ms": DEFAULT_START_TIMEOUT_MS,
    "timeout_ms": DEFAULT_TIMEOUT_MS,
}


# === [NAV-10] Config loading (defaults/roaming/env) ==========================
def load_auditor_config() -> Dict:
    path = CONFIG_PATH
    if not path.exists():
        return _DEFAULT_AUDITOR_CONFIG.copy()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return _DEFAULT_AUDITOR_CONFIG.copy()
    if not isinstance(data, dict):
        return _DEFAULT_AUDITOR_CONFIG.copy()
    for key, value in _DEFAULT_AUDITOR_CONFIG.items():
        data.setdefault(key, value)
    return data


def save_auditor_config(data: Dict) -> None:
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_PATH.write_text(json.dumps(data, indent=2), encoding="utf-8")


# === [NAV-20] Public getters / setters ========================================
def get_preserve_expanded() -> bool:
    return bool(load_auditor_config().get("preserve_expanded", True))


def set_preserve_expanded(enabled: bool) -> None:
    config = load_auditor_config()
    config["preserve_expanded"] = bool(enabled)
    save_auditor_config(config)


def get_timeouts() -> Tuple[int, int]:
    """Return ``(start_timeout_ms, timeout_ms)``; the env var wins over the file."""
    config = load_auditor_config()
    start = _positive_int(config.get("start_timeout_ms"), DEFAULT_START_TIMEOUT_MS)
    total = _positive_int(config.get("timeout_ms"), DEFAULT_TIMEOUT_MS)
    total = _positive_int(os.environ.get(TIMEOUT_ENV), total)
    return start, total


def _positive_int(value: object, fallback: int) -> int:
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return fallback
    return number if number > 0 else fallback


# === [NAV-99] End =============================================================
__all__ = [
    "CONFIG_PATH",
    "TIMEOUT_ENV",
    "load_auditor_config",
    "save_auditor_config",
    "get_preserve_expanded",
    "set_preserve_expanded",
    "get_timeouts",
]
