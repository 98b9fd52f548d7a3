from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from audit_core.commands import CommandRunner, ProbeResult


class FakeInvoker:
    """Scripted stand-in for ``run_command``; unknown commands fail to start."""

    def __init__(self) -> None:
        self.responses: Dict[Tuple[str, Tuple[str, ...]], Tuple[int, str, str, bool]] = {}
        self.calls: List[Tuple[str, Tuple[str, ...]]] = []

    def add(
        self,
        program: str,
        args: Sequence[str],
        *,
        exit_code: int = 0,
        stdout: str = "",
        stderr: str = "",
        started: bool = True,
    ) -> None:
        self.responses[(program, tuple(args))] = (exit_code, stdout, stderr, started)

    def add_bridged(self, program: str, args: Sequence[str], **kwargs) -> None:
        self.add("host-spawn", (program, *args), **kwargs)

    def __call__(
        self,
        program: str,
        args: Sequence[str],
        start_timeout_ms: int,
        timeout_ms: int,
    ) -> ProbeResult:
        key = (program, tuple(args))
        self.calls.append(key)
        entry = self.responses.get(key)
        if entry is None:
            return ProbeResult(-1, "", "failed to start", program, key[1], started=False)
        exit_code, stdout, stderr, started = entry
        return ProbeResult(exit_code, stdout, stderr, program, key[1], started=started)


@pytest.fixture()
def invoker() -> FakeInvoker:
    return FakeInvoker()


@pytest.fixture()
def runner(invoker: FakeInvoker) -> CommandRunner:
    return CommandRunner(invoker)


@pytest.fixture()
def qt_app():
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    from PyQt6 import QtWidgets

    app = QtWidgets.QApplication.instance()
    if app is None:
        app = QtWidgets.QApplication([])
    return app


@pytest.fixture()
def auditor_config_path(monkeypatch, tmp_path: Path) -> Path:
    import audit_ui.config as auditor_config

    path = tmp_path / "auditor_config.json"
    monkeypatch.setattr(auditor_config, "CONFIG_PATH", path)
    monkeypatch.delenv(auditor_config.TIMEOUT_ENV, raising=False)
    return path
