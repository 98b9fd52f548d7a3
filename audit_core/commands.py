from __future__ import annotations

import os
import signal
import subprocess
import time
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence, Tuple

from diagnostics.logging_setup import get_logger

NOT_FOUND_EXIT_CODE = 127
DEFAULT_START_TIMEOUT_MS = 500
DEFAULT_TIMEOUT_MS = 2000

# Tried in order when the direct call cannot reach the tool.
HOST_BRIDGES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("host-spawn", ()),
    ("flatpak-spawn", ("--host",)),
)

logger = get_logger("commands")


@dataclass(frozen=True)
class ProbeResult:
    exit_code: int
    stdout: str
    stderr: str
    invoked_program: str
    invoked_args: Tuple[str, ...] = ()
    started: bool = False
    used_bridge: bool = False

    @property
    def ok(self) -> bool:
        return self.started and self.exit_code == 0

    @property
    def not_found(self) -> bool:
        return not self.started or self.exit_code == NOT_FOUND_EXIT_CODE

    @property
    def command_line(self) -> str:
        if not self.invoked_args:
            return self.invoked_program
        return f"{self.invoked_program} {' '.join(self.invoked_args)}"


Invoker = Callable[[str, Sequence[str], int, int], ProbeResult]


def run_command(
    program: str,
    args: Sequence[str],
    start_timeout_ms: int = DEFAULT_START_TIMEOUT_MS,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
) -> ProbeResult:
    """Run one process with a start budget and a completion budget.

    ``started`` separates "could not launch" from "launched and failed";
    bridge escalation keys on that distinction.
    """
    argv = tuple(str(arg) for arg in args)
    spawn_began = time.monotonic()
    try:
        process = subprocess.Popen(
            [program, *argv],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            start_new_session=True,
        )
    except (OSError, ValueError) as exc:
        logger.info("spawn failed program=%s error=%s", program, exc)
        return ProbeResult(-1, "", "failed to start", program, argv, started=False)

    if (time.monotonic() - spawn_began) * 1000 > start_timeout_ms:
        _kill(process)
        logger.info("spawn exceeded %sms program=%s", start_timeout_ms, program)
        return ProbeResult(-1, "", "failed to start", program, argv, started=False)

    try:
        out, err = process.communicate(timeout=timeout_ms / 1000)
    except subprocess.TimeoutExpired:
        _kill(process)
        logger.warning("timeout after %sms command=%s", timeout_ms, " ".join([program, *argv]))
        return ProbeResult(-1, "", "timeout", program, argv, started=True)

    return ProbeResult(
        process.returncode,
        _decode(out),
        _decode(err),
        program,
        argv,
        started=True,
    )


def _kill(process: subprocess.Popen) -> None:
    # Pipes are closed unread: a bridged host process can outlive the group
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except OSError:
        process.kill()
    process.wait()
    for stream in (process.stdout, process.stderr):
        if stream is not None:
            stream.close()


def _decode(data: Optional[bytes]) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


class CommandRunner:
    """Runs a command directly, then through each host bridge until one reaches it."""

    def __init__(
        self,
        invoker: Optional[Invoker] = None,
        *,
        start_timeout_ms: int = DEFAULT_START_TIMEOUT_MS,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        bridges: Sequence[Tuple[str, Sequence[str]]] = HOST_BRIDGES,
    ) -> None:
        self._invoke = invoker or run_command
        self.start_timeout_ms = int(start_timeout_ms)
        self.timeout_ms = int(timeout_ms)
        self._bridges = [(program, tuple(flags)) for program, flags in bridges]

    def run(self, program: str, args: Sequence[str]) -> ProbeResult:
        args = tuple(args)
        result = self._invoke(program, args, self.start_timeout_ms, self.timeout_ms)
        if not result.not_found:
            return result

        for bridge, flags in self._bridges:
            logger.info(
                "escalating program=%s via=%s previous_exit=%s started=%s",
                program,
                bridge,
                result.exit_code,
                result.started,
            )
            attempt = self._invoke(
                bridge,
                (*flags, program, *args),
                self.start_timeout_ms,
                self.timeout_ms,
            )
            result = replace(attempt, used_bridge=attempt.started)
            if not result.not_found:
                return result
        return result


def format_command_details(result: ProbeResult) -> str:
    lines: List[str] = [f"Command: {result.command_line}", f"Exit: {result.exit_code}"]
    stdout = result.stdout.strip()
    stderr = result.stderr.strip()
    lines.append(f"Stdout:\n{stdout}" if stdout else "Stdout: <empty>")
    lines.append(f"Stderr:\n{stderr}" if stderr else "Stderr: <empty>")
    return "\n".join(lines)


def format_error_message(label: str, result: ProbeResult) -> str:
    detail = ""
    if not result.started:
        detail = f"failed to start ({result.invoked_program})"
    elif result.stderr.strip():
        detail = result.stderr.strip()
    elif result.exit_code == NOT_FOUND_EXIT_CODE:
        detail = "command not found"
    if not detail:
        return f"{label}: unavailable"
    return f"{label}: unavailable ({detail})"
