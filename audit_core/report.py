from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from diagnostics.logging_setup import get_logger
from diagnostics.tracing import span

from .commands import CommandRunner
from .probes import PROBES, Probe, ProbeContext
from .status_tree import StatusNode, make_node
from .versioning import get_build_info

REPORT_VERSION = 1
ROOT_NAME = "System"

logger = get_logger("report")


@dataclass
class AuditReport:
    tree: StatusNode
    errors: List[str] = field(default_factory=list)
    bridge_used: bool = False
    generated_at: float = field(default_factory=time.time)
    duration_ms: float = 0.0


def build_report(
    runner: Optional[CommandRunner] = None,
    probes: Sequence[Probe] = PROBES,
) -> AuditReport:
    """Run every probe in order and hang each probe's node under one ``System`` root.

    A failing probe degrades its own subtree and adds to ``errors``; the build
    itself always completes.
    """
    ctx = ProbeContext(runner=runner or CommandRunner())
    started = time.monotonic()
    children: List[StatusNode] = []
    for probe in probes:
        name = getattr(probe, "__name__", type(probe).__name__)
        with span(name):
            children.append(probe(ctx))
    duration_ms = (time.monotonic() - started) * 1000
    logger.info(
        "audit built probes=%s errors=%s bridge_used=%s duration_ms=%.1f",
        len(children),
        len(ctx.errors),
        ctx.bridge_used,
        duration_ms,
    )
    return AuditReport(
        tree=make_node(ROOT_NAME, "", children),
        errors=list(ctx.errors),
        bridge_used=ctx.bridge_used,
        duration_ms=duration_ms,
    )


def report_to_dict(report: AuditReport) -> Dict[str, Any]:
    build = get_build_info()
    return {
        "report_version": REPORT_VERSION,
        "generated_at": report.generated_at,
        "duration_ms": report.duration_ms,
        "app_version": build.get("app_version", "unknown"),
        "build_id": build.get("build_id", "unknown"),
        "bridge_used": report.bridge_used,
        "errors": list(report.errors),
        "tree": report.tree.to_dict(),
    }


def write_report(report: AuditReport, output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    target = output_dir / "audit_report.json"
    target.write_text(json.dumps(report_to_dict(report), indent=2), encoding="utf-8")
    return target


def format_report_text(report: AuditReport, *, max_depth: Optional[int] = None) -> str:
    lines: List[str] = []
    for depth, node in report.tree.walk():
        if max_depth is not None and depth > max_depth:
            continue
        label = node.name if not node.status else f"{node.name}: {node.status}"
        lines.append(f"{'  ' * depth}{label}")
    lines.append("")
    if report.bridge_used:
        lines.append("Host bridge: used")
    lines.append("Errors:")
    if not report.errors:
        lines.append("  (none)")
    else:
        for message in report.errors:
            lines.append(f"  - {message}")
    return "\n".join(lines)
