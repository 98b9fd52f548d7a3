"""Probe the host's deployment, app, container and toolbox managers into one status tree."""

from .commands import CommandRunner, ProbeResult, run_command
from .report import AuditReport, build_report
from .status_tree import StatusNode
from .tree_state import TreeNode, TreeStateStore

__all__ = [
    "AuditReport",
    "CommandRunner",
    "ProbeResult",
    "StatusNode",
    "TreeNode",
    "TreeStateStore",
    "build_report",
    "run_command",
]
