from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from diagnostics.logging_setup import get_logger

from .commands import CommandRunner, ProbeResult, format_command_details, format_error_message
from .status_tree import StatusNode, make_node, split_columns, split_lines

STATUS_OK = "ok"
STATUS_PARTIAL = "partial"
STATUS_UNAVAILABLE = "unavailable"
STATUS_UNKNOWN = "unknown"
STATUS_PARSE_ERROR = "parse error"

DEPLOYMENT_COMMAND = ("rpm-ostree", ("status", "--json"))
FLATPAK_SYSTEM_COMMAND = ("flatpak", ("list", "--app", "--columns=application", "--system"))
FLATPAK_USER_COMMAND = ("flatpak", ("list", "--app", "--columns=application", "--user"))
PODMAN_COMMAND = ("podman", ("ps", "-a", "--format", "json"))
DISTROBOX_COMMAND = ("distrobox", ("list", "--no-color"))
TOOLBOX_COMMAND = ("toolbox", ("list", "-c"))

logger = get_logger("probes")


@dataclass
class ProbeContext:
    runner: CommandRunner
    errors: List[str] = field(default_factory=list)
    bridge_used: bool = False

    def run(self, command: Tuple[str, Sequence[str]]) -> ProbeResult:
        program, args = command
        result = self.runner.run(program, args)
        if result.used_bridge:
            self.bridge_used = True
        return result

    def add_error(self, message: str) -> None:
        logger.warning("probe error: %s", message)
        self.errors.append(message)


class Probe(Protocol):
    def __call__(self, ctx: ProbeContext) -> StatusNode:
        ...


# --- deployments -------------------------------------------------------------


def probe_deployments(ctx: ProbeContext) -> StatusNode:
    result = ctx.run(DEPLOYMENT_COMMAND)
    details = format_command_details(result)
    status = STATUS_UNAVAILABLE
    layered = STATUS_UNKNOWN
    overrides = STATUS_UNKNOWN
    children: List[StatusNode] = []

    if result.exit_code == 0:
        document = _parse_json(result.stdout)
        if isinstance(document, dict):
            booted, pending = _select_deployments(document.get("deployments"))
            if booted is not None:
                version = _as_text(booted.get("version"))
                origin = _as_text(booted.get("origin"))
                status = f"booted: {version or origin}"
                layered = str(len(_as_list(booted.get("packages"))))
                overrides = str(len(_as_list(booted.get("overrides"))))
                children.append(make_node("Deployment: current", "committed"))
            else:
                status = "no booted deployment"
                children.append(make_node("Deployment: current", STATUS_UNKNOWN))
            if pending is not None:
                children.append(
                    make_node("Deployment: pending", _as_text(pending.get("version")) or "staged")
                )
            else:
                children.append(make_node("Deployment: pending", "none"))
        else:
            ctx.add_error("rpm-ostree: failed to parse JSON output")
    else:
        ctx.add_error(format_error_message("rpm-ostree", result))

    children.append(make_node("Layered packages", layered))
    children.append(make_node("Overrides", overrides))
    return make_node("Root (rpm-ostree)", status, children, details)


def _select_deployments(records: Any) -> Tuple[Optional[Dict[str, Any]], Optional[Dict[str, Any]]]:
    booted: Optional[Dict[str, Any]] = None
    pending: Optional[Dict[str, Any]] = None
    for record in _as_list(records):
        if not isinstance(record, dict):
            continue
        if record.get("booted") is True:
            booted = record
        elif record.get("staged") is True:
            pending = record
    return booted, pending


# --- sandboxed apps ----------------------------------------------------------


def probe_flatpaks(ctx: ProbeContext) -> StatusNode:
    children: List[StatusNode] = []
    status = STATUS_UNAVAILABLE
    for scope, label, command in (
        ("system", "System", FLATPAK_SYSTEM_COMMAND),
        ("user", "User", FLATPAK_USER_COMMAND),
    ):
        result = ctx.run(command)
        details = format_command_details(result)
        if result.exit_code == 0:
            lines = split_lines(result.stdout)
            apps = [make_node(f"app: {line.strip()}", scope) for line in lines]
            children.append(make_node(label, f"{len(lines)} apps", apps, details))
            status = STATUS_OK
        else:
            children.append(make_node(label, STATUS_UNAVAILABLE, details=details))
            ctx.add_error(format_error_message(f"flatpak ({scope})", result))
    return make_node("Flatpak", status, children)


# --- containers --------------------------------------------------------------


def probe_podman(ctx: ProbeContext) -> Tuple[StatusNode, bool]:
    """Return ``(node, command_succeeded)`` for the JSON container listing."""
    result = ctx.run(PODMAN_COMMAND)
    details = format_command_details(result)
    if result.exit_code != 0:
        ctx.add_error(format_error_message("podman", result))
        return make_node("Podman", STATUS_UNAVAILABLE, details=details), False

    document = _parse_json(result.stdout)
    if not isinstance(document, list):
        ctx.add_error("podman: failed to parse JSON output")
        return make_node("Podman", STATUS_PARSE_ERROR, details=details), True

    items: List[StatusNode] = []
    for entry in document:
        item = entry if isinstance(entry, dict) else {}
        image = _as_text(item.get("Image"))
        human_status = _as_text(item.get("Status"))
        items.append(
            make_node(
                f"podman: {_container_name(item)}",
                _as_text(item.get("State")),
                details=f"Image: {image}\nStatus: {human_status}",
            )
        )
    return make_node("Podman", str(len(document)), items, details), True


def _container_name(item: Dict[str, Any]) -> str:
    names = _as_list(item.get("Names"))
    name = _as_text(names[0]) if names else _as_text(item.get("Name"))
    return name or _as_text(item.get("Id"))[:12]


def probe_distrobox(ctx: ProbeContext) -> Tuple[StatusNode, bool]:
    result = ctx.run(DISTROBOX_COMMAND)
    details = format_command_details(result)
    if result.exit_code != 0:
        ctx.add_error(format_error_message("distrobox", result))
        return make_node("Distrobox", STATUS_UNAVAILABLE, details=details), False
    items = parse_listing(
        result.stdout,
        prefix="distrobox",
        is_header=lambda line: "NAME" in line and "STATUS" in line,
    )
    return make_node("Distrobox", str(len(items)), items, details), True


def probe_containers(ctx: ProbeContext) -> StatusNode:
    podman, podman_ok = probe_podman(ctx)
    distrobox, distrobox_ok = probe_distrobox(ctx)
    if podman_ok and distrobox_ok:
        status = STATUS_OK
    elif not podman_ok and not distrobox_ok:
        status = STATUS_UNAVAILABLE
    else:
        status = STATUS_PARTIAL
    return make_node("Containers", status, [podman, distrobox])


# --- toolboxes ---------------------------------------------------------------


def probe_toolboxes(ctx: ProbeContext) -> StatusNode:
    result = ctx.run(TOOLBOX_COMMAND)
    details = format_command_details(result)
    if result.exit_code != 0:
        ctx.add_error(format_error_message("toolbox", result))
        listing = make_node("toolboxes", STATUS_UNAVAILABLE, details=details)
        return make_node("Toolboxes", STATUS_UNAVAILABLE, [listing])
    items = parse_listing(
        result.stdout,
        prefix="toolbox",
        is_header=lambda line: "CONTAINER" in line,
    )
    listing = make_node("toolboxes", str(len(items)), items, details)
    return make_node("Toolboxes", STATUS_OK, [listing])


# --- helpers -----------------------------------------------------------------


def parse_listing(
    output: str,
    *,
    prefix: str,
    is_header: Callable[[str], bool],
) -> List[StatusNode]:
    """Turn a whitespace-aligned table into leaves: column 0 is the name, column 1 the status."""
    items: List[StatusNode] = []
    for line in split_lines(output):
        if is_header(line):
            continue
        parts = split_columns(line)
        if not parts:
            continue
        status = parts[1] if len(parts) > 1 else ""
        items.append(make_node(f"{prefix}: {parts[0]}", status, details=line.strip()))
    return items


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return None


def _as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, list) else []


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


PROBES: Sequence[Probe] = (
    probe_deployments,
    probe_flatpaks,
    probe_containers,
    probe_toolboxes,
)
