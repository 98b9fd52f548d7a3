from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

_WHITESPACE = re.compile(r"\s+")


@dataclass
class StatusNode:
    """One reportable fact: a subsystem, a category inside it, or a single item."""

    name: str
    status: str = ""
    details: str = ""
    children: List["StatusNode"] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def child(self, name: str) -> Optional["StatusNode"]:
        for entry in self.children:
            if entry.name == name:
                return entry
        return None

    def walk(self) -> Iterator[Tuple[int, "StatusNode"]]:
        stack: List[Tuple[int, StatusNode]] = [(0, self)]
        while stack:
            depth, node = stack.pop()
            yield depth, node
            for entry in reversed(node.children):
                stack.append((depth + 1, entry))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "status": self.status,
            "details": self.details,
        }
        if self.children:
            data["children"] = [entry.to_dict() for entry in self.children]
        return data


def make_node(
    name: str,
    status: str,
    children: Optional[Sequence[StatusNode]] = None,
    details: str = "",
) -> StatusNode:
    return StatusNode(name=name, status=status, details=details, children=list(children or []))


def split_lines(output: str) -> List[str]:
    return [line for line in output.split("\n") if line]


def split_columns(line: str) -> List[str]:
    stripped = line.strip()
    if not stripped:
        return []
    return _WHITESPACE.split(stripped)
