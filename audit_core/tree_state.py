from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .status_tree import StatusNode

PATH_SEPARATOR = "/"
DEFAULT_EXPANDED_DEPTH = 2


@dataclass
class TreeNode:
    name: str
    status: str
    details: str
    path: str
    depth: int = 0
    parent: int = -1
    children: List[int] = field(default_factory=list)
    expanded: bool = True

    @property
    def has_children(self) -> bool:
        return bool(self.children)


def default_expanded(depth: int) -> bool:
    return depth < DEFAULT_EXPANDED_DEPTH


class TreeStateStore:
    """Arena of :class:`TreeNode` records plus the visible-rows projection.

    Expansion survives :meth:`ingest` by path (ancestor names joined with
    ``/``). Same-named siblings share a path and so share expansion state.
    Row indices are only valid until the next ``ingest`` or toggle.
    """

    def __init__(self, *, preserve_expanded: bool = True) -> None:
        self._nodes: List[TreeNode] = []
        self._visible: List[int] = []
        self._preserve_expanded = bool(preserve_expanded)

    # --- policy ---------------------------------------------------------------
    @property
    def preserve_expanded(self) -> bool:
        return self._preserve_expanded

    def set_preserve_policy(self, enabled: bool) -> None:
        self._preserve_expanded = bool(enabled)

    # --- generations ------------------------------------------------------------
    def ingest(self, tree: StatusNode) -> None:
        expanded_by_path = self._snapshot_expanded()
        nodes: List[TreeNode] = []
        stack: List[Tuple[StatusNode, int, int, str]] = [(tree, -1, 0, "")]
        while stack:
            source, parent, depth, parent_path = stack.pop()
            path = source.name if not parent_path else f"{parent_path}{PATH_SEPARATOR}{source.name}"
            index = len(nodes)
            nodes.append(
                TreeNode(
                    name=source.name,
                    status=source.status,
                    details=source.details,
                    path=path,
                    depth=depth,
                    parent=parent,
                    expanded=expanded_by_path.get(path, default_expanded(depth)),
                )
            )
            if parent >= 0:
                nodes[parent].children.append(index)
            for child in reversed(source.children):
                stack.append((child, index, depth + 1, path))
        self._nodes = nodes
        self._rebuild_visible()

    def _snapshot_expanded(self) -> Dict[str, bool]:
        if not self._preserve_expanded:
            return {}
        return {node.path: node.expanded for node in self._nodes if node.path}

    # --- projection -------------------------------------------------------------
    def _rebuild_visible(self) -> None:
        visible: List[int] = []
        stack = [index for index, node in enumerate(self._nodes) if node.parent == -1]
        stack.reverse()
        while stack:
            index = stack.pop()
            visible.append(index)
            node = self._nodes[index]
            if node.expanded:
                stack.extend(reversed(node.children))
        self._visible = visible

    def visible_rows(self) -> List[TreeNode]:
        return [self._nodes[index] for index in self._visible]

    def row_count(self) -> int:
        return len(self._visible)

    def row(self, index: int) -> Optional[TreeNode]:
        if index < 0 or index >= len(self._visible):
            return None
        return self._nodes[self._visible[index]]

    def toggle_expanded(self, index: int) -> bool:
        """Flip the row's expansion; returns False when nothing changed."""
        node = self.row(index)
        if node is None or not node.has_children:
            return False
        node.expanded = not node.expanded
        self._rebuild_visible()
        return True

    # --- lookups ----------------------------------------------------------------
    def node_for_path(self, path: str) -> Optional[TreeNode]:
        for node in self._nodes:
            if node.path == path:
                return node
        return None

    def nodes(self) -> List[TreeNode]:
        return list(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)
