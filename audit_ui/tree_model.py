from __future__ import annotations

from typing import Any, Dict, Optional

from PyQt6 import QtCore

from audit_core.status_tree import StatusNode
from audit_core.tree_state import TreeStateStore

_ROLE_BASE = QtCore.Qt.ItemDataRole.UserRole.value


class AuditTreeModel(QtCore.QAbstractListModel):
    """Flat, depth-annotated rows of the audit tree for list views."""

    NameRole = _ROLE_BASE + 1
    StatusRole = _ROLE_BASE + 2
    DetailsRole = _ROLE_BASE + 3
    DepthRole = _ROLE_BASE + 4
    HasChildrenRole = _ROLE_BASE + 5
    ExpandedRole = _ROLE_BASE + 6

    def __init__(
        self,
        store: Optional[TreeStateStore] = None,
        parent: Optional[QtCore.QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._store = store or TreeStateStore()

    @property
    def store(self) -> TreeStateStore:
        return self._store

    def set_preserve_expanded(self, preserve: bool) -> None:
        self._store.set_preserve_policy(preserve)

    def set_tree(self, tree: StatusNode) -> None:
        self.beginResetModel()
        self._store.ingest(tree)
        self.endResetModel()

    # --- QAbstractListModel -----------------------------------------------------
    def rowCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return self._store.row_count()

    def data(self, index: QtCore.QModelIndex, role: int = QtCore.Qt.ItemDataRole.DisplayRole) -> Any:
        if not index.isValid():
            return None
        node = self._store.row(index.row())
        if node is None:
            return None
        role = getattr(role, "value", role)
        if role == QtCore.Qt.ItemDataRole.DisplayRole.value:
            marker = ("- " if node.expanded else "+ ") if node.has_children else "  "
            label = f"{node.name}: {node.status}" if node.status else node.name
            return f"{'    ' * node.depth}{marker}{label}"
        if role == QtCore.Qt.ItemDataRole.ToolTipRole.value:
            return node.details or None
        if role == self.NameRole:
            return node.name
        if role == self.StatusRole:
            return node.status
        if role == self.DetailsRole:
            return node.details
        if role == self.DepthRole:
            return node.depth
        if role == self.HasChildrenRole:
            return node.has_children
        if role == self.ExpandedRole:
            return node.expanded
        return None

    def roleNames(self) -> Dict[int, QtCore.QByteArray]:
        return {
            self.NameRole: QtCore.QByteArray(b"name"),
            self.StatusRole: QtCore.QByteArray(b"status"),
            self.DetailsRole: QtCore.QByteArray(b"details"),
            self.DepthRole: QtCore.QByteArray(b"depth"),
            self.HasChildrenRole: QtCore.QByteArray(b"hasChildren"),
            self.ExpandedRole: QtCore.QByteArray(b"expanded"),
        }

    @QtCore.pyqtSlot(int)
    def toggleExpanded(self, row: int) -> None:
        node = self._store.row(row)
        if node is None or not node.has_children:
            return
        self.beginResetModel()
        self._store.toggle_expanded(row)
        self.endResetModel()
