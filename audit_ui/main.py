# =============================================================================
# NAV INDEX (search these tags)
# [NAV-00] Imports / constants
# [NAV-10] AuditorWindow
# [NAV-99] main() entrypoint
# =============================================================================

# === [NAV-00] Imports / constants ============================================
from __future__ import annotations

import sys
from typing import List, Optional

from PyQt6 import QtCore, QtWidgets

from audit_ui.auditor_data import AuditorData
from audit_ui.tree_model import AuditTreeModel
from audit_core.versioning import get_build_info
from diagnostics.logging_setup import configure_logging, get_logger

WINDOW_TITLE = "Immutable OS Auditor"


# === [NAV-10] AuditorWindow ==================================================
class AuditorWindow(QtWidgets.QMainWindow):
    def __init__(self, data: AuditorData, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self._data = data
        build = get_build_info()
        self.setWindowTitle(f"{WINDOW_TITLE} {build['app_version']} ({build['build_id']})")
        self.resize(820, 640)

        central = QtWidgets.QWidget()
        layout = QtWidgets.QVBoxLayout(central)

        top = QtWidgets.QHBoxLayout()
        self.refresh_btn = QtWidgets.QPushButton("Refresh")
        self.refresh_btn.clicked.connect(self._data.refresh)
        top.addWidget(self.refresh_btn)
        self.preserve_check = QtWidgets.QCheckBox("Preserve expanded")
        self.preserve_check.setChecked(self._data.preserveExpanded)
        self.preserve_check.toggled.connect(self._data.set_preserve_expanded)
        top.addWidget(self.preserve_check)
        top.addStretch()
        self.bridge_label = QtWidgets.QLabel()
        top.addWidget(self.bridge_label)
        layout.addLayout(top)

        self.list_view = QtWidgets.QListView()
        self.list_view.setModel(self._data.tree_model)
        self.list_view.setUniformItemSizes(True)
        self.list_view.clicked.connect(self._on_row_clicked)
        self.list_view.selectionModel().currentChanged.connect(self._on_current_changed)
        layout.addWidget(self.list_view, stretch=3)

        self.details_view = QtWidgets.QPlainTextEdit()
        self.details_view.setReadOnly(True)
        layout.addWidget(self.details_view, stretch=1)

        self.errors_label = QtWidgets.QLabel()
        self.errors_label.setWordWrap(True)
        self.errors_label.setStyleSheet("color: #b00020;")
        layout.addWidget(self.errors_label)

        self.setCentralWidget(central)

        self._data.loadingChanged.connect(self._on_loading_changed)
        self._data.errorsChanged.connect(self._render_errors)
        self._data.hostBridgeUsedChanged.connect(self._render_bridge)
        self._render_errors()
        self._render_bridge()

    def _on_row_clicked(self, index: QtCore.QModelIndex) -> None:
        self._data.tree_model.toggleExpanded(index.row())

    def _on_current_changed(self, current: QtCore.QModelIndex, _previous: QtCore.QModelIndex) -> None:
        details = current.data(AuditTreeModel.DetailsRole) if current.isValid() else ""
        self.details_view.setPlainText(details or "")

    def _on_loading_changed(self) -> None:
        loading = self._data.loading
        self.refresh_btn.setEnabled(not loading)
        self.statusBar().showMessage("Loading..." if loading else "Ready")

    def _render_errors(self) -> None:
        errors: List[str] = self._data.errors
        self.errors_label.setText("\n".join(errors))
        self.errors_label.setVisible(bool(errors))

    def _render_bridge(self) -> None:
        if self._data.hostBridgeUsed:
            self.bridge_label.setText("Host bridge: used")
        else:
            self.bridge_label.setText("")


# === [NAV-99] main() entrypoint ==============================================
def main() -> None:
    configure_logging()
    get_logger().info("auditor starting argv=%s", sys.argv[1:])
    app = QtWidgets.QApplication(sys.argv)
    data = AuditorData()
    window = AuditorWindow(data)
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
