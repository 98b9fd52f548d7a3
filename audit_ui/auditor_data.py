from __future__ import annotations

from typing import Callable, List, Optional

from PyQt6 import QtCore

from audit_core.commands import CommandRunner
from audit_core.report import AuditReport, build_report
from audit_ui import config as auditor_config
from audit_ui.tree_model import AuditTreeModel
from diagnostics.logging_setup import get_logger

logger = get_logger("ui")


def _runner_from_config() -> CommandRunner:
    start_timeout_ms, timeout_ms = auditor_config.get_timeouts()
    return CommandRunner(start_timeout_ms=start_timeout_ms, timeout_ms=timeout_ms)


class AuditorData(QtCore.QObject):
    """Observable audit state for the view: model, loading, errors, bridge use, expand policy."""

    modelChanged = QtCore.pyqtSignal()
    loadingChanged = QtCore.pyqtSignal()
    errorsChanged = QtCore.pyqtSignal()
    hostBridgeUsedChanged = QtCore.pyqtSignal()
    preserveExpandedChanged = QtCore.pyqtSignal()

    def __init__(
        self,
        parent: Optional[QtCore.QObject] = None,
        *,
        runner_factory: Optional[Callable[[], CommandRunner]] = None,
        preserve_expanded: Optional[bool] = None,
        persist_policy: bool = True,
        auto_refresh: bool = True,
    ) -> None:
        super().__init__(parent)
        self._runner_factory = runner_factory or _runner_from_config
        self._persist_policy = persist_policy
        if preserve_expanded is None:
            preserve_expanded = auditor_config.get_preserve_expanded()
        self._preserve_expanded = bool(preserve_expanded)
        self._loading = False
        self._errors: List[str] = []
        self._host_bridge_used = False
        self._last_report: Optional[AuditReport] = None
        self._model = AuditTreeModel(parent=self)
        self._model.set_preserve_expanded(self._preserve_expanded)
        if auto_refresh:
            self.refresh()

    # --- properties -------------------------------------------------------------
    def _get_model(self) -> AuditTreeModel:
        return self._model

    def _get_loading(self) -> bool:
        return self._loading

    def _get_errors(self) -> List[str]:
        return list(self._errors)

    def _get_host_bridge_used(self) -> bool:
        return self._host_bridge_used

    def _get_preserve_expanded(self) -> bool:
        return self._preserve_expanded

    def set_preserve_expanded(self, preserve: bool) -> None:
        preserve = bool(preserve)
        if self._preserve_expanded == preserve:
            return
        self._preserve_expanded = preserve
        self._model.set_preserve_expanded(preserve)
        if self._persist_policy:
            auditor_config.set_preserve_expanded(preserve)
        self.preserveExpandedChanged.emit()

    model = QtCore.pyqtProperty(QtCore.QObject, fget=_get_model, notify=modelChanged)
    loading = QtCore.pyqtProperty(bool, fget=_get_loading, notify=loadingChanged)
    errors = QtCore.pyqtProperty(list, fget=_get_errors, notify=errorsChanged)
    hostBridgeUsed = QtCore.pyqtProperty(
        bool, fget=_get_host_bridge_used, notify=hostBridgeUsedChanged
    )
    preserveExpanded = QtCore.pyqtProperty(
        bool,
        fget=_get_preserve_expanded,
        fset=set_preserve_expanded,
        notify=preserveExpandedChanged,
    )

    @property
    def tree_model(self) -> AuditTreeModel:
        return self._model

    @property
    def last_report(self) -> Optional[AuditReport]:
        return self._last_report

    # --- refresh ----------------------------------------------------------------
    @QtCore.pyqtSlot()
    def refresh(self) -> None:
        logger.info("refresh requested preserve_expanded=%s", self._preserve_expanded)
        self._set_loading(True)
        self._set_host_bridge_used(False)
        try:
            report = build_report(self._runner_factory())
            self._last_report = report
            self._model.set_preserve_expanded(self._preserve_expanded)
            self._model.set_tree(report.tree)
            self._set_errors(report.errors)
            self._set_host_bridge_used(report.bridge_used)
            self.modelChanged.emit()
        finally:
            self._set_loading(False)

    def _set_loading(self, loading: bool) -> None:
        if self._loading == loading:
            return
        self._loading = loading
        self.loadingChanged.emit()

    def _set_errors(self, errors: List[str]) -> None:
        if self._errors == list(errors):
            return
        self._errors = list(errors)
        self.errorsChanged.emit()

    def _set_host_bridge_used(self, used: bool) -> None:
        if self._host_bridge_used == used:
            return
        self._host_bridge_used = used
        self.hostBridgeUsedChanged.emit()
