import json

from PyQt6 import QtCore

from audit_core.commands import CommandRunner
from audit_core.probes import DEPLOYMENT_COMMAND
from audit_core.status_tree import make_node
from audit_ui.auditor_data import AuditorData
from audit_ui.tree_model import AuditTreeModel


def _tree():
    return make_node(
        "System",
        "",
        [
            make_node("Flatpak", "ok", [make_node("User", "1 apps", [make_node("app: org.a", "user")])]),
            make_node("Toolboxes", "unavailable", details="Command: toolbox list -c"),
        ],
    )


def _row_names(model: AuditTreeModel):
    return [
        model.data(model.index(row, 0), AuditTreeModel.NameRole) for row in range(model.rowCount())
    ]


def test_model_exposes_row_roles(qt_app) -> None:
    model = AuditTreeModel()
    model.set_tree(_tree())
    assert _row_names(model) == ["System", "Flatpak", "User", "Toolboxes"]

    user = model.index(2, 0)
    assert model.data(user, AuditTreeModel.DepthRole) == 2
    assert model.data(user, AuditTreeModel.HasChildrenRole) is True
    assert model.data(user, AuditTreeModel.ExpandedRole) is False
    assert model.data(user, AuditTreeModel.StatusRole) == "1 apps"

    toolboxes = model.index(3, 0)
    assert model.data(toolboxes, AuditTreeModel.DetailsRole) == "Command: toolbox list -c"
    assert "Toolboxes: unavailable" in model.data(toolboxes, QtCore.Qt.ItemDataRole.DisplayRole)
    assert model.data(model.index(42, 0), AuditTreeModel.NameRole) is None

    roles = {name.data().decode() for name in model.roleNames().values()}
    assert roles == {"name", "status", "details", "depth", "hasChildren", "expanded"}


def test_model_toggle_resets_only_when_state_changes(qt_app) -> None:
    model = AuditTreeModel()
    model.set_tree(_tree())
    resets = []
    model.modelReset.connect(lambda: resets.append(True))

    model.toggleExpanded(3)
    assert resets == []

    model.toggleExpanded(2)
    assert len(resets) == 1
    assert _row_names(model) == ["System", "Flatpak", "User", "app: org.a", "Toolboxes"]


def test_auditor_data_refresh_publishes_state(qt_app, invoker, auditor_config_path) -> None:
    payload = {"deployments": [{"booted": True, "version": "40.1"}]}
    invoker.add_bridged(*DEPLOYMENT_COMMAND, stdout=json.dumps(payload))
    data = AuditorData(runner_factory=lambda: CommandRunner(invoker), auto_refresh=False)

    loading_seen = []
    data.loadingChanged.connect(lambda: loading_seen.append(data.loading))
    model_changes = []
    data.modelChanged.connect(lambda: model_changes.append(True))

    data.refresh()

    assert loading_seen == [True, False]
    assert model_changes == [True]
    assert data.loading is False
    assert data.hostBridgeUsed is True
    assert len(data.errors) == 5
    assert data.last_report.tree.child("Root (rpm-ostree)").status == "booted: 40.1"
    assert data.tree_model.rowCount() > 0


def test_auditor_data_preserve_policy_persists(qt_app, invoker, auditor_config_path) -> None:
    data = AuditorData(runner_factory=lambda: CommandRunner(invoker))
    assert data.preserveExpanded is True

    changes = []
    data.preserveExpandedChanged.connect(lambda: changes.append(data.preserveExpanded))
    data.set_preserve_expanded(False)
    data.set_preserve_expanded(False)

    assert changes == [False]
    assert data.tree_model.store.preserve_expanded is False
    assert json.loads(auditor_config_path.read_text(encoding="utf-8"))["preserve_expanded"] is False


def test_auditor_data_collapse_survives_refresh(qt_app, invoker, auditor_config_path) -> None:
    data = AuditorData(runner_factory=lambda: CommandRunner(invoker), persist_policy=False)
    model = data.tree_model
    containers_row = _row_names(model).index("Containers")
    model.toggleExpanded(containers_row)
    assert "Podman" not in _row_names(model)

    data.refresh()
    assert "Podman" not in _row_names(model)

    data.set_preserve_expanded(False)
    data.refresh()
    assert "Podman" in _row_names(model)
    assert not auditor_config_path.exists()
