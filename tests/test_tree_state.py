from audit_core.status_tree import StatusNode, make_node
from audit_core.tree_state import TreeStateStore


def _sample_tree() -> StatusNode:
    return make_node(
        "System",
        "",
        [
            make_node(
                "Root (rpm-ostree)",
                "booted: 40.1",
                [make_node("Layered packages", "2"), make_node("Overrides", "0")],
            ),
            make_node(
                "Containers",
                "partial",
                [
                    make_node(
                        "Podman",
                        "2",
                        [make_node("podman: web", "running"), make_node("podman: db", "exited")],
                    ),
                    make_node("Distrobox", "unavailable"),
                ],
            ),
        ],
    )


def _visible_paths(store: TreeStateStore):
    return [node.path for node in store.visible_rows()]


def _row_of(store: TreeStateStore, path: str) -> int:
    return _visible_paths(store).index(path)


def test_ingest_builds_paths_depths_and_parents() -> None:
    store = TreeStateStore()
    store.ingest(_sample_tree())
    podman = store.node_for_path("System/Containers/Podman")
    assert podman is not None
    assert podman.depth == 2
    assert podman.has_children is True
    nodes = store.nodes()
    assert nodes[podman.parent].path == "System/Containers"
    assert [nodes[i].name for i in podman.children] == ["podman: web", "podman: db"]
    assert len(store) == 9


def test_default_projection_hides_children_of_depth_two() -> None:
    store = TreeStateStore()
    store.ingest(_sample_tree())
    assert _visible_paths(store) == [
        "System",
        "System/Root (rpm-ostree)",
        "System/Root (rpm-ostree)/Layered packages",
        "System/Root (rpm-ostree)/Overrides",
        "System/Containers",
        "System/Containers/Podman",
        "System/Containers/Distrobox",
    ]
    assert store.row(_row_of(store, "System/Containers/Podman")).expanded is False
    assert all(row.expanded for row in store.visible_rows() if row.depth < 2)


def test_toggle_expands_and_collapses() -> None:
    store = TreeStateStore()
    store.ingest(_sample_tree())
    assert store.toggle_expanded(_row_of(store, "System/Containers/Podman")) is True
    assert "System/Containers/Podman/podman: db" in _visible_paths(store)

    assert store.toggle_expanded(_row_of(store, "System/Containers")) is True
    assert _visible_paths(store)[-1] == "System/Containers"
    assert store.row_count() == 5


def test_toggle_on_leaf_or_out_of_range_is_noop() -> None:
    store = TreeStateStore()
    store.ingest(_sample_tree())
    before = _visible_paths(store)
    leaf_row = _row_of(store, "System/Root (rpm-ostree)/Overrides")
    assert store.toggle_expanded(leaf_row) is False
    assert store.toggle_expanded(-1) is False
    assert store.toggle_expanded(999) is False
    assert _visible_paths(store) == before
    assert store.row(999) is None


def test_collapsed_state_survives_reingest_when_preserving() -> None:
    store = TreeStateStore()
    store.ingest(_sample_tree())
    store.toggle_expanded(_row_of(store, "System/Containers"))
    assert store.node_for_path("System/Containers").expanded is False

    store.ingest(_sample_tree())
    assert store.node_for_path("System/Containers").expanded is False
    assert "System/Containers/Podman" not in _visible_paths(store)


def test_disabled_preservation_resets_to_defaults() -> None:
    store = TreeStateStore()
    store.ingest(_sample_tree())
    store.toggle_expanded(_row_of(store, "System/Containers"))
    store.set_preserve_policy(False)
    assert store.preserve_expanded is False

    store.ingest(_sample_tree())
    assert store.node_for_path("System/Containers").expanded is True
    assert "System/Containers/Podman" in _visible_paths(store)


def test_new_paths_take_depth_default_after_reingest() -> None:
    store = TreeStateStore()
    store.ingest(_sample_tree())
    store.toggle_expanded(_row_of(store, "System/Containers/Podman"))

    changed = _sample_tree()
    changed.child("Containers").children.append(
        make_node("Buildah", "1", [make_node("buildah: x", "")])
    )
    store.ingest(changed)
    assert store.node_for_path("System/Containers/Podman").expanded is True
    assert store.node_for_path("System/Containers/Buildah").expanded is False
    assert "System/Containers/Buildah/buildah: x" not in _visible_paths(store)
