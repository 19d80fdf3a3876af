"""Tests for core/topology.py room connectivity."""
from mapplanner.core.topology import build_room_graph, connected_rooms


def test_rooms_are_nodes(sample_document):
    graph = build_room_graph(sample_document)
    assert set(graph.nodes) == {1, 3, 5}
    assert graph.nodes[1]["label"] == "Bridge"


def test_hallways_join_rooms(sample_document):
    graph = build_room_graph(sample_document)
    assert graph.has_edge(1, 3)
    assert graph.has_edge(3, 5)
    assert not graph.has_edge(1, 5)
    assert graph.edges[1, 3]["path_id"] == 2
    assert graph.edges[3, 5]["is_secret"] is True


def test_stale_attachments_ignored(sample_document):
    sample_document.remove("room", 5)
    graph = build_room_graph(sample_document)
    assert set(graph.nodes) == {1, 3}
    assert list(graph.edges) == [(1, 3)]


def test_walls_only_when_requested(sample_document):
    sample_document.create_wall(
        [sample_document.attach_node(0, 40), sample_document.attach_node(400, 50)]
    )
    assert not build_room_graph(sample_document).has_edge(1, 5)

    graph = build_room_graph(sample_document, include_walls=True)
    assert graph.edges[1, 5]["path_kind"] == "wall"


def test_connected_rooms(sample_document):
    assert connected_rooms(sample_document, 1) == {3, 5}
    assert connected_rooms(sample_document, 42) == set()
