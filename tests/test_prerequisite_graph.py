# tests/test_prerequisite_graph.py
from app.services.prerequisite_graph import build_graph, reachable, would_create_cycle


def test_build_graph_groups_requirements():
    graph = build_graph([("C", "B"), ("C", "A"), ("B", "A")])
    assert graph == {"C": {"A", "B"}, "B": {"A"}}


def test_chain_closing_edge_is_a_cycle():
    # A <- B <- C : adding A -> C closes the loop
    graph = build_graph([("B", "A"), ("C", "B")])

    assert would_create_cycle(graph, ("A", "C"))
    assert not would_create_cycle(graph, ("C", "A"))


def test_self_edge_is_a_cycle():
    assert would_create_cycle({}, ("A", "A"))


def test_diamond_is_not_a_cycle():
    graph = build_graph([("D", "B"), ("D", "C"), ("B", "A"), ("C", "A")])
    assert not would_create_cycle(graph, ("D", "A"))
    assert reachable(graph, "D", "A")
    assert not reachable(graph, "A", "D")


def test_long_chain_does_not_recurse():
    edges = [(i + 1, i) for i in range(5000)]
    graph = build_graph(edges)

    assert would_create_cycle(graph, (0, 5000))
