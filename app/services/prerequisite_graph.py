# app/services/prerequisite_graph.py - Cycle detection over the prerequisite relation
from collections import defaultdict
from typing import Dict, Hashable, Iterable, Set, Tuple

Graph = Dict[Hashable, Set[Hashable]]


def build_graph(edges: Iterable[Tuple[Hashable, Hashable]]) -> Graph:
    """Adjacency map course -> set of courses it requires"""
    graph: Graph = defaultdict(set)
    for course, required in edges:
        graph[course].add(required)
    return dict(graph)


def reachable(graph: Graph, start: Hashable, target: Hashable) -> bool:
    """Depth-first search: is ``target`` reachable from ``start``?"""
    stack = [start]
    visited = set()
    while stack:
        node = stack.pop()
        if node == target:
            return True
        if node in visited:
            continue
        visited.add(node)
        stack.extend(graph.get(node, ()))
    return False


def would_create_cycle(graph: Graph, new_edge: Tuple[Hashable, Hashable]) -> bool:
    """
    Would adding ``course -> required`` close a loop?

    It does exactly when ``course`` is already reachable from ``required``
    (which includes the self-edge case).
    """
    course, required = new_edge
    return reachable(graph, required, course)
