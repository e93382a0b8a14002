import itertools
import math
import random

import pytest

from src.app.errors import InvalidWeight, UnknownLocation
from src.app.models.domain import Edge, Location
from src.app.services.routing.graph import GraphSnapshot
from src.app.services.routing.shortest_path import dijkstra, shortest_path, shortest_paths_to


def _graph(codes, edges) -> GraphSnapshot:
    return GraphSnapshot.build(
        [Location(code=code, name=f"Area {code}") for code in codes],
        [Edge(source=a, target=b, distance=w) for a, b, w in edges],
    )


def _codes(path):
    return [location.code for location in path]


def test_prefers_shorter_two_hop_path_over_direct_edge():
    graph = _graph("ABCD", [("A", "B", 5), ("B", "C", 3), ("A", "C", 10)])

    tree = dijkstra(graph, "A")

    assert tree.distance_to("C") == 8
    assert _codes(tree.path_to("C")) == ["A", "B", "C"]
    assert tree.distance_to("A") == 0
    assert _codes(tree.path_to("A")) == ["A"]


def test_edges_are_traversable_in_both_directions():
    graph = _graph("ABC", [("A", "B", 5), ("B", "C", 3)])

    tree = dijkstra(graph, "C")

    assert tree.distance_to("A") == 8
    assert _codes(tree.path_to("A")) == ["C", "B", "A"]


def test_unreachable_nodes_keep_infinite_distance_and_no_path():
    graph = _graph("ABCD", [("A", "B", 5), ("B", "C", 3)])

    tree = dijkstra(graph, "A")

    assert math.isinf(tree.distance_to("D"))
    assert not tree.is_reachable("D")
    assert tree.path_to("D") == []
    assert tree.predecessors[graph.index_of("D")] is None


def test_empty_graph_raises_unknown_location():
    with pytest.raises(UnknownLocation):
        dijkstra(_graph("", []), "A")


def test_unknown_source_raises_unknown_location():
    graph = _graph("AB", [("A", "B", 1)])

    with pytest.raises(UnknownLocation) as excinfo:
        dijkstra(graph, "Z")

    assert excinfo.value.code == "Z"


def test_negative_weight_rejected_when_snapshot_is_built():
    with pytest.raises(InvalidWeight):
        _graph("AB", [("A", "B", -1)])


def test_negative_weight_rejected_during_search():
    locations = (Location("A", "A"), Location("B", "B"))
    graph = GraphSnapshot(
        locations=locations,
        index={"A": 0, "B": 1},
        adjacency=(((1, -2.0),), ((0, -2.0),)),
    )

    with pytest.raises(InvalidWeight):
        dijkstra(graph, "A")


def test_parallel_edges_use_smallest_weight():
    graph = _graph("AB", [("A", "B", 9), ("B", "A", 4), ("A", "B", 6)])

    assert dijkstra(graph, "A").distance_to("B") == 4


def test_directed_edge_is_one_way():
    graph = GraphSnapshot.build(
        [Location("A", "A"), Location("B", "B")],
        [Edge(source="A", target="B", distance=2, directed=True)],
    )

    assert dijkstra(graph, "A").distance_to("B") == 2
    assert math.isinf(dijkstra(graph, "B").distance_to("A"))


def test_equal_distances_finalize_in_discovery_order():
    first = _graph("SXY", [("S", "X", 1), ("S", "Y", 1)])
    swapped = _graph("SXY", [("S", "Y", 1), ("S", "X", 1)])

    assert [first.locations[i].code for i in dijkstra(first, "S").settled] == ["S", "X", "Y"]
    assert [swapped.locations[i].code for i in dijkstra(swapped, "S").settled] == ["S", "Y", "X"]


def test_equal_length_paths_keep_first_relaxed_predecessor():
    graph = _graph("SABT", [("S", "A", 1), ("S", "B", 1), ("A", "T", 1), ("B", "T", 1)])

    tree = dijkstra(graph, "S")

    assert tree.distance_to("T") == 2
    assert _codes(tree.path_to("T")) == ["S", "A", "T"]


def test_stop_predicate_ends_search_at_first_match():
    graph = _graph("ABCDE", [("A", "B", 1), ("B", "C", 1), ("C", "D", 1), ("D", "E", 1)])
    seen = []

    def _is_c_or_e(location):
        seen.append(location.code)
        return location.code in {"C", "E"}

    tree = dijkstra(graph, "A", stop_when=_is_c_or_e)

    assert tree.match.code == "C"
    assert seen == ["A", "B", "C"]
    assert len(tree.settled) == 3
    assert _codes(tree.path_to("C")) == ["A", "B", "C"]


def test_stop_predicate_with_tied_matches_picks_first_discovered():
    graph = _graph("SXY", [("S", "Y", 2), ("S", "X", 2)])

    tree = dijkstra(graph, "S", stop_when=lambda location: location.code in {"X", "Y"})

    assert tree.match.code == "Y"


def test_shortest_paths_to_target_set():
    graph = _graph("ABCDE", [("A", "B", 1), ("B", "C", 1), ("C", "D", 1), ("D", "E", 1)])

    tree = shortest_paths_to(graph, "A", ["B", "C"])

    assert tree.distance_to("B") == 1
    assert tree.distance_to("C") == 2
    settled = {graph.locations[i].code for i in tree.settled}
    assert "E" not in settled


def test_shortest_path_single_pair():
    graph = _graph("ABCD", [("A", "B", 5), ("B", "C", 3), ("A", "C", 10)])

    path, distance = shortest_path(graph, "A", "C")
    assert _codes(path) == ["A", "B", "C"]
    assert distance == 8

    path, distance = shortest_path(graph, "A", "D")
    assert path == []
    assert math.isinf(distance)


def _random_graph(seed: int, size: int = 6):
    rng = random.Random(seed)
    codes = [f"N{i}" for i in range(size)]
    edges = []
    for a, b in itertools.combinations(range(size), 2):
        if rng.random() < 0.45:
            edges.append((codes[a], codes[b], rng.randint(0, 20)))
    return codes, edges


def _brute_force_distance(codes, edges, source, target):
    weights = {}
    for a, b, w in edges:
        for key in ((a, b), (b, a)):
            weights[key] = min(w, weights.get(key, math.inf))
    if source == target:
        return 0
    others = [code for code in codes if code not in (source, target)]
    best = math.inf
    for count in range(len(others) + 1):
        for middle in itertools.permutations(others, count):
            route = [source, *middle, target]
            hops = [weights.get(pair) for pair in zip(route, route[1:])]
            if None not in hops:
                best = min(best, sum(hops))
    return best


@pytest.mark.parametrize("seed", range(25))
def test_distances_match_brute_force_enumeration(seed):
    codes, edges = _random_graph(seed)
    graph = _graph(codes, edges)
    source = codes[seed % len(codes)]

    tree = dijkstra(graph, source)

    for target in codes:
        expected = _brute_force_distance(codes, edges, source, target)
        assert tree.distance_to(target) == expected
        path = tree.path_to(target)
        if math.isinf(expected):
            assert path == []
            continue
        assert path[0].code == source and path[-1].code == target
        hop_total = sum(
            dict(graph.adjacency[graph.index_of(a.code)])[graph.index_of(b.code)]
            for a, b in zip(path, path[1:])
        )
        assert hop_total == expected
