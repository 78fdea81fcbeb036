"""
Tests for the time-respecting BFS.
"""

import pytest

from temporal_algorithms import EarliestArrivalAlgorithm, earliest_arrival
from temporal_graph_models import (
    TemporalGraph, NodeNotFoundError, PathStatus, PathAlgorithm
)


def pairs(result):
    return [(entry.node, entry.time) for entry in result.order]


class TestEarliestArrival:

    def test_three_node_scenario(self, abc_graph):
        result = earliest_arrival(abc_graph, "A", 0)
        assert pairs(result) == [("A", 0), ("B", 0), ("C", 1)]
        assert result.arrival == {"A": 0, "B": 0, "C": 1}

    def test_later_start_waits_for_next_instant(self, abc_graph):
        result = earliest_arrival(abc_graph, "A", 1)
        assert result.arrival == {"A": 1, "B": 2, "C": 3}

    def test_start_recorded_once_even_on_cycles(self):
        graph = TemporalGraph.build(
            ["A", "B"], [("A", "B", 1, [0, 2]), ("B", "A", 1, [1, 3])], max_time=3
        )
        result = earliest_arrival(graph, "A", 0)
        starts = [entry for entry in result.order if entry.node == "A"]
        assert len(starts) == 1
        assert starts[0].time == 0
        assert all(entry.time >= 0 for entry in result.order)

    def test_arrival_is_minimum_over_walks(self, detour_graph):
        result = earliest_arrival(detour_graph, "A", 0)
        assert result.arrival["C"] == 1
        # the direct edge is found first and recorded, then improved upon
        assert pairs(result) == [("A", 0), ("C", 5), ("B", 0), ("C", 1)]

    def test_predecessors_follow_earliest_walk(self, detour_graph):
        result = earliest_arrival(detour_graph, "A", 0)
        path = result.path_to("C")
        assert [(p.node, p.time) for p in path] == [("A", 0), ("B", 0), ("C", 1)]

    def test_unreachable_node_absent(self, detour_graph):
        result = earliest_arrival(detour_graph, "A", 0)
        assert "D" not in result.arrival
        assert result.path_to("D") is None

    def test_nothing_reachable_after_last_instant(self, abc_graph):
        result = earliest_arrival(abc_graph, "A", 3)
        assert pairs(result) == [("A", 3)]

    def test_unknown_start(self, abc_graph):
        with pytest.raises(NodeNotFoundError):
            earliest_arrival(abc_graph, "Z", 0)


class TestEarliestPath:

    def test_path_and_cost(self, abc_graph):
        result = EarliestArrivalAlgorithm(abc_graph).earliest_path("A", "C", 0)
        assert result.status == PathStatus.FOUND
        assert result.algorithm == PathAlgorithm.BFS
        assert [(p.node, p.time) for p in result.path] == [("A", 0), ("B", 0), ("C", 1)]
        assert result.cost == 3
        assert result.arrival_time == 1

    def test_start_equals_target(self, abc_graph):
        result = EarliestArrivalAlgorithm(abc_graph).earliest_path("B", "B", 2)
        assert result.found
        assert [(p.node, p.time) for p in result.path] == [("B", 2)]
        assert result.cost == 0

    def test_no_path_is_a_result(self, abc_graph):
        result = EarliestArrivalAlgorithm(abc_graph).earliest_path("C", "A", 0)
        assert result.status == PathStatus.NO_PATH
        assert result.path == []
        assert result.cost is None

    def test_unknown_target(self, abc_graph):
        with pytest.raises(NodeNotFoundError):
            EarliestArrivalAlgorithm(abc_graph).earliest_path("A", "Z", 0)

    def test_temporal_connectivity(self, abc_graph):
        algo = EarliestArrivalAlgorithm(abc_graph)
        assert algo.is_temporally_connected("A", "C", 0)
        assert algo.is_temporally_connected("A", "C", 2)
        assert not algo.is_temporally_connected("A", "C", 3)
        assert not algo.is_temporally_connected("C", "A", 0)
