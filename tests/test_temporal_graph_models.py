"""
Tests for the temporal graph model: construction, validation, availability.
"""

import pytest

from temporal_graph_models import (
    TemporalGraph, TemporalEdge, AvailabilityInterval,
    GraphValidationError, NegativeWeightError, NodeNotFoundError
)


class TestAvailability:

    def test_next_available_returns_smallest_instant_not_before_t(self):
        edge = TemporalEdge(source="A", target="B", times=[4, 1, 7])
        assert edge.times == [1, 4, 7]
        assert edge.next_available(0) == 1
        assert edge.next_available(4) == 4
        assert edge.next_available(5) == 7
        assert edge.next_available(8) is None

    def test_is_available_only_at_listed_instants(self):
        edge = TemporalEdge(source="A", target="B", times=[0, 2])
        assert edge.is_available(0)
        assert not edge.is_available(1)
        assert edge.is_available(2)

    def test_interval_is_half_open(self):
        interval = AvailabilityInterval(start=2, end=5)
        assert interval.instants() == [2, 3, 4]
        assert interval.contains(2)
        assert not interval.contains(5)

    def test_weight_defaults_to_one(self):
        assert TemporalEdge(source=1, target=2, times=[0]).weight == 1


class TestBuild:

    def test_build_keeps_nodes_and_edges(self, abc_graph):
        assert abc_graph.nodes == ["A", "B", "C"]
        assert len(abc_graph.edges) == 2
        assert abc_graph.max_time == 3

    def test_unknown_endpoint_rejected(self):
        with pytest.raises(GraphValidationError):
            TemporalGraph.build(["A"], [("A", "Z", 1, [0])], max_time=3)

    def test_out_of_range_instants_filtered(self):
        graph = TemporalGraph.build(["A", "B"], [("A", "B", 1, [-1, 2, 9])], max_time=3)
        assert graph.edges[0].times == [2]

    def test_empty_availability_after_filtering_rejected(self):
        with pytest.raises(GraphValidationError):
            TemporalGraph.build(["A", "B"], [("A", "B", 1, [10, 11])], max_time=3)

    def test_negative_weight_rejected(self):
        with pytest.raises(NegativeWeightError):
            TemporalGraph.build(["A", "B"], [("A", "B", -1, [0])], max_time=3)

    @pytest.mark.parametrize("weight", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_weight_rejected(self, weight):
        with pytest.raises(GraphValidationError):
            TemporalGraph.build(["A", "B"], [("A", "B", weight, [0])], max_time=3)

    def test_fractional_instant_rejected(self):
        with pytest.raises(GraphValidationError):
            TemporalGraph.build(["A", "B"], [("A", "B", 1, [1.5])], max_time=3)

    def test_whole_float_instant_accepted(self):
        graph = TemporalGraph.build(["A", "B"], [("A", "B", 1, [2.0])], max_time=3)
        assert graph.edges[0].times == [2]

    def test_accepts_edge_objects(self):
        edge = TemporalEdge(source="A", target="B", weight=2, times=[1])
        graph = TemporalGraph.build(["A", "B"], [edge], max_time=3)
        assert graph.outgoing("A") == [edge]

    def test_parallel_edges_are_distinct(self):
        graph = TemporalGraph.build(
            ["A", "B"], [("A", "B", 1, [0]), ("A", "B", 1, [0])], max_time=1
        )
        assert len(graph.outgoing("A")) == 2


class TestMutation:

    def test_add_node_is_noop_for_existing(self, abc_graph):
        revision = abc_graph.revision
        assert abc_graph.add_node("A") is False
        assert abc_graph.nodes == ["A", "B", "C"]
        assert abc_graph.revision == revision

    def test_add_node_bumps_revision(self, abc_graph):
        revision = abc_graph.revision
        assert abc_graph.add_node("D") is True
        assert abc_graph.revision == revision + 1
        assert abc_graph.outgoing("D") == []

    def test_add_edge_requires_existing_endpoints(self, abc_graph):
        with pytest.raises(NodeNotFoundError):
            abc_graph.add_edge("A", "Z", times=[0])

    def test_add_edge_from_interval(self, abc_graph):
        edge = abc_graph.add_edge("C", "A", weight=3, interval=(1, 3))
        assert edge.times == [1, 2]
        assert abc_graph.outgoing("C") == [edge]
        assert abc_graph.incoming("A") == [edge]

    def test_add_edge_rejects_nan_weight(self, abc_graph):
        edges = list(abc_graph.edges)
        with pytest.raises(GraphValidationError):
            abc_graph.add_edge("A", "C", weight=float("nan"), times=[0])
        assert abc_graph.edges == edges

    def test_add_edge_rejects_fractional_interval(self, abc_graph):
        with pytest.raises(GraphValidationError):
            abc_graph.add_edge("A", "C", interval=(0.5, 2))

    def test_resolve_node_matches_decimal_label(self):
        graph = TemporalGraph.build(["1", "2"], [], max_time=1)
        assert graph.resolve_node(1) == "1"
        assert graph.resolve_node("2") == "2"
        assert graph.resolve_node(7) == 7

    def test_add_edge_needs_exactly_one_encoding(self, abc_graph):
        with pytest.raises(GraphValidationError):
            abc_graph.add_edge("A", "C")
        with pytest.raises(GraphValidationError):
            abc_graph.add_edge("A", "C", times=[0], interval=(0, 1))

    def test_outgoing_keeps_insertion_order(self, abc_graph):
        abc_graph.add_node("D")
        first = abc_graph.add_edge("A", "D", times=[1])
        second = abc_graph.add_edge("A", "C", times=[1])
        targets = [edge.target for edge in abc_graph.outgoing("A")]
        assert targets == ["B", "D", "C"]
        assert abc_graph.outgoing("A")[1:] == [first, second]

    def test_snapshot_is_independent(self, abc_graph):
        copy = abc_graph.snapshot()
        abc_graph.add_node("D")
        assert "D" not in copy.nodes
        assert not copy.has_node("D")


class TestSnapshotQueries:

    def test_active_edges_and_nodes(self, abc_graph):
        assert [(e.source, e.target) for e in abc_graph.active_edges(1)] == [("B", "C")]
        assert abc_graph.active_nodes(1) == ["B", "C"]
        assert abc_graph.active_nodes(0) == ["A", "B"]

    def test_temporal_degree(self, abc_graph):
        assert abc_graph.temporal_degree("B", 2) == (1, 0)
        assert abc_graph.temporal_degree("B", 3) == (0, 1)

    def test_temporal_degree_unknown_node(self, abc_graph):
        with pytest.raises(NodeNotFoundError):
            abc_graph.temporal_degree("Z", 0)

    def test_density(self, abc_graph):
        assert abc_graph.density == pytest.approx(2 / 6)
        assert TemporalGraph().density == 0.0
