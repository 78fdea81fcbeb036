"""
Temporal Graph Query Engine

Owns one TemporalGraph and exposes the query API on top of it, with
result caching keyed on the graph revision.
"""

import threading
import time
import logging
from typing import Optional, Dict, Any, Iterable, Tuple, Union

from temporal_graph_models import (
    NodeId, TemporalGraph, TemporalEdge, EarliestArrivalResult,
    TraversalMode, PathAlgorithm, PathResult, TraversalTrace,
    DepthFirstResult, GraphStatistics
)
from temporal_algorithms import (
    Heuristic,
    EarliestArrivalAlgorithm,
    WeightedPathFinder,
    TemporalCentralityCalculator,
    TraversalTraceRecorder
)
from graph_text_format import (
    GraphLoadReport, parse_graph_text, serialize_graph_text, load_graph_file
)
from caching import Cache
from config import Settings

logger = logging.getLogger(__name__)


class TemporalGraphEngine:
    """
    Query facade over a single temporal graph.

    Node ids are matched leniently: an integer id finds the node labelled
    with its decimal string, as produced by the text loader.

    Mutations and queries are serialized by a re-entrant lock, so a query
    always sees the graph as it was when the query started. Cached results
    are shared: treat returned objects as read-only.
    """

    def __init__(
        self,
        graph: Optional[TemporalGraph] = None,
        cache_size: int = 256,
        cache_ttl_seconds: float = 300,
        centrality_workers: Optional[int] = None
    ):
        self.graph = graph if graph is not None else TemporalGraph()
        self.query_cache = Cache(max_size=cache_size, ttl_seconds=cache_ttl_seconds)
        self.centrality_workers = centrality_workers
        self._lock = threading.RLock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "TemporalGraphEngine":
        engine = cls(
            cache_size=settings.cache_size,
            cache_ttl_seconds=settings.cache_ttl_seconds,
            centrality_workers=settings.centrality_workers
        )
        if settings.graph_file:
            engine.load_file(settings.graph_file, interval=settings.interval_edges)
        return engine

    # ==================== Loading & Mutation ====================

    def load_text(self, text: str, interval: bool = False) -> GraphLoadReport:
        """Replace the graph with one parsed from the text format"""
        report = parse_graph_text(text, interval=interval)
        self._replace_graph(report)
        return report

    def load_file(self, path: str, interval: bool = False) -> GraphLoadReport:
        report = load_graph_file(path, interval=interval)
        self._replace_graph(report)
        return report

    def _replace_graph(self, report: GraphLoadReport) -> None:
        with self._lock:
            self.graph = report.graph
            self.query_cache.clear()
        logger.info(
            "loaded graph: %d nodes, %d edges, max_time=%d, %d lines skipped",
            len(report.graph.nodes), len(report.graph.edges),
            report.graph.max_time, len(report.skipped)
        )

    def to_text(self) -> str:
        with self._lock:
            return serialize_graph_text(self.graph)

    def add_node(self, node: NodeId) -> bool:
        with self._lock:
            node = self._resolve(node)
            added = self.graph.add_node(node)
        if added:
            logger.info("added node %r", node)
        return added

    def add_edge(
        self,
        source: NodeId,
        target: NodeId,
        weight: Optional[float] = None,
        times: Optional[Iterable[int]] = None,
        interval: Optional[Tuple[int, int]] = None,
        create_missing: bool = False
    ) -> TemporalEdge:
        """
        Add an edge. With create_missing, unknown endpoints are added first
        (the convenience UI callers use when typing edges by hand).
        """
        with self._lock:
            source, target = self._resolve(source), self._resolve(target)
            if create_missing:
                self.graph.add_node(source)
                self.graph.add_node(target)
            edge = self.graph.add_edge(
                source, target, weight=weight, times=times, interval=interval
            )
        logger.info("added edge %r->%r at %s", source, target, edge.times)
        return edge

    # ==================== Querying ====================

    def _cached(self, key: Tuple, compute):
        with self._lock:
            full_key = key + (id(self.graph), self.graph.revision)
            cached = self.query_cache.get(full_key)
            if cached is not None:
                return cached

            started = time.perf_counter()
            result = compute()
            logger.debug(
                "%s computed in %.2f ms", key[0], (time.perf_counter() - started) * 1000
            )
            self.query_cache.set(full_key, result)
            return result

    def _resolve(self, node: NodeId) -> NodeId:
        with self._lock:
            return self.graph.resolve_node(node)

    def earliest_arrival(self, start: NodeId, start_time: int) -> EarliestArrivalResult:
        start = self._resolve(start)
        return self._cached(
            ("earliest_arrival", start, start_time),
            lambda: EarliestArrivalAlgorithm(self.graph).compute(start, start_time)
        )

    def earliest_path(self, start: NodeId, target: NodeId, start_time: int) -> PathResult:
        start, target = self._resolve(start), self._resolve(target)
        return self._cached(
            ("earliest_path", start, target, start_time),
            lambda: EarliestArrivalAlgorithm(self.graph).earliest_path(start, target, start_time)
        )

    def shortest_weighted(
        self,
        start: NodeId,
        target: NodeId,
        start_time: int,
        mode: Union[TraversalMode, str] = TraversalMode.FLOWING,
        algorithm: Union[PathAlgorithm, str] = PathAlgorithm.DIJKSTRA,
        heuristic: Optional[Heuristic] = None
    ) -> PathResult:
        """
        Weighted path query. algorithm="bfs" answers with the earliest
        arrival path instead (flowing time only).
        """
        start, target = self._resolve(start), self._resolve(target)
        mode = TraversalMode(mode)
        algorithm = PathAlgorithm(algorithm)

        if algorithm == PathAlgorithm.BFS:
            return self.earliest_path(start, target, start_time)

        def compute() -> PathResult:
            return WeightedPathFinder(self.graph).find(
                start, target, start_time, mode=mode, algorithm=algorithm, heuristic=heuristic
            )

        if heuristic is not None:
            with self._lock:
                return compute()

        return self._cached(
            ("shortest_weighted", start, target, start_time, mode, algorithm), compute
        )

    def is_temporally_connected(self, source: NodeId, target: NodeId, start_time: int) -> bool:
        with self._lock:
            source, target = self._resolve(source), self._resolve(target)
            return EarliestArrivalAlgorithm(self.graph).is_temporally_connected(
                source, target, start_time
            )

    def centrality(self, at_time: int) -> Dict[NodeId, int]:
        return self._cached(
            ("centrality", at_time),
            lambda: TemporalCentralityCalculator(self.graph).compute(
                at_time, max_workers=self.centrality_workers
            )
        )

    def record_traversal(self, start: NodeId, at_time: int) -> TraversalTrace:
        start = self._resolve(start)
        return self._cached(
            ("record_traversal", start, at_time),
            lambda: TraversalTraceRecorder(self.graph).record(start, at_time)
        )

    def depth_first(self, start: NodeId, at_time: int) -> DepthFirstResult:
        start = self._resolve(start)
        return self._cached(
            ("depth_first", start, at_time),
            lambda: TraversalTraceRecorder(self.graph).depth_first(start, at_time)
        )

    # ==================== Statistics ====================

    def get_statistics(self, at_time: Optional[int] = None) -> GraphStatistics:
        with self._lock:
            graph = self.graph
            stats = GraphStatistics(
                num_nodes=len(graph.nodes),
                num_edges=len(graph.edges),
                max_time=graph.max_time,
                density=graph.density,
                revision=graph.revision
            )
            if at_time is not None:
                stats.at_time = at_time
                stats.active_nodes = len(graph.active_nodes(at_time))
                stats.active_edges = len(graph.active_edges(at_time))
            return stats

    def cache_statistics(self) -> Dict[str, Any]:
        return self.query_cache.stats()


# ==================== Export ====================

__all__ = [
    'TemporalGraphEngine',
]
