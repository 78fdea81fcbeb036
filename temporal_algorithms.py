"""
Temporal Graph Algorithms
Query algorithms over a TemporalGraph

Key algorithms implemented:
1. Earliest-Arrival Traversal - time-respecting BFS, O(|V|·α + |E|·α·log k)
2. Weighted Temporal Shortest Path - Dijkstra / A* over (node, time) states
3. Temporal Centrality - earliest-arrival reach from every node
4. Traversal Trace Recording - replayable fixed-time BFS for animation
"""

from typing import List, Optional, Dict, Set, Tuple, Callable, Union
from collections import deque
from concurrent.futures import ThreadPoolExecutor
import heapq
import itertools
import logging
import math

from temporal_graph_models import (
    NodeId, TemporalGraph, TimedNode, EarliestArrivalResult,
    TraversalMode, PathAlgorithm, PathResult, PathStatus,
    StepAction, TraversalStep, TraversalTrace, DepthFirstResult,
    NegativeWeightError
)

logger = logging.getLogger(__name__)

Heuristic = Callable[[NodeId], float]


class EarliestArrivalAlgorithm:
    """
    Time-respecting breadth-first search.

    From a source node at time t_start, computes the earliest time every
    other node can be reached. Edges have zero traversal time: an edge used
    at instant t delivers its target at t. Waiting at a node is free.

    This is BFS with hop count replaced by arrival time: a node is pushed
    again only when a strictly earlier arrival is found, so the frontier is
    finite and the start node is recorded exactly once.
    """

    def __init__(self, graph: TemporalGraph):
        self.graph = graph

    def compute(self, start: NodeId, start_time: int) -> EarliestArrivalResult:
        """
        Run the traversal from (start, start_time).

        Raises:
            NodeNotFoundError: start is not in the graph
        """
        self.graph.require_node(start)

        frontier = deque([(start, start_time)])
        visited: Set[Tuple[NodeId, int]] = set()
        arrival: Dict[NodeId, int] = {start: start_time}
        predecessor: Dict[NodeId, TimedNode] = {}
        order: List[TimedNode] = []

        while frontier:
            node, time = frontier.popleft()
            if (node, time) in visited:
                continue
            visited.add((node, time))
            order.append(TimedNode(node=node, time=time))

            for edge in self.graph.outgoing(node):
                departure = edge.next_available(time)
                if departure is None:
                    continue

                best = arrival.get(edge.target)
                if best is not None and departure >= best:
                    continue

                arrival[edge.target] = departure
                predecessor[edge.target] = TimedNode(node=node, time=time)
                frontier.append((edge.target, departure))

        logger.debug(
            "earliest arrival from %r@%d reached %d nodes in %d pops",
            start, start_time, len(arrival), len(order)
        )

        return EarliestArrivalResult(
            start=start,
            start_time=start_time,
            order=order,
            arrival=arrival,
            predecessor=predecessor
        )

    def earliest_path(
        self,
        start: NodeId,
        target: NodeId,
        start_time: int
    ) -> PathResult:
        """
        Earliest-arriving path from start to target.

        The cost reported is the total weight of the cheapest edge used on
        each hop; the path itself minimizes arrival time, not weight.
        """
        self.graph.require_node(target)
        result = self.compute(start, start_time)

        path = result.path_to(target)
        if path is None:
            return PathResult.no_path(
                start, target, start_time, TraversalMode.FLOWING, PathAlgorithm.BFS
            )

        return PathResult(
            status=PathStatus.FOUND,
            start=start,
            target=target,
            start_time=start_time,
            mode=TraversalMode.FLOWING,
            algorithm=PathAlgorithm.BFS,
            path=path,
            cost=self._path_cost(path)
        )

    def is_temporally_connected(
        self,
        source: NodeId,
        target: NodeId,
        start_time: int
    ) -> bool:
        """True if some time-respecting walk leads from source to target"""
        self.graph.require_node(target)
        return target in self.compute(source, start_time).arrival

    def _path_cost(self, path: List[TimedNode]) -> float:
        cost = 0.0
        for hop_from, hop_to in zip(path, path[1:]):
            cost += min(
                edge.weight
                for edge in self.graph.outgoing(hop_from.node)
                if edge.target == hop_to.node and edge.is_available(hop_to.time)
            )
        return cost


class StaticDistanceHeuristic:
    """
    Admissible A* heuristic: weighted distance to the target in the graph
    with all time constraints removed.

    Every time-respecting path is also a path of the time-free graph, so this
    never overestimates the remaining cost. It is also consistent, since
    h(u) <= w(u, v) + h(v) for every edge.
    """

    def __init__(self, graph: TemporalGraph, target: NodeId):
        self.target = target
        self.distances = self._reverse_dijkstra(graph, target)

    @staticmethod
    def _reverse_dijkstra(graph: TemporalGraph, target: NodeId) -> Dict[NodeId, float]:
        distances: Dict[NodeId, float] = {target: 0.0}
        counter = itertools.count()
        heap = [(0.0, next(counter), target)]

        while heap:
            dist, _, node = heapq.heappop(heap)
            if dist > distances[node]:
                continue
            for edge in graph.incoming(node):
                candidate = dist + edge.weight
                if candidate < distances.get(edge.source, math.inf):
                    distances[edge.source] = candidate
                    heapq.heappush(heap, (candidate, next(counter), edge.source))

        return distances

    def __call__(self, node: NodeId) -> float:
        return self.distances.get(node, math.inf)


def zero_heuristic(node: NodeId) -> float:
    return 0.0


class WeightedPathFinder:
    """
    Minimum-weight time-respecting paths (Dijkstra and A*).

    Search states are (node, time) pairs: in flowing mode a cheaper path
    that arrives later may miss edges that a costlier, earlier path can
    still use, so both must stay open. In snapshot mode time never moves
    and there is exactly one state per node.

    Priority is cost + heuristic(node); equal priorities pop in insertion
    order (first found wins).
    """

    def __init__(self, graph: TemporalGraph):
        self.graph = graph

    def find(
        self,
        start: NodeId,
        target: NodeId,
        start_time: int,
        mode: Union[TraversalMode, str] = TraversalMode.FLOWING,
        algorithm: Union[PathAlgorithm, str] = PathAlgorithm.DIJKSTRA,
        heuristic: Optional[Heuristic] = None
    ) -> PathResult:
        """
        Find the cheapest path from (start, start_time) to target.

        In snapshot mode `start_time` is the frozen instant every edge must
        be available at.

        Raises:
            NodeNotFoundError: start or target is not in the graph
            NegativeWeightError: some edge has negative weight
            ValueError: algorithm is not dijkstra or astar
        """
        mode = TraversalMode(mode)
        algorithm = PathAlgorithm(algorithm)
        if algorithm == PathAlgorithm.BFS:
            raise ValueError("use EarliestArrivalAlgorithm for bfs paths")

        self.graph.require_node(start)
        self.graph.require_node(target)
        if self.graph.has_negative_weight():
            raise NegativeWeightError("weighted search requires non-negative edge weights")

        if heuristic is None:
            if algorithm == PathAlgorithm.ASTAR:
                heuristic = StaticDistanceHeuristic(self.graph, target)
            else:
                heuristic = zero_heuristic

        origin = (start, start_time)
        cost: Dict[Tuple[NodeId, int], float] = {origin: 0.0}
        parent: Dict[Tuple[NodeId, int], Tuple[NodeId, int]] = {}
        counter = itertools.count()
        heap = [(heuristic(start), next(counter), 0.0, start, start_time)]
        expanded = 0

        while heap:
            _, _, g, node, time = heapq.heappop(heap)
            state = (node, time)
            if g > cost[state]:
                continue  # stale entry

            if node == target:
                logger.debug(
                    "%s %s path %r->%r found after %d expansions",
                    algorithm.value, mode.value, start, target, expanded
                )
                return PathResult(
                    status=PathStatus.FOUND,
                    start=start,
                    target=target,
                    start_time=start_time,
                    mode=mode,
                    algorithm=algorithm,
                    path=self._reconstruct(parent, state),
                    cost=g
                )

            expanded += 1
            for edge in self.graph.outgoing(node):
                if mode == TraversalMode.FLOWING:
                    departure = edge.next_available(time)
                    if departure is None:
                        continue
                elif edge.is_available(time):
                    departure = time
                else:
                    continue

                estimate = heuristic(edge.target)
                if estimate == math.inf:
                    continue

                successor = (edge.target, departure)
                candidate = g + edge.weight
                if candidate < cost.get(successor, math.inf):
                    cost[successor] = candidate
                    parent[successor] = state
                    heapq.heappush(
                        heap,
                        (candidate + estimate, next(counter), candidate, edge.target, departure)
                    )

        logger.debug(
            "%s %s search %r->%r exhausted after %d expansions",
            algorithm.value, mode.value, start, target, expanded
        )
        return PathResult.no_path(start, target, start_time, mode, algorithm)

    @staticmethod
    def _reconstruct(
        parent: Dict[Tuple[NodeId, int], Tuple[NodeId, int]],
        state: Tuple[NodeId, int]
    ) -> List[TimedNode]:
        path = [TimedNode(node=state[0], time=state[1])]
        while state in parent:
            state = parent[state]
            path.append(TimedNode(node=state[0], time=state[1]))
        path.reverse()
        return path


class TemporalCentralityCalculator:
    """
    Reachability centrality: how many other nodes each node can reach by a
    time-respecting walk starting at a given time.

    Cost is one earliest-arrival run per node. Runs share nothing but the
    read-only graph, so they can be spread over worker threads.
    """

    def __init__(self, graph: TemporalGraph):
        self.graph = graph
        self.earliest_arrival = EarliestArrivalAlgorithm(graph)

    def reachable_from(self, node: NodeId, at_time: int) -> List[NodeId]:
        """Distinct nodes reachable from node (excluding itself)"""
        reached = self.earliest_arrival.compute(node, at_time).arrival
        return [other for other in reached if other != node]

    def compute(
        self,
        at_time: int,
        max_workers: Optional[int] = None
    ) -> Dict[NodeId, int]:
        nodes = list(self.graph.nodes)

        def score(node: NodeId) -> int:
            return len(self.earliest_arrival.compute(node, at_time).arrival) - 1

        if max_workers and max_workers > 1 and len(nodes) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                scores = list(pool.map(score, nodes))
        else:
            scores = [score(node) for node in nodes]

        return dict(zip(nodes, scores))


class TraversalTraceRecorder:
    """
    Fixed-time traversals recorded for step-by-step visualization.

    Only edges available exactly at `at_time` are followed; time does not
    advance. Outgoing edges are visited in insertion order, which makes the
    recorded trace identical across runs.
    """

    def __init__(self, graph: TemporalGraph):
        self.graph = graph

    def record(self, start: NodeId, at_time: int) -> TraversalTrace:
        """
        Breadth-first traversal recording every frontier mutation.

        The first step is the start node taken off the frontier; after that
        there is one step per dequeue and one per enqueue.
        """
        self.graph.require_node(start)

        queue = deque([start])
        seen = {start}
        visited: List[NodeId] = [start]
        order: List[NodeId] = []
        steps: List[TraversalStep] = []

        while queue:
            current = queue.popleft()
            order.append(current)
            action = StepAction.DEQUEUE if steps else StepAction.START
            steps.append(self._step(steps, action, current, current, queue, visited))

            for edge in self.graph.outgoing(current):
                if edge.target in seen or not edge.is_available(at_time):
                    continue
                seen.add(edge.target)
                visited.append(edge.target)
                queue.append(edge.target)
                steps.append(
                    self._step(steps, StepAction.ENQUEUE, edge.target, current, queue, visited)
                )

        return TraversalTrace(
            start=start,
            at_time=at_time,
            order=order,
            visited=visited,
            steps=steps
        )

    @staticmethod
    def _step(
        steps: List[TraversalStep],
        action: StepAction,
        node: NodeId,
        current: NodeId,
        queue: deque,
        visited: List[NodeId]
    ) -> TraversalStep:
        return TraversalStep(
            index=len(steps),
            action=action,
            node=node,
            current_node=current,
            queue_snapshot=list(queue),
            visited_snapshot=list(visited)
        )

    def depth_first(self, start: NodeId, at_time: int) -> DepthFirstResult:
        """Depth-first traversal at a fixed time (preorder, insertion-ordered)"""
        self.graph.require_node(start)

        seen = {start}
        order = [start]
        tree_edges: List[Tuple[NodeId, NodeId]] = []
        stack = [(start, iter(self.graph.outgoing(start)))]

        while stack:
            node, edges = stack[-1]
            for edge in edges:
                if edge.target in seen or not edge.is_available(at_time):
                    continue
                seen.add(edge.target)
                order.append(edge.target)
                tree_edges.append((node, edge.target))
                stack.append((edge.target, iter(self.graph.outgoing(edge.target))))
                break
            else:
                stack.pop()

        return DepthFirstResult(
            start=start,
            at_time=at_time,
            order=order,
            tree_edges=tree_edges
        )


# ==================== Functional API ====================

def earliest_arrival(
    graph: TemporalGraph,
    start: NodeId,
    start_time: int
) -> EarliestArrivalResult:
    return EarliestArrivalAlgorithm(graph).compute(start, start_time)


def shortest_weighted(
    graph: TemporalGraph,
    start: NodeId,
    target: NodeId,
    start_time: int,
    mode: Union[TraversalMode, str] = TraversalMode.FLOWING,
    algorithm: Union[PathAlgorithm, str] = PathAlgorithm.DIJKSTRA,
    heuristic: Optional[Heuristic] = None
) -> PathResult:
    return WeightedPathFinder(graph).find(
        start, target, start_time, mode=mode, algorithm=algorithm, heuristic=heuristic
    )


def centrality(
    graph: TemporalGraph,
    at_time: int,
    max_workers: Optional[int] = None
) -> Dict[NodeId, int]:
    return TemporalCentralityCalculator(graph).compute(at_time, max_workers=max_workers)


def record_traversal(graph: TemporalGraph, start: NodeId, at_time: int) -> TraversalTrace:
    return TraversalTraceRecorder(graph).record(start, at_time)


# ==================== Export ====================

__all__ = [
    'Heuristic',
    'EarliestArrivalAlgorithm',
    'StaticDistanceHeuristic',
    'zero_heuristic',
    'WeightedPathFinder',
    'TemporalCentralityCalculator',
    'TraversalTraceRecorder',
    'earliest_arrival',
    'shortest_weighted',
    'centrality',
    'record_traversal',
]
