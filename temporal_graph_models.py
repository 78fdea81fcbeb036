"""
Temporal Graph Query Engine - Data Models

Key concepts:
- Temporal graph: directed, weighted graph whose edges are usable only at
  specific discrete time instants
- Time-respecting walk: each hop departs no earlier than the previous arrival
- Earliest arrival: minimum time a node can be reached from (source, t0)
- Snapshot mode: the graph frozen at one instant
- Flowing mode: time advances hop by hop
"""

from typing import List, Optional, Dict, Tuple, Any, Iterable, Union
from bisect import bisect_left
from enum import Enum
import math

from pydantic import BaseModel, Field, PrivateAttr, ValidationError, field_validator


NodeId = Union[int, str]


# ==================== Errors ====================

class TemporalGraphError(Exception):
    """Base class for all engine errors"""


class GraphValidationError(TemporalGraphError, ValueError):
    """Malformed graph description or edge"""


class NegativeWeightError(GraphValidationError):
    """Edge weight below zero (Dijkstra / A* precondition)"""


class NodeNotFoundError(TemporalGraphError, KeyError):
    """Query or mutation references a node absent from the graph"""

    def __init__(self, node: NodeId):
        super().__init__(node)
        self.node = node

    def __str__(self) -> str:
        return f"node {self.node!r} not found in graph"


# ==================== Availability ====================

class AvailabilityInterval(BaseModel):
    """
    Half-open interval [start, end) of instants at which an edge is usable.
    Only an input encoding: edges always store the expanded instant set.
    """
    start: int
    end: int

    def instants(self) -> List[int]:
        return list(range(self.start, self.end))

    def contains(self, time: int) -> bool:
        return self.start <= time < self.end


def normalize_instants(times: Iterable[int], max_time: int) -> List[int]:
    """
    Sort, de-duplicate and clamp instants to [0, max_time].

    Raises:
        GraphValidationError: an instant is not a whole number
    """
    instants = set()
    for t in times:
        if isinstance(t, float) and not t.is_integer():
            raise GraphValidationError(f"time instant {t!r} is not an integer")
        t = int(t)
        if 0 <= t <= max_time:
            instants.add(t)
    return sorted(instants)


class TemporalEdge(BaseModel):
    """
    Directed edge usable at a sorted set of instants.
    Parallel edges are distinct objects; equality is by value.
    """
    source: NodeId
    target: NodeId
    weight: float = Field(default=1.0, ge=0.0)
    times: List[int]

    @field_validator("times")
    @classmethod
    def _sorted_unique(cls, value: List[int]) -> List[int]:
        return sorted(set(value))

    def is_available(self, time: int) -> bool:
        """Check if the edge can be traversed exactly at `time`"""
        i = bisect_left(self.times, time)
        return i < len(self.times) and self.times[i] == time

    def next_available(self, time: int) -> Optional[int]:
        """Smallest instant >= time at which the edge is usable"""
        i = bisect_left(self.times, time)
        if i == len(self.times):
            return None
        return self.times[i]

    @property
    def first_time(self) -> int:
        return self.times[0]

    @property
    def last_time(self) -> int:
        return self.times[-1]


EdgeSpec = Union[TemporalEdge, Tuple[NodeId, NodeId, Optional[float], Iterable[int]]]


# ==================== Temporal Graph ====================

class TemporalGraph(BaseModel):
    """
    Temporal graph (nodes, edges, max_time).

    Invariants held by every mutation:
    - every edge endpoint is a node of the graph
    - every availability instant lies in [0, max_time]
    - every weight is >= 0
    Nodes keep insertion order; edges may be parallel.
    """
    nodes: List[NodeId] = Field(default_factory=list)
    edges: List[TemporalEdge] = Field(default_factory=list)
    max_time: int = Field(default=0, ge=0)
    revision: int = 0

    _node_set: set = PrivateAttr(default_factory=set)
    _adjacency: Dict[NodeId, List[TemporalEdge]] = PrivateAttr(default_factory=dict)
    _incoming: Dict[NodeId, List[TemporalEdge]] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        self._reindex()

    def _reindex(self) -> None:
        self._node_set = set()
        self._adjacency = {}
        self._incoming = {}
        for node in self.nodes:
            self._node_set.add(node)
            self._adjacency.setdefault(node, [])
            self._incoming.setdefault(node, [])
        for edge in self.edges:
            self._adjacency.setdefault(edge.source, []).append(edge)
            self._incoming.setdefault(edge.target, []).append(edge)

    # ---------- Construction ----------

    @classmethod
    def build(
        cls,
        nodes: Iterable[NodeId],
        edges: Iterable[EdgeSpec],
        max_time: int
    ) -> 'TemporalGraph':
        """
        Build a validated graph.

        Raises:
            GraphValidationError: an edge references an unknown node, has a
                negative weight, or has no instant left in [0, max_time]
        """
        if max_time < 0:
            raise GraphValidationError(f"max_time must be >= 0, got {max_time}")

        graph = cls(max_time=max_time)
        for node in nodes:
            graph.add_node(node)

        for spec in edges:
            if isinstance(spec, TemporalEdge):
                source, target, weight, times = (
                    spec.source, spec.target, spec.weight, spec.times
                )
            else:
                source, target, weight, times = spec
            try:
                graph.add_edge(source, target, weight=weight, times=times)
            except NodeNotFoundError as e:
                raise GraphValidationError(
                    f"edge {source!r}->{target!r} references unknown node {e.node!r}"
                ) from e

        graph.revision = 0
        return graph

    def has_node(self, node: NodeId) -> bool:
        return node in self._node_set

    def resolve_node(self, node: NodeId) -> NodeId:
        """
        Map a client-supplied id onto the stored one. Text-loaded graphs
        label nodes "1", "2", ..., so an integer 1 resolves to "1" when only
        the string form exists. Unknown ids are returned unchanged.
        """
        if node in self._node_set:
            return node
        if not isinstance(node, str) and str(node) in self._node_set:
            return str(node)
        return node

    def require_node(self, node: NodeId) -> None:
        if node not in self._node_set:
            raise NodeNotFoundError(node)

    def add_node(self, node: NodeId) -> bool:
        """Add node; no-op returning False if it already exists"""
        if node in self._node_set:
            return False
        self.nodes.append(node)
        self._node_set.add(node)
        self._adjacency[node] = []
        self._incoming[node] = []
        self.revision += 1
        return True

    def add_edge(
        self,
        source: NodeId,
        target: NodeId,
        weight: Optional[float] = None,
        times: Optional[Iterable[int]] = None,
        interval: Optional[Tuple[int, int]] = None
    ) -> TemporalEdge:
        """
        Add a directed edge between two existing nodes.

        Exactly one of `times` (explicit instants) or `interval`
        ([start, end), expanded to instants) must be given. Instants outside
        [0, max_time] are dropped.
        """
        self.require_node(source)
        self.require_node(target)

        if (times is None) == (interval is None):
            raise GraphValidationError("exactly one of times or interval is required")
        if interval is not None:
            try:
                times = AvailabilityInterval(start=interval[0], end=interval[1]).instants()
            except ValidationError as e:
                raise GraphValidationError(
                    f"edge {source!r}->{target!r} has a non-integer interval {interval!r}"
                ) from e

        if weight is None:
            weight = 1.0
        if not math.isfinite(weight):
            raise GraphValidationError(
                f"edge {source!r}->{target!r} has non-finite weight {weight}"
            )
        if weight < 0:
            raise NegativeWeightError(
                f"edge {source!r}->{target!r} has negative weight {weight}"
            )

        instants = normalize_instants(times, self.max_time)
        if not instants:
            raise GraphValidationError(
                f"edge {source!r}->{target!r} has no instant within [0, {self.max_time}]"
            )

        edge = TemporalEdge(source=source, target=target, weight=weight, times=instants)
        self.edges.append(edge)
        self._adjacency[source].append(edge)
        self._incoming[target].append(edge)
        self.revision += 1
        return edge

    def snapshot(self) -> 'TemporalGraph':
        """Independent copy sharing edge objects, for callers that mutate concurrently"""
        return TemporalGraph(
            nodes=list(self.nodes),
            edges=list(self.edges),
            max_time=self.max_time,
            revision=self.revision
        )

    # ---------- Traversal helpers ----------

    def outgoing(self, node: NodeId) -> List[TemporalEdge]:
        """Outgoing edges of node, in insertion order"""
        return self._adjacency.get(node, [])

    def incoming(self, node: NodeId) -> List[TemporalEdge]:
        return self._incoming.get(node, [])

    def active_edges(self, time: int) -> List[TemporalEdge]:
        """All edges usable at `time` (the graph's snapshot at that instant)"""
        return [edge for edge in self.edges if edge.is_available(time)]

    def active_nodes(self, time: int) -> List[NodeId]:
        """Nodes touched by at least one edge active at `time`"""
        touched = set()
        for edge in self.active_edges(time):
            touched.add(edge.source)
            touched.add(edge.target)
        return [node for node in self.nodes if node in touched]

    def temporal_degree(self, node: NodeId, time: int) -> Tuple[int, int]:
        """(in_degree, out_degree) counting only edges active at `time`"""
        self.require_node(node)
        in_degree = sum(1 for e in self.incoming(node) if e.is_available(time))
        out_degree = sum(1 for e in self.outgoing(node) if e.is_available(time))
        return in_degree, out_degree

    def has_negative_weight(self) -> bool:
        return any(edge.weight < 0 for edge in self.edges)

    @property
    def density(self) -> float:
        n = len(self.nodes)
        if n < 2:
            return 0.0
        return len(self.edges) / (n * (n - 1))


# ==================== Query Results ====================

class TimedNode(BaseModel):
    """A node together with the instant it is reached"""
    node: NodeId
    time: int


class EarliestArrivalResult(BaseModel):
    """
    Output of the time-respecting BFS.

    order: every (node, time) pair recorded, in frontier order
    arrival: earliest arrival time per reached node
    predecessor: node -> (previous node, time the previous node was left from)
    """
    start: NodeId
    start_time: int
    order: List[TimedNode] = Field(default_factory=list)
    arrival: Dict[NodeId, int] = Field(default_factory=dict)
    predecessor: Dict[NodeId, TimedNode] = Field(default_factory=dict)

    @property
    def reached(self) -> List[NodeId]:
        return list(self.arrival.keys())

    def path_to(self, target: NodeId) -> Optional[List[TimedNode]]:
        """Walk predecessor links back from target; None if unreached"""
        if target not in self.arrival:
            return None
        path = [TimedNode(node=target, time=self.arrival[target])]
        node = target
        while node in self.predecessor:
            node = self.predecessor[node].node
            path.append(TimedNode(node=node, time=self.arrival[node]))
        path.reverse()
        return path


class TraversalMode(str, Enum):
    """How time behaves along a path"""
    FLOWING = "flowing"    # edge used at its next available instant
    SNAPSHOT = "snapshot"  # every edge must be available at one fixed instant


class PathAlgorithm(str, Enum):
    BFS = "bfs"            # earliest arrival
    DIJKSTRA = "dijkstra"
    ASTAR = "astar"


class PathStatus(str, Enum):
    FOUND = "found"
    NO_PATH = "no_path"


class PathResult(BaseModel):
    """
    Result of a point-to-point query. "No path" is a normal outcome and is
    reported through `status`, never raised.
    """
    status: PathStatus
    start: NodeId
    target: NodeId
    start_time: int
    mode: TraversalMode = TraversalMode.FLOWING
    algorithm: PathAlgorithm = PathAlgorithm.DIJKSTRA
    path: List[TimedNode] = Field(default_factory=list)
    cost: Optional[float] = None
    diagnostic: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.status == PathStatus.FOUND

    @property
    def arrival_time(self) -> Optional[int]:
        return self.path[-1].time if self.path else None

    @classmethod
    def no_path(
        cls,
        start: NodeId,
        target: NodeId,
        start_time: int,
        mode: TraversalMode,
        algorithm: PathAlgorithm
    ) -> 'PathResult':
        return cls(
            status=PathStatus.NO_PATH,
            start=start,
            target=target,
            start_time=start_time,
            mode=mode,
            algorithm=algorithm,
            diagnostic=(
                f"no time-respecting path from {start!r} to {target!r} "
                f"starting at t={start_time} ({mode.value}, {algorithm.value})"
            )
        )


class StepAction(str, Enum):
    START = "start"
    DEQUEUE = "dequeue"
    ENQUEUE = "enqueue"


class TraversalStep(BaseModel):
    """One recorded mutation of the traversal frontier"""
    index: int
    action: StepAction
    node: NodeId  # dequeued or enqueued node
    current_node: NodeId
    queue_snapshot: List[NodeId]
    visited_snapshot: List[NodeId]

    model_config = {"frozen": True}


class TraversalTrace(BaseModel):
    """Complete, replayable fixed-time BFS trace"""
    start: NodeId
    at_time: int
    order: List[NodeId] = Field(default_factory=list)
    visited: List[NodeId] = Field(default_factory=list)
    steps: List[TraversalStep] = Field(default_factory=list)


class DepthFirstResult(BaseModel):
    """Fixed-time DFS: visit order plus tree edges used"""
    start: NodeId
    at_time: int
    order: List[NodeId] = Field(default_factory=list)
    tree_edges: List[Tuple[NodeId, NodeId]] = Field(default_factory=list)


class GraphStatistics(BaseModel):
    num_nodes: int
    num_edges: int
    max_time: int
    density: float
    revision: int
    at_time: Optional[int] = None
    active_nodes: Optional[int] = None
    active_edges: Optional[int] = None


# ==================== Export ====================

__all__ = [
    'NodeId',
    'TemporalGraphError',
    'GraphValidationError',
    'NegativeWeightError',
    'NodeNotFoundError',
    'AvailabilityInterval',
    'normalize_instants',
    'TemporalEdge',
    'EdgeSpec',
    'TemporalGraph',
    'TimedNode',
    'EarliestArrivalResult',
    'TraversalMode',
    'PathAlgorithm',
    'PathStatus',
    'PathResult',
    'StepAction',
    'TraversalStep',
    'TraversalTrace',
    'DepthFirstResult',
    'GraphStatistics',
]
