"""
Textual temporal graph description

    line 1:        <nodeCount> <edgeCount> <maxTime>
    lines 2..m+1:  <src> <dst> <weight> <t1> [<t2> ...]

or, when loading with interval=True:

    lines 2..m+1:  <src> <dst> <weight> <startTime> <endTime>

where the interval is half-open, [startTime, endTime).

A bad header is fatal. A bad edge line is skipped and reported, and the
rest of the description still loads.
"""

from typing import List, Tuple
import logging
import math

from pydantic import BaseModel, Field

from temporal_graph_models import (
    NodeId, TemporalGraph, GraphValidationError, AvailabilityInterval,
    normalize_instants
)

logger = logging.getLogger(__name__)


class SkippedLine(BaseModel):
    """An edge line dropped during load"""
    line_number: int  # 1-based, counting the header
    text: str
    reason: str


class GraphLoadReport(BaseModel):
    graph: TemporalGraph
    node_count: int
    edge_count: int
    skipped: List[SkippedLine] = Field(default_factory=list)


def _node_sort_key(node: NodeId) -> Tuple[int, int, str]:
    text = str(node)
    if text.lstrip("-").isdigit():
        return (0, int(text), text)
    return (1, 0, text)


def _parse_header(line: str) -> Tuple[int, int, int]:
    parts = line.split()
    if len(parts) < 3:
        raise GraphValidationError(
            "header must be '<nodeCount> <edgeCount> <maxTime>'"
        )
    try:
        node_count, edge_count, max_time = (int(p) for p in parts[:3])
    except ValueError as e:
        raise GraphValidationError(f"non-numeric header field: {line!r}") from e
    if node_count < 0 or edge_count < 0 or max_time < 0:
        raise GraphValidationError(f"negative header field: {line!r}")
    return node_count, edge_count, max_time


def _parse_edge_line(
    parts: List[str],
    max_time: int,
    interval: bool
) -> Tuple[str, str, float, List[int]]:
    """Returns (src, dst, weight, instants) or raises GraphValidationError"""
    if len(parts) < 4:
        raise GraphValidationError("fewer than 4 fields")

    source, target = parts[0], parts[1]
    try:
        weight = float(parts[2])
    except ValueError as e:
        raise GraphValidationError(f"non-numeric weight {parts[2]!r}") from e
    if not math.isfinite(weight):
        raise GraphValidationError(f"non-finite weight {parts[2]!r}")
    if weight < 0:
        raise GraphValidationError(f"negative weight {parts[2]}")

    try:
        times = [int(p) for p in parts[3:]]
    except ValueError as e:
        raise GraphValidationError("non-numeric time field") from e

    if interval:
        if len(times) != 2:
            raise GraphValidationError("interval edge needs exactly <start> <end>")
        times = AvailabilityInterval(start=times[0], end=times[1]).instants()

    instants = normalize_instants(times, max_time)
    if not instants:
        raise GraphValidationError(f"no instant within [0, {max_time}]")

    return source, target, weight, instants


def parse_graph_text(text: str, interval: bool = False) -> GraphLoadReport:
    """
    Parse a textual description into a TemporalGraph.

    Node set is {"1".."nodeCount"} plus every edge endpoint, ordered
    numerically where possible. Parsing stops after edgeCount accepted edges.

    Raises:
        GraphValidationError: empty description or malformed header
    """
    lines = [(i + 1, line.strip()) for i, line in enumerate(text.splitlines())]
    lines = [(n, line) for n, line in lines if line]
    if not lines:
        raise GraphValidationError("empty graph description")

    node_count, edge_count, max_time = _parse_header(lines[0][1])

    edges: List[Tuple[str, str, float, List[int]]] = []
    skipped: List[SkippedLine] = []

    for line_number, line in lines[1:]:
        if len(edges) >= edge_count:
            break
        try:
            edges.append(_parse_edge_line(line.split(), max_time, interval))
        except GraphValidationError as e:
            logger.warning("skipping edge line %d (%r): %s", line_number, line, e)
            skipped.append(SkippedLine(line_number=line_number, text=line, reason=str(e)))

    if len(edges) < edge_count:
        logger.info("header announced %d edges, loaded %d", edge_count, len(edges))

    node_ids = {str(i) for i in range(1, node_count + 1)}
    for source, target, _, _ in edges:
        node_ids.add(source)
        node_ids.add(target)

    graph = TemporalGraph.build(sorted(node_ids, key=_node_sort_key), edges, max_time)

    return GraphLoadReport(
        graph=graph,
        node_count=node_count,
        edge_count=edge_count,
        skipped=skipped
    )


def _format_weight(weight: float) -> str:
    """Shortest text that parses back to the same float"""
    weight = float(weight)
    if weight.is_integer():
        return str(int(weight))
    return repr(weight)


def serialize_graph_text(graph: TemporalGraph) -> str:
    """
    Write a graph in the explicit-instant form.

    nodeCount is the longest prefix 1..k of numeric labels present, so
    re-parsing restores the same node set as long as every other node
    appears on some edge.
    """
    labels = {str(node) for node in graph.nodes}
    node_count = 0
    while str(node_count + 1) in labels:
        node_count += 1

    endpoints = {str(e.source) for e in graph.edges} | {str(e.target) for e in graph.edges}
    prefix = {str(i) for i in range(1, node_count + 1)}
    lost = labels - prefix - endpoints
    if lost:
        logger.warning("isolated nodes not representable in text form: %s", sorted(lost))

    lines = [f"{node_count} {len(graph.edges)} {graph.max_time}"]
    for edge in graph.edges:
        times = " ".join(str(t) for t in edge.times)
        lines.append(f"{edge.source} {edge.target} {_format_weight(edge.weight)} {times}")
    return "\n".join(lines) + "\n"


def load_graph_file(path: str, interval: bool = False) -> GraphLoadReport:
    with open(path, "r", encoding="utf-8") as f:
        return parse_graph_text(f.read(), interval=interval)


# ==================== Export ====================

__all__ = [
    'SkippedLine',
    'GraphLoadReport',
    'parse_graph_text',
    'serialize_graph_text',
    'load_graph_file',
]
