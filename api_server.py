"""
FastAPI server exposing the Temporal Graph Query Engine
"""

import logging
from contextlib import asynccontextmanager
from typing import List, Optional, Dict, Tuple

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from config import get_settings
from log_config import configure_logging
from temporal_graph_engine import TemporalGraphEngine
from temporal_graph_models import (
    NodeId, TemporalGraph, TemporalEdge, EarliestArrivalResult, PathResult,
    TraversalMode, PathAlgorithm, TraversalTrace, GraphStatistics,
    GraphValidationError, NodeNotFoundError
)
from graph_text_format import SkippedLine

logger = logging.getLogger(__name__)

# ==================== Configuration ====================

settings = get_settings()
configure_logging(settings.log_level, settings.log_json)

# A single, global engine; tests swap it through dependency_overrides
engine = TemporalGraphEngine.from_settings(settings)


def get_engine() -> TemporalGraphEngine:
    return engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    stats = engine.get_statistics()
    logger.info(
        "Temporal Graph API starting: %d nodes, %d edges",
        stats.num_nodes, stats.num_edges
    )
    yield
    logger.info("Temporal Graph API shutting down")


app = FastAPI(
    title="Temporal Graph Query API",
    version="1.0.0",
    description="Earliest-arrival, weighted path, centrality and trace queries over a temporal graph.",
    lifespan=lifespan,
)


@app.exception_handler(NodeNotFoundError)
async def node_not_found_handler(request: Request, exc: NodeNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(GraphValidationError)
async def graph_validation_handler(request: Request, exc: GraphValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})

# ==================== API Models ====================

class GraphTextRequest(BaseModel):
    text: str
    interval: bool = False

class GraphLoadResponse(BaseModel):
    num_nodes: int
    num_edges: int
    max_time: int
    skipped: List[SkippedLine]

class NodeRequest(BaseModel):
    node: NodeId

class EdgeRequest(BaseModel):
    source: NodeId
    target: NodeId
    weight: Optional[float] = None
    times: Optional[List[int]] = None
    interval: Optional[Tuple[int, int]] = None
    create_missing: bool = False

class EarliestArrivalRequest(BaseModel):
    start: NodeId
    start_time: int = Field(default=0, ge=0)

class PathRequest(BaseModel):
    start: NodeId
    target: NodeId
    start_time: int = Field(default=0, ge=0)
    mode: TraversalMode = TraversalMode.FLOWING
    algorithm: PathAlgorithm = PathAlgorithm.DIJKSTRA

class TraceRequest(BaseModel):
    start: NodeId
    at_time: int = Field(default=0, ge=0)

# ==================== API Endpoints ====================

@app.get("/", tags=["General"])
def read_root(engine: TemporalGraphEngine = Depends(get_engine)):
    """Root endpoint with basic status."""
    return {
        "message": "Temporal Graph Query API is running",
        "stats": engine.get_statistics().model_dump()
    }

@app.get("/stats", response_model=GraphStatistics, tags=["General"])
def get_stats(
    at_time: Optional[int] = None,
    engine: TemporalGraphEngine = Depends(get_engine)
):
    """Graph size and density, plus active counts when at_time is given."""
    return engine.get_statistics(at_time)

@app.get("/graph", response_model=TemporalGraph, tags=["Graph"])
def get_graph(engine: TemporalGraphEngine = Depends(get_engine)):
    return engine.graph

@app.get("/graph/text", response_class=PlainTextResponse, tags=["Graph"])
def get_graph_text(engine: TemporalGraphEngine = Depends(get_engine)):
    return engine.to_text()

@app.put("/graph", response_model=GraphLoadResponse, tags=["Graph"])
def load_graph(request: GraphTextRequest, engine: TemporalGraphEngine = Depends(get_engine)):
    """
    Replaces the graph with one parsed from the text format.
    Malformed edge lines are skipped and listed in the response.
    """
    report = engine.load_text(request.text, interval=request.interval)
    return GraphLoadResponse(
        num_nodes=len(report.graph.nodes),
        num_edges=len(report.graph.edges),
        max_time=report.graph.max_time,
        skipped=report.skipped
    )

@app.post("/nodes", tags=["Graph"])
def add_node(request: NodeRequest, engine: TemporalGraphEngine = Depends(get_engine)):
    added = engine.add_node(request.node)
    return {"node": request.node, "added": added}

@app.post("/edges", response_model=TemporalEdge, status_code=201, tags=["Graph"])
def add_edge(request: EdgeRequest, engine: TemporalGraphEngine = Depends(get_engine)):
    return engine.add_edge(
        request.source,
        request.target,
        weight=request.weight,
        times=request.times,
        interval=request.interval,
        create_missing=request.create_missing
    )

@app.post("/query/earliest-arrival", response_model=EarliestArrivalResult, tags=["Querying"])
def query_earliest_arrival(
    request: EarliestArrivalRequest,
    engine: TemporalGraphEngine = Depends(get_engine)
):
    return engine.earliest_arrival(request.start, request.start_time)

@app.post("/query/path", response_model=PathResult, tags=["Querying"])
def query_path(request: PathRequest, engine: TemporalGraphEngine = Depends(get_engine)):
    """
    Point-to-point path. "No path" is a normal response with
    status = "no_path".
    """
    return engine.shortest_weighted(
        request.start,
        request.target,
        request.start_time,
        mode=request.mode,
        algorithm=request.algorithm
    )

@app.get("/query/centrality", response_model=Dict[str, int], tags=["Querying"])
def query_centrality(at_time: int = 0, engine: TemporalGraphEngine = Depends(get_engine)):
    return {str(node): score for node, score in engine.centrality(at_time).items()}

@app.post("/query/trace", response_model=TraversalTrace, tags=["Querying"])
def query_trace(request: TraceRequest, engine: TemporalGraphEngine = Depends(get_engine)):
    """Complete fixed-time BFS trace; replaying it is up to the client."""
    return engine.record_traversal(request.start, request.at_time)

# ==================== Main ====================

if __name__ == "__main__":
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
