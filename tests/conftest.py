"""
Shared graph fixtures.
"""

import pytest

from temporal_graph_models import TemporalGraph


@pytest.fixture
def abc_graph() -> TemporalGraph:
    """A→B weight 1 at {0, 2}; B→C weight 2 at {1, 3}"""
    return TemporalGraph.build(
        ["A", "B", "C"],
        [("A", "B", 1, [0, 2]), ("B", "C", 2, [1, 3])],
        max_time=3
    )


@pytest.fixture
def path_graph() -> TemporalGraph:
    """1→2→3, every edge available at t=0"""
    return TemporalGraph.build(
        [1, 2, 3],
        [(1, 2, 1, [0]), (2, 3, 1, [0])],
        max_time=5
    )


@pytest.fixture
def detour_graph() -> TemporalGraph:
    """
    Direct A→C only at t=5; detour A→B→C arrives at t=1.
    D is isolated.
    """
    return TemporalGraph.build(
        ["A", "B", "C", "D"],
        [
            ("A", "C", 1, [5]),
            ("A", "B", 4, [0]),
            ("B", "C", 4, [1]),
        ],
        max_time=5
    )
