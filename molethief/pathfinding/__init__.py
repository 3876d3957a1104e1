"""Search strategies over the partially known world map."""

from .base import (
    NEIGHBOR_OFFSETS,
    MapInconsistencyError,
    Path,
    PathfindingStrategy,
    Step,
    apply_path,
    reconstruct_path,
    waypoints,
)
from .bfs import BreadthFirstSearch
from .astar import (
    DIAGONAL_COST,
    DISTANCE_METRICS,
    STRAIGHT_COST,
    AStarSearch,
    legacy_distance,
    manhattan,
    octile_distance,
)

ALGORITHMS = ("bfs", "astar")


def get_strategy(name: str, metric: str = "octile") -> PathfindingStrategy:
    """Build a strategy by name. ``metric`` only applies to ``astar``."""
    key = name.lower()
    if key == "bfs":
        return BreadthFirstSearch()
    if key in ("astar", "a*"):
        return AStarSearch(metric=metric)
    raise ValueError(f"Unknown pathfinding algorithm '{name}'. Expected one of: {', '.join(ALGORITHMS)}")


__all__ = [
    "NEIGHBOR_OFFSETS",
    "MapInconsistencyError",
    "Path",
    "PathfindingStrategy",
    "Step",
    "apply_path",
    "reconstruct_path",
    "waypoints",
    "BreadthFirstSearch",
    "AStarSearch",
    "DIAGONAL_COST",
    "STRAIGHT_COST",
    "DISTANCE_METRICS",
    "legacy_distance",
    "manhattan",
    "octile_distance",
    "ALGORITHMS",
    "get_strategy",
]
