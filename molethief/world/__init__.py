"""World model: cells, bounds, the sparse map and the coordinate frame."""

from .schemas import (
    BoundsState,
    CellKind,
    CellState,
    RelativeCell,
    WorldMapState,
)
from .world_map import (
    DEFAULT_BOUND_EXTENT,
    TOTAL_KEY,
    Bounds,
    Cell,
    Coord,
    WorldMap,
)
from .frame import CoordinateFrame

__all__ = [
    "BoundsState",
    "CellKind",
    "CellState",
    "RelativeCell",
    "WorldMapState",
    "DEFAULT_BOUND_EXTENT",
    "TOTAL_KEY",
    "Bounds",
    "Cell",
    "Coord",
    "WorldMap",
    "CoordinateFrame",
]
