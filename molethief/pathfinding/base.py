"""Shared contract for the search strategies.

Both strategies search the 8-connected grid inside a caller-supplied
``Bounds`` and return a ``Path``: a tuple of unit steps ``(dx, dy)`` that,
applied one after another from the start, lands on the chosen target.
``None`` means no admissible target exists or none is reachable. A search
that would produce an empty path is reported as ``None`` too, because the
explorer always needs forward progress.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from molethief.logging_utils import log_error
from molethief.world import Bounds, CellKind, Coord, WorldMap

Step = Tuple[int, int]
Path = Tuple[Step, ...]

# West, northwest, southwest, east, northeast, southeast, north, south.
# North is y - 1. Ties between equal-length paths follow this order.
NEIGHBOR_OFFSETS: Tuple[Step, ...] = (
    (-1, 0),
    (-1, -1),
    (-1, 1),
    (1, 0),
    (1, -1),
    (1, 1),
    (0, -1),
    (0, 1),
)


class MapInconsistencyError(Exception):
    """Raised when a predecessor chain does not lead back to the start.

    Indicates a bug in the search bookkeeping, not an unreachable target.
    Strategies log it and report "no path".
    """

    def __init__(self, *, start: Coord, goal: Coord, broken_at: Coord) -> None:
        self.start = start
        self.goal = goal
        self.broken_at = broken_at
        super().__init__(
            f"Predecessor chain from {goal} broke at {broken_at} before reaching start {start}"
        )


def reconstruct_path(start: Coord, goal: Coord, predecessors: Dict[Coord, Optional[Coord]]) -> Path:
    """Walk predecessor links back from ``goal`` and return start-to-goal steps.

    Raises:
        MapInconsistencyError: If a coordinate other than the start has no
            recorded predecessor, or the chain loops.
    """
    steps: List[Step] = []
    current = goal
    seen = {goal}
    while current != start:
        previous = predecessors.get(current)
        if previous is None or previous in seen:
            raise MapInconsistencyError(start=start, goal=goal, broken_at=current)
        steps.append((current[0] - previous[0], current[1] - previous[1]))
        seen.add(previous)
        current = previous
    steps.reverse()
    return tuple(steps)


def apply_path(start: Coord, path: Path) -> Coord:
    """Return the coordinate reached by walking ``path`` from ``start``."""
    x, y = start
    for dx, dy in path:
        x += dx
        y += dy
    return (x, y)


def waypoints(start: Coord, path: Path) -> List[Coord]:
    """Absolute coordinates visited by ``path``, starting with ``start``."""
    points = [start]
    x, y = start
    for dx, dy in path:
        x += dx
        y += dy
        points.append((x, y))
    return points


class PathfindingStrategy(ABC):
    """Interface implemented by the BFS and A* searches.

    Implementations must keep all search state local to a call; the world map
    is only read.
    """

    name: str = "abstract"

    @abstractmethod
    def find_path_to_type(
        self,
        world: WorldMap,
        target_kind: CellKind,
        start: Coord,
        bounds: Bounds,
    ) -> Optional[Path]:
        """Path to the nearest cell of ``target_kind`` through known, open cells."""

    @abstractmethod
    def find_path_to_unknown(
        self,
        world: WorldMap,
        start: Coord,
        bounds: Bounds,
    ) -> Optional[Path]:
        """Path to the nearest in-bounds cell absent from ``world``."""

    def _finish(self, start: Coord, goal: Coord, predecessors: Dict[Coord, Optional[Coord]]) -> Optional[Path]:
        try:
            path = reconstruct_path(start, goal, predecessors)
        except MapInconsistencyError as exc:
            log_error(f"[{self.name}] {exc}")
            return None
        return path or None
