"""Heuristic-guided (A*) search over the partially known grid.

Goals are ranked up front: known target cells, or unknown cells, by Manhattan
distance from the start. A* then finds the cheapest route to the first goal
it can reach, with straight steps costing 10 and diagonal steps 14.
"""

from __future__ import annotations

import heapq
import itertools
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Set, Tuple

from molethief.world import Bounds, CellKind, Coord, WorldMap

from .base import NEIGHBOR_OFFSETS, Path, PathfindingStrategy

STRAIGHT_COST = 10
DIAGONAL_COST = 14

DistanceFn = Callable[[Coord, Coord], int]


def octile_distance(a: Coord, b: Coord) -> int:
    """Cost of the cheapest obstacle-free 8-connected route from ``a`` to ``b``."""
    dx = abs(b[0] - a[0])
    dy = abs(b[1] - a[1])
    diagonal = min(dx, dy)
    return diagonal * DIAGONAL_COST + (max(dx, dy) - diagonal) * STRAIGHT_COST


def legacy_distance(a: Coord, b: Coord) -> int:
    """Reference formula built on differences of absolute coordinates.

    Sign-dependent and wrong for points on opposite sides of an axis. Kept so
    that paths recorded with the legacy client can be reproduced exactly.
    """
    dx = abs(a[0]) - abs(b[0])
    dy = abs(a[1]) - abs(b[1])
    remaining = abs(dx) - abs(dy)
    return abs(abs(dx) - abs(remaining)) * DIAGONAL_COST + abs(remaining) * STRAIGHT_COST


DISTANCE_METRICS: Dict[str, DistanceFn] = {
    "octile": octile_distance,
    "legacy": legacy_distance,
}


def manhattan(a: Coord, b: Coord) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


class AStarSearch(PathfindingStrategy):
    """A* with a configurable distance metric (``octile`` or ``legacy``)."""

    name = "astar"

    def __init__(self, metric: str = "octile") -> None:
        if metric not in DISTANCE_METRICS:
            raise ValueError(
                f"Unknown distance metric '{metric}'. Expected one of: {', '.join(DISTANCE_METRICS)}"
            )
        self.metric = metric
        self.distance: DistanceFn = DISTANCE_METRICS[metric]

    def find_path_to_type(
        self,
        world: WorldMap,
        target_kind: CellKind,
        start: Coord,
        bounds: Bounds,
    ) -> Optional[Path]:
        goals = self.targets_of_kind(world, target_kind, start, bounds)
        return self._first_reachable(world, start, goals, bounds, allow_unknown=False)

    def find_path_to_unknown(
        self,
        world: WorldMap,
        start: Coord,
        bounds: Bounds,
    ) -> Optional[Path]:
        goals = self.unknown_cells(world, start, bounds)
        return self._first_reachable(world, start, goals, bounds, allow_unknown=True)

    # ------------------------------------------------------------------
    # Goal selection
    # ------------------------------------------------------------------

    @staticmethod
    def targets_of_kind(world: WorldMap, kind: CellKind, start: Coord, bounds: Bounds) -> List[Coord]:
        """In-bounds cells of ``kind`` ordered by Manhattan distance (map order on ties)."""
        candidates = [
            cell.coord
            for cell in world.cells_of_kind(kind)
            if cell.coord != start and bounds.contains(cell.x, cell.y)
        ]
        return sorted(candidates, key=lambda coord: manhattan(coord, start))

    @staticmethod
    def unknown_cells(world: WorldMap, start: Coord, bounds: Bounds) -> Iterator[Coord]:
        """In-bounds unknown cells in rings of growing Manhattan distance.

        Within a ring the smallest x comes first, then the smallest y.
        """
        if bounds.is_empty:
            return
        area = (bounds.max_x - bounds.min_x + 1) * (bounds.max_y - bounds.min_y + 1)
        known_inside = sum(1 for cell in world if bounds.contains(cell.x, cell.y))
        if known_inside >= area:
            return

        sx, sy = start
        max_distance = max(abs(bounds.min_x - sx), abs(bounds.max_x - sx)) + max(
            abs(bounds.min_y - sy), abs(bounds.max_y - sy)
        )
        for d in range(1, max_distance + 1):
            for x in range(max(sx - d, bounds.min_x), min(sx + d, bounds.max_x) + 1):
                rest = d - abs(x - sx)
                for y in ((sy - rest, sy + rest) if rest else (sy,)):
                    if bounds.contains(x, y) and not world.is_known(x, y):
                        yield (x, y)

    @classmethod
    def nearest_of_kind(cls, world: WorldMap, kind: CellKind, start: Coord, bounds: Bounds) -> Optional[Coord]:
        return next(iter(cls.targets_of_kind(world, kind, start, bounds)), None)

    @classmethod
    def nearest_unknown(cls, world: WorldMap, start: Coord, bounds: Bounds) -> Optional[Coord]:
        return next(cls.unknown_cells(world, start, bounds), None)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def _first_reachable(
        self,
        world: WorldMap,
        start: Coord,
        goals: Iterable[Coord],
        bounds: Bounds,
        *,
        allow_unknown: bool,
    ) -> Optional[Path]:
        """Path to the first goal, in the given order, that A* can reach.

        The first failed search has explored everything reachable from
        ``start``; later goals outside that region are skipped without
        searching again.
        """
        reachable: Optional[Set[Coord]] = None
        for goal in goals:
            if reachable is not None and not self._touches(goal, reachable, allow_unknown):
                continue
            path, explored = self._search(world, start, goal, bounds, allow_unknown=allow_unknown)
            if path is not None:
                return path
            if reachable is None and explored is not None:
                reachable = explored
        return None

    @staticmethod
    def _touches(goal: Coord, reachable: Set[Coord], allow_unknown: bool) -> bool:
        if goal in reachable:
            return True
        if not allow_unknown:
            return False
        gx, gy = goal
        return any((gx + dx, gy + dy) in reachable for dx, dy in NEIGHBOR_OFFSETS)

    def _search(
        self,
        world: WorldMap,
        start: Coord,
        goal: Coord,
        bounds: Bounds,
        *,
        allow_unknown: bool,
    ) -> Tuple[Optional[Path], Optional[Set[Coord]]]:
        """Run A* from ``start`` to ``goal``.

        With ``allow_unknown`` the search may cross unknown in-bounds cells and
        stops as soon as ``goal`` is generated as a neighbour. Without it only
        known, open cells are traversed and the goal is accepted when popped.

        The open set is a heap keyed by ``(f, first-insertion order)`` with
        lazy deletion: among equal ``f`` values the node that entered the open
        set first is expanded first, even after its cost was lowered.

        Returns the path (or ``None``) and, when the open set ran dry, every
        cell that was expanded.
        """

        def walkable(x: int, y: int) -> bool:
            if not bounds.contains(x, y):
                return False
            if not world.is_known(x, y):
                return allow_unknown
            return not world.is_solid(x, y)

        counter = itertools.count()
        g_cost: Dict[Coord, int] = {start: 0}
        f_cost: Dict[Coord, int] = {start: self.distance(start, goal)}
        insertion: Dict[Coord, int] = {start: next(counter)}
        predecessors: Dict[Coord, Optional[Coord]] = {start: None}
        open_heap: List[Tuple[int, int, Coord]] = [(f_cost[start], insertion[start], start)]
        closed: Set[Coord] = set()
        expanded: Set[Coord] = set()

        while open_heap:
            f, _, current = heapq.heappop(open_heap)
            if current in closed or f != f_cost[current]:
                continue
            if current == goal:
                return self._finish(start, goal, predecessors), None
            closed.add(current)
            expanded.add(current)

            cx, cy = current
            for dx, dy in NEIGHBOR_OFFSETS:
                neighbor = (cx + dx, cy + dy)
                if not bounds.contains(*neighbor):
                    continue
                if allow_unknown and neighbor == goal:
                    predecessors[goal] = current
                    return self._finish(start, goal, predecessors), None
                if neighbor in closed:
                    continue
                if not walkable(*neighbor):
                    closed.add(neighbor)
                    continue

                tentative = g_cost[current] + self.distance(current, neighbor)
                if neighbor in g_cost and tentative >= g_cost[neighbor]:
                    continue
                g_cost[neighbor] = tentative
                f_cost[neighbor] = tentative + self.distance(neighbor, goal)
                predecessors[neighbor] = current
                if neighbor not in insertion:
                    insertion[neighbor] = next(counter)
                heapq.heappush(open_heap, (f_cost[neighbor], insertion[neighbor], neighbor))

        return None, expanded
