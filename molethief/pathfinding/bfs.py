"""Unweighted breadth-first search over the partially known grid."""

from __future__ import annotations

from collections import deque
from typing import Callable, Deque, Dict, Optional, Set

from molethief.world import Bounds, CellKind, Coord, WorldMap

from .base import NEIGHBOR_OFFSETS, Path, PathfindingStrategy


class BreadthFirstSearch(PathfindingStrategy):
    """Fewest-steps search; every step costs the same, diagonals included."""

    name = "bfs"

    def find_path_to_type(
        self,
        world: WorldMap,
        target_kind: CellKind,
        start: Coord,
        bounds: Bounds,
    ) -> Optional[Path]:
        def is_target(coord: Coord) -> bool:
            return coord != start and world.kind_at(*coord) == target_kind

        # Unknown cells are never traversed when chasing a known target.
        def is_walkable(coord: Coord) -> bool:
            x, y = coord
            return bounds.contains(x, y) and world.is_known(x, y) and not world.is_solid(x, y)

        return self._search(start, is_walkable, target_on_dequeue=is_target)

    def find_path_to_unknown(
        self,
        world: WorldMap,
        start: Coord,
        bounds: Bounds,
    ) -> Optional[Path]:
        def is_frontier(coord: Coord) -> bool:
            x, y = coord
            return bounds.contains(x, y) and not world.is_known(x, y)

        def is_walkable(coord: Coord) -> bool:
            x, y = coord
            return bounds.contains(x, y) and not world.is_solid(x, y)

        return self._search(start, is_walkable, target_on_enqueue=is_frontier)

    def _search(
        self,
        start: Coord,
        is_walkable: Callable[[Coord], bool],
        *,
        target_on_dequeue: Optional[Callable[[Coord], bool]] = None,
        target_on_enqueue: Optional[Callable[[Coord], bool]] = None,
    ) -> Optional[Path]:
        """Run BFS from ``start``.

        ``target_on_dequeue`` is tested when a coordinate leaves the queue;
        ``target_on_enqueue`` is tested on each newly generated neighbour
        before it is queued, so the search ends at the first such neighbour
        rather than somewhere past it.
        """
        queue: Deque[Coord] = deque([start])
        visited: Set[Coord] = {start}
        predecessors: Dict[Coord, Optional[Coord]] = {start: None}

        while queue:
            current = queue.popleft()
            if target_on_dequeue is not None and target_on_dequeue(current):
                return self._finish(start, current, predecessors)

            cx, cy = current
            for dx, dy in NEIGHBOR_OFFSETS:
                neighbor = (cx + dx, cy + dy)
                if neighbor in visited:
                    continue
                if target_on_enqueue is not None and target_on_enqueue(neighbor):
                    predecessors[neighbor] = current
                    return self._finish(start, neighbor, predecessors)
                if not is_walkable(neighbor):
                    continue
                visited.add(neighbor)
                predecessors[neighbor] = current
                queue.append(neighbor)

        return None
