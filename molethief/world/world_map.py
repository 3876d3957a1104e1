"""Sparse world map built from fog-of-war observations.

The map only stores what has been seen. A missing coordinate is unknown; a
coordinate outside ``bounds`` is unknown *and* unreachable. Bounds start at a
large symmetric range and shrink as observation batches expose the edge of
the world.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .schemas import BoundsState, CellKind, CellState, WorldMapState

Coord = Tuple[int, int]

DEFAULT_BOUND_EXTENT = 999
TOTAL_KEY = "total"


@dataclass
class Cell:
    """A discovered grid position in absolute coordinates."""

    x: int
    y: int
    kind: CellKind = CellKind.NONE
    type_name: str = CellKind.NONE.value
    name: str = ""

    @classmethod
    def from_type_name(cls, x: int, y: int, type_name: Optional[str], name: str = "") -> "Cell":
        kind = CellKind.parse(type_name)
        return cls(x=x, y=y, kind=kind, type_name=type_name or kind.value, name=name or "")

    @property
    def coord(self) -> Coord:
        return (self.x, self.y)

    @property
    def is_obstacle(self) -> bool:
        return self.kind.is_obstacle


@dataclass(frozen=True)
class Bounds:
    """Inclusive rectangle believed to contain the explorable world."""

    min_x: int = -DEFAULT_BOUND_EXTENT
    min_y: int = -DEFAULT_BOUND_EXTENT
    max_x: int = DEFAULT_BOUND_EXTENT
    max_y: int = DEFAULT_BOUND_EXTENT

    @classmethod
    def symmetric(cls, extent: int = DEFAULT_BOUND_EXTENT) -> "Bounds":
        return cls(-extent, -extent, extent, extent)

    def contains(self, x: int, y: int) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def inset(self, dx: int, dy: int) -> "Bounds":
        """Shrink by ``dx`` on both x edges and ``dy`` on both y edges."""
        return Bounds(self.min_x + dx, self.min_y + dy, self.max_x - dx, self.max_y - dy)

    @property
    def is_empty(self) -> bool:
        return self.min_x > self.max_x or self.min_y > self.max_y

    def to_state(self) -> BoundsState:
        return BoundsState(min_x=self.min_x, min_y=self.min_y, max_x=self.max_x, max_y=self.max_y)

    @classmethod
    def from_state(cls, state: BoundsState) -> "Bounds":
        return cls(state.min_x, state.min_y, state.max_x, state.max_y)


@dataclass
class WorldMap:
    """Mapping from absolute coordinates to discovered cells plus the bounds."""

    bounds: Bounds = field(default_factory=Bounds)
    cells: Dict[Coord, Cell] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.cells)

    def __contains__(self, coord: Coord) -> bool:
        return coord in self.cells

    def __iter__(self) -> Iterator[Cell]:
        return iter(self.cells.values())

    def reset(self, bounds: Optional[Bounds] = None) -> None:
        """Forget every cell and restore the initial bounds."""
        self.cells.clear()
        self.bounds = bounds or Bounds()

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def merge(self, cells: Iterable[Cell]) -> None:
        """Upsert a batch of cells. The last write for a coordinate wins."""
        for cell in cells:
            self.cells[(cell.x, cell.y)] = replace(cell)

    def mark_consumed(self, x: int, y: int) -> None:
        """Record that the collectible at ``(x, y)`` is gone."""
        previous = self.cells.get((x, y))
        name = previous.name if previous else ""
        self.cells[(x, y)] = Cell(x=x, y=y, kind=CellKind.NONE, type_name=CellKind.NONE.value, name=name)

    def mark_blocked(self, x: int, y: int) -> None:
        """Record an unseen cell the oracle refused to let us enter."""
        if (x, y) not in self.cells:
            self.cells[(x, y)] = Cell(x=x, y=y, kind=CellKind.WALL, type_name=CellKind.WALL.value, name="blocked")

    def adjust_bounds(self, center: Coord, scan_radius: int) -> Bounds:
        """Narrow the bounds toward gaps found along the axes of a fresh scan.

        For each axis direction the nearest distance ``i`` in ``1..scan_radius``
        whose cell is absent from the map marks the edge of the world, and the
        bound is pinned just inside it. Bounds never widen.
        """
        cx, cy = center
        bounds = self.bounds

        def nearest_gap(step_x: int, step_y: int) -> Optional[int]:
            for i in range(1, scan_radius + 1):
                if (cx + step_x * i, cy + step_y * i) not in self.cells:
                    return i
            return None

        min_x, min_y, max_x, max_y = bounds.min_x, bounds.min_y, bounds.max_x, bounds.max_y

        gap = nearest_gap(-1, 0)
        if gap is not None:
            min_x = max(min_x, cx - gap + 1)
        gap = nearest_gap(0, -1)
        if gap is not None:
            min_y = max(min_y, cy - gap + 1)
        gap = nearest_gap(1, 0)
        if gap is not None:
            max_x = min(max_x, cx + gap - 1)
        gap = nearest_gap(0, 1)
        if gap is not None:
            max_y = min(max_y, cy + gap - 1)

        self.bounds = Bounds(min_x, min_y, max_x, max_y)
        return self.bounds

    # ------------------------------------------------------------------
    # Queries (read-only during a search)
    # ------------------------------------------------------------------

    def get(self, x: int, y: int) -> Optional[Cell]:
        return self.cells.get((x, y))

    def is_known(self, x: int, y: int) -> bool:
        return (x, y) in self.cells

    def is_solid(self, x: int, y: int) -> bool:
        """True only for known walls and rocks; ignores bounds."""
        cell = self.cells.get((x, y))
        return cell is not None and cell.kind.is_obstacle

    def is_obstacle(self, x: int, y: int) -> bool:
        """Known wall/rock, or any coordinate outside the current bounds.

        Unknown in-bounds cells are not obstacles; callers decide whether an
        unknown cell is traversable.
        """
        if not self.bounds.contains(x, y):
            return True
        return self.is_solid(x, y)

    def kind_at(self, x: int, y: int) -> Optional[CellKind]:
        cell = self.cells.get((x, y))
        return cell.kind if cell else None

    def cells_of_kind(self, kind: CellKind) -> List[Cell]:
        return [cell for cell in self.cells.values() if cell.kind == kind]

    def has_kind(self, kind: CellKind) -> bool:
        return any(cell.kind == kind for cell in self.cells.values())

    def statistics(self) -> Dict[str, int]:
        """Count discovered cells per type name, plus a ``total`` entry."""
        stats: Dict[str, int] = dict(Counter(cell.type_name for cell in self.cells.values()))
        stats[TOTAL_KEY] = len(self.cells)
        return stats

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def to_state(self, world_id: str, position: Optional[Coord] = None) -> WorldMapState:
        return WorldMapState(
            world_id=world_id,
            bounds=self.bounds.to_state(),
            cells=[
                CellState(x=cell.x, y=cell.y, type_name=cell.type_name, name=cell.name)
                for cell in self.cells.values()
            ],
            position=list(position) if position is not None else None,
        )

    @classmethod
    def from_state(cls, state: WorldMapState) -> "WorldMap":
        world = cls(bounds=Bounds.from_state(state.bounds))
        world.merge(Cell.from_type_name(c.x, c.y, c.type_name, c.name) for c in state.cells)
        return world
