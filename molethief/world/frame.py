"""Relative-to-absolute coordinate conversion.

The oracle reports every cell relative to the agent. The frame owns the
agent's absolute position and anchors the absolute origin on the start
marker the first time it is seen.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from .schemas import CellKind, RelativeCell
from .world_map import Cell, Coord


class CoordinateFrame:
    """Tracks the agent's absolute position and translates observations."""

    def __init__(self, x: int = 0, y: int = 0) -> None:
        self.x = x
        self.y = y

    @property
    def position(self) -> Coord:
        return (self.x, self.y)

    def set_position(self, x: int, y: int) -> None:
        self.x = x
        self.y = y

    def update_position(self, dx: int, dy: int) -> Coord:
        """Apply a move the oracle has confirmed."""
        self.x += dx
        self.y += dy
        return self.position

    def calibrate(self, observations: Sequence[RelativeCell]) -> bool:
        """Anchor the origin on the start marker, if the batch contains one.

        The marker's relative offset is exactly the negated agent position in
        the marker-centred frame, so re-running this with any later batch that
        still sees the marker leaves the position unchanged.
        """
        for record in observations:
            if record.kind == CellKind.START:
                self.set_position(-record.x, -record.y)
                return True
        return False

    def to_absolute(self, observations: Iterable[RelativeCell]) -> List[Cell]:
        return [
            Cell.from_type_name(self.x + record.x, self.y + record.y, record.type_name, record.name)
            for record in observations
        ]

    def to_relative(self, x: int, y: int) -> Tuple[int, int]:
        return (x - self.x, y - self.y)
