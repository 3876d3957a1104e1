"""
In-process game server for tests, demos and offline benchmarking.

Mazes are written as ASCII art:

    #   solid wall        R   solid rock
    c   coin              d   dynamite
    S   start marker      .   empty floor
    (space) outside the world

Row 0 is the northernmost row, so "north" is ``y - 1`` as on the real server.
Positions reported to the explorer are relative to the start marker.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .oracle import (
    CollectOutcome,
    FinishOutcome,
    GameOracle,
    MoveOutcome,
    Observation,
    OracleUnavailableError,
)
from .world import CellKind, Coord, RelativeCell, WorldMap

LEGEND: Dict[str, CellKind] = {
    "#": CellKind.WALL,
    "R": CellKind.ROCK,
    "c": CellKind.COIN,
    "d": CellKind.DYNAMITE,
    "S": CellKind.START,
    ".": CellKind.NONE,
}
_SYMBOLS: Dict[CellKind, str] = {kind: symbol for symbol, kind in LEGEND.items()}


class SimulatedWorld:
    """The hidden ground truth: every cell of one maze in grid coordinates."""

    def __init__(self, cells: Dict[Coord, CellKind], start: Coord) -> None:
        if start not in cells:
            raise ValueError(f"Start {start} is not inside the world")
        self.cells = dict(cells)
        self.start = start

    @classmethod
    def from_ascii(cls, rows: Union[str, Sequence[str]]) -> "SimulatedWorld":
        if isinstance(rows, str):
            rows = rows.splitlines()
        cells: Dict[Coord, CellKind] = {}
        start: Optional[Coord] = None
        for y, row in enumerate(rows):
            for x, symbol in enumerate(row):
                if symbol == " ":
                    continue
                if symbol not in LEGEND:
                    raise ValueError(f"Unknown map symbol {symbol!r} at column {x}, row {y}")
                kind = LEGEND[symbol]
                if kind == CellKind.START:
                    if start is not None:
                        raise ValueError(f"Second start marker at column {x}, row {y}")
                    start = (x, y)
                cells[(x, y)] = kind
        if start is None:
            raise ValueError("Map has no start marker 'S'")
        return cls(cells, start)

    @classmethod
    def load(cls, path: Union[Path, str]) -> "SimulatedWorld":
        return cls.from_ascii(Path(path).read_text("utf-8").splitlines())

    def kind_at(self, coord: Coord) -> Optional[CellKind]:
        return self.cells.get(coord)

    def count(self, kind: CellKind) -> int:
        return sum(1 for value in self.cells.values() if value == kind)

    @property
    def coins_remaining(self) -> int:
        return self.count(CellKind.COIN)


class SimulatedOracle(GameOracle):
    """Answers oracle calls from a ``SimulatedWorld``.

    Args:
        world: Maze to play. It is mutated as items are collected.
        look_radius: Manhattan radius of an observe.
        move_radius: Square radius of the neighbourhood returned by a move.
        report_position: Include the agent position (start-marker frame) in
            observe and move answers.
        transient_failures: Number of upcoming calls that raise
            ``OracleUnavailableError`` before being served.
    """

    def __init__(
        self,
        world: SimulatedWorld,
        *,
        look_radius: int = 5,
        move_radius: int = 1,
        report_position: bool = False,
        transient_failures: int = 0,
    ) -> None:
        self.world = world
        self.look_radius = look_radius
        self.move_radius = move_radius
        self.report_position = report_position
        self.transient_failures = transient_failures
        self.agent: Coord = world.start
        self.actions = 0
        self.calls = 0
        self.history: List[str] = []

    @property
    def position(self) -> Coord:
        """Agent position relative to the start marker."""
        return (self.agent[0] - self.world.start[0], self.agent[1] - self.world.start[1])

    async def observe(self) -> Observation:
        self._serve("observe")
        return Observation(
            cells=self._visible(self._diamond(self.look_radius)),
            position=self.position if self.report_position else None,
        )

    async def move(self, dx: int, dy: int) -> MoveOutcome:
        self._serve(f"move({dx}, {dy})")
        reason = self._move_rejection(dx, dy)
        if reason is None:
            self.agent = (self.agent[0] + dx, self.agent[1] + dy)
        return MoveOutcome(
            accepted=reason is None,
            dx=dx,
            dy=dy,
            cells=self._visible(self._square(self.move_radius)),
            position=self.position if self.report_position else None,
            reason=reason,
        )

    async def collect(self) -> CollectOutcome:
        self._serve("collect")
        kind = self.world.kind_at(self.agent)
        if kind is None or not kind.is_collectible:
            return CollectOutcome(accepted=False, reason="nothing to collect")
        self.world.cells[self.agent] = CellKind.NONE
        return CollectOutcome(accepted=True)

    async def finish(self) -> FinishOutcome:
        self._serve("finish")
        remaining = self.world.coins_remaining
        if remaining:
            return FinishOutcome(finished=False, reason=f"{remaining} coins remain")
        return FinishOutcome(finished=True)

    # ------------------------------------------------------------------

    def _serve(self, action: str) -> None:
        self.calls += 1
        if self.transient_failures > 0:
            self.transient_failures -= 1
            raise OracleUnavailableError(action=action, underlying=ConnectionError("simulated outage"))
        self.actions += 1
        self.history.append(action)

    def _move_rejection(self, dx: int, dy: int) -> Optional[str]:
        if max(abs(dx), abs(dy)) != 1:
            return "not an adjacent step"
        kind = self.world.kind_at((self.agent[0] + dx, self.agent[1] + dy))
        if kind is None:
            return "outside the world"
        if kind.is_obstacle:
            return "blocked"
        return None

    def _diamond(self, radius: int) -> Iterable[Tuple[int, int]]:
        for dy in range(-radius, radius + 1):
            rest = radius - abs(dy)
            for dx in range(-rest, rest + 1):
                yield dx, dy

    def _square(self, radius: int) -> Iterable[Tuple[int, int]]:
        for dy in range(-radius, radius + 1):
            for dx in range(-radius, radius + 1):
                yield dx, dy

    def _visible(self, offsets: Iterable[Tuple[int, int]]) -> List[RelativeCell]:
        records = []
        ax, ay = self.agent
        for dx, dy in offsets:
            kind = self.world.kind_at((ax + dx, ay + dy))
            if kind is None:
                continue
            records.append(RelativeCell(x=dx, y=dy, type_name=kind.value, name=kind.name.title()))
        return records


def render_ascii(world: WorldMap, position: Optional[Coord] = None, unknown: str = "?") -> str:
    """Draw a discovered map with the legend above; ``@`` marks the agent."""
    if not len(world):
        return ""
    xs = [cell.x for cell in world]
    ys = [cell.y for cell in world]
    lines = []
    for y in range(min(ys), max(ys) + 1):
        row = []
        for x in range(min(xs), max(xs) + 1):
            if position == (x, y):
                row.append("@")
                continue
            cell = world.get(x, y)
            row.append(_SYMBOLS.get(cell.kind, "o") if cell is not None else unknown)
        lines.append("".join(row))
    return "\n".join(lines)
