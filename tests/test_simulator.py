"""Tests for the in-process game server."""

import pytest

from molethief.simulator import SimulatedOracle, SimulatedWorld, render_ascii
from molethief.world import CellKind, CoordinateFrame, RelativeCell, WorldMap

CORRIDOR = [
    "#####",
    "#S.c#",
    "#####",
]


def test_from_ascii_parses_legend():
    world = SimulatedWorld.from_ascii("#R\ncd\nS.")

    assert world.start == (0, 2)
    assert world.kind_at((0, 0)) == CellKind.WALL
    assert world.kind_at((1, 0)) == CellKind.ROCK
    assert world.kind_at((0, 1)) == CellKind.COIN
    assert world.kind_at((1, 1)) == CellKind.DYNAMITE
    assert world.kind_at((1, 2)) == CellKind.NONE
    assert world.coins_remaining == 1


def test_from_ascii_rejects_bad_maps():
    with pytest.raises(ValueError, match="start"):
        SimulatedWorld.from_ascii(["..c"])
    with pytest.raises(ValueError, match="symbol"):
        SimulatedWorld.from_ascii(["S.x"])
    with pytest.raises(ValueError, match="Second start"):
        SimulatedWorld.from_ascii(["S.S"])


def test_spaces_are_outside_the_world():
    world = SimulatedWorld.from_ascii(["S. ."])

    assert world.kind_at((2, 0)) is None
    assert world.kind_at((3, 0)) == CellKind.NONE


@pytest.mark.asyncio
async def test_observe_returns_diamond_relative_to_agent():
    rows = ["." * 13] * 13
    rows = rows[:6] + ["......S......"] + rows[7:]
    oracle = SimulatedOracle(SimulatedWorld.from_ascii(rows))

    observation = await oracle.observe()

    assert len(observation.cells) == 61
    assert all(abs(c.x) + abs(c.y) <= 5 for c in observation.cells)
    start = [c for c in observation.cells if c.kind == CellKind.START]
    assert [(c.x, c.y) for c in start] == [(0, 0)]
    assert observation.position is None


@pytest.mark.asyncio
async def test_move_rules_and_position_reporting():
    oracle = SimulatedOracle(SimulatedWorld.from_ascii(CORRIDOR), report_position=True)

    blocked = await oracle.move(0, -1)
    assert (blocked.accepted, blocked.reason) == (False, "blocked")
    assert blocked.position == (0, 0)

    too_far = await oracle.move(2, 0)
    assert (too_far.accepted, too_far.reason) == (False, "not an adjacent step")

    stay = await oracle.move(0, 0)
    assert stay.accepted is False

    moved = await oracle.move(1, 0)
    assert moved.accepted is True
    assert moved.position == (1, 0)
    assert len(moved.cells) == 9
    assert {(c.x, c.y) for c in moved.cells} == {(dx, dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1)}


@pytest.mark.asyncio
async def test_move_off_the_world_is_rejected():
    oracle = SimulatedOracle(SimulatedWorld.from_ascii(["S."]))

    outcome = await oracle.move(-1, 0)

    assert outcome.reason == "outside the world"
    assert oracle.position == (0, 0)
    # Only cells that exist are reported.
    assert {(c.x, c.y) for c in outcome.cells} == {(0, 0), (1, 0)}


@pytest.mark.asyncio
async def test_collect_and_finish():
    world = SimulatedWorld.from_ascii(CORRIDOR)
    oracle = SimulatedOracle(world)

    assert (await oracle.collect()).accepted is False
    finish = await oracle.finish()
    assert finish.finished is False
    assert finish.reason == "1 coins remain"

    await oracle.move(1, 0)
    await oracle.move(1, 0)
    assert (await oracle.collect()).accepted is True
    assert world.coins_remaining == 0
    assert (await oracle.collect()).accepted is False
    assert (await oracle.finish()).finished is True

    assert oracle.actions == 7
    assert oracle.history[:3] == ["collect", "finish", "move(1, 0)"]


def test_render_ascii_marks_agent_and_unknowns():
    world = WorldMap()
    frame = CoordinateFrame()

    world.merge(
        frame.to_absolute(
            [
                RelativeCell(x=0, y=0, type_name="INFO_STARTPOS"),
                RelativeCell(x=1, y=0, type_name="COLLECTIBLE_COIN"),
                RelativeCell(x=0, y=1, type_name="SOLID_WALL"),
            ]
        )
    )

    assert render_ascii(world) == "Sc\n#?"
    assert render_ascii(world, position=(1, 0)) == "S@\n#?"
    assert render_ascii(WorldMap()) == ""
