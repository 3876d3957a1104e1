"""Tests for the sparse world map and its bounds."""

from molethief.world import Bounds, Cell, CellKind, WorldMap, WorldMapState


def row_of_floor(xs, y=0):
    return [Cell.from_type_name(x, y, "NONE") for x in xs]


def test_merge_is_idempotent():
    world = WorldMap()
    cells = row_of_floor(range(-2, 3)) + [Cell.from_type_name(0, 1, "SOLID_WALL")]

    world.merge(cells)
    first = dict(world.cells)
    world.merge(cells)

    assert world.cells == first
    assert len(world) == 6


def test_merge_last_write_wins():
    world = WorldMap()
    world.merge([Cell.from_type_name(3, 4, "COLLECTIBLE_COIN", "Coin")])
    world.merge([Cell.from_type_name(3, 4, "SOLID_ROCK", "Rock")])

    cell = world.get(3, 4)
    assert cell.kind == CellKind.ROCK
    assert cell.name == "Rock"


def test_merge_stores_copies():
    world = WorldMap()
    cell = Cell.from_type_name(1, 1, "NONE")
    world.merge([cell])
    cell.kind = CellKind.WALL

    assert world.kind_at(1, 1) == CellKind.NONE


def test_unknown_tags_keep_their_raw_name():
    world = WorldMap()
    world.merge([Cell.from_type_name(0, 0, "PORTAL_BLUE")])

    assert world.kind_at(0, 0) == CellKind.OTHER
    assert world.get(0, 0).type_name == "PORTAL_BLUE"
    assert world.statistics()["PORTAL_BLUE"] == 1


def test_mark_consumed_keeps_name():
    world = WorldMap()
    world.merge([Cell.from_type_name(2, 0, "COLLECTIBLE_COIN", "Gold")])

    world.mark_consumed(2, 0)

    cell = world.get(2, 0)
    assert cell.kind == CellKind.NONE
    assert cell.type_name == "NONE"
    assert cell.name == "Gold"
    assert not world.has_kind(CellKind.COIN)


def test_mark_blocked_only_affects_unknown_cells():
    world = WorldMap()
    world.merge([Cell.from_type_name(1, 0, "NONE")])

    world.mark_blocked(1, 0)
    world.mark_blocked(2, 0)

    assert world.kind_at(1, 0) == CellKind.NONE
    assert world.is_solid(2, 0)


def test_adjust_bounds_pins_edges_inside_gaps():
    world = WorldMap()
    world.merge(row_of_floor(range(-2, 6)))

    bounds = world.adjust_bounds((0, 0), 5)

    # West gap at x=-3, east has no gap within radius, north and south gaps at distance 1.
    assert bounds == Bounds(-2, 0, 999, 0)
    assert world.bounds == bounds


def test_adjust_bounds_never_widens():
    world = WorldMap()
    world.merge(row_of_floor(range(-2, 6)))
    world.adjust_bounds((0, 0), 5)

    world.merge([Cell.from_type_name(0, y, "NONE") for y in range(-4, 5)])
    world.merge(row_of_floor(range(-5, 0)))
    bounds = world.adjust_bounds((0, 0), 5)

    assert bounds.min_x >= -2
    assert bounds.min_y >= 0
    assert bounds.max_y <= 0
    assert bounds.max_x <= 999


def test_adjust_bounds_on_sequence_is_monotone():
    world = WorldMap()
    previous = world.bounds
    for center in [(0, 0), (3, 1), (-2, 4), (5, 5)]:
        world.merge([Cell.from_type_name(center[0] + dx, center[1], "NONE") for dx in range(-1, 2)])
        current = world.adjust_bounds(center, 1)
        assert current.min_x >= previous.min_x
        assert current.min_y >= previous.min_y
        assert current.max_x <= previous.max_x
        assert current.max_y <= previous.max_y
        previous = current


def test_is_obstacle_rules():
    world = WorldMap(bounds=Bounds(-3, -3, 3, 3))
    world.merge(
        [
            Cell.from_type_name(1, 0, "SOLID_WALL"),
            Cell.from_type_name(0, 1, "SOLID_ROCK"),
            Cell.from_type_name(-1, 0, "COLLECTIBLE_COIN"),
        ]
    )

    assert world.is_obstacle(1, 0)
    assert world.is_obstacle(0, 1)
    assert world.is_obstacle(4, 0)  # outside bounds, even though unknown
    assert not world.is_obstacle(-1, 0)
    assert not world.is_obstacle(2, 2)  # unknown but in bounds


def test_statistics_counts_per_type_and_total():
    world = WorldMap()
    world.merge(
        [
            Cell.from_type_name(0, 0, "INFO_STARTPOS"),
            Cell.from_type_name(1, 0, "COLLECTIBLE_COIN"),
            Cell.from_type_name(2, 0, "COLLECTIBLE_COIN"),
            Cell.from_type_name(3, 0, "SOLID_WALL"),
        ]
    )

    assert world.statistics() == {
        "INFO_STARTPOS": 1,
        "COLLECTIBLE_COIN": 2,
        "SOLID_WALL": 1,
        "total": 4,
    }


def test_state_round_trip():
    world = WorldMap(bounds=Bounds(-4, -2, 7, 9))
    world.merge(
        [
            Cell.from_type_name(0, 0, "INFO_STARTPOS", "Start"),
            Cell.from_type_name(5, -1, "COLLECTIBLE_DYNAMITE", "Boom"),
        ]
    )

    state = world.to_state("m02", position=(5, -1))
    restored = WorldMap.from_state(WorldMapState.model_validate_json(state.model_dump_json()))

    assert restored.bounds == world.bounds
    assert restored.cells == world.cells
    assert state.position == [5, -1]


def test_reset_clears_cells_and_bounds():
    world = WorldMap(bounds=Bounds(0, 0, 1, 1))
    world.merge(row_of_floor(range(2)))

    world.reset(Bounds.symmetric(50))

    assert len(world) == 0
    assert world.bounds == Bounds(-50, -50, 50, 50)


def test_bounds_inset_and_empty():
    bounds = Bounds(-10, -4, 10, 4)

    assert bounds.inset(5, 2) == Bounds(-5, -2, 5, 2)
    assert not bounds.inset(10, 4).is_empty
    assert bounds.inset(11, 0).is_empty
