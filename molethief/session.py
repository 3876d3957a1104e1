"""Per-episode game state: the coordinate frame, the world map and the profile.

One ``GameSession`` replaces what would otherwise be process-wide globals. The
controller and the runner share it; nothing else mutates it.
"""

from __future__ import annotations

from typing import List, Optional

from .logging_utils import log_debug, log_error
from .oracle import MoveOutcome, Observation
from .profiles import ExplorationProfile, profile_for
from .world import (
    DEFAULT_BOUND_EXTENT,
    Bounds,
    Cell,
    CellKind,
    Coord,
    CoordinateFrame,
    WorldMap,
    WorldMapState,
)

DEFAULT_LOOK_RADIUS = 5
DEFAULT_MOVE_RADIUS = 1


class GameSession:
    """Owns the agent position and everything learned about the world."""

    def __init__(
        self,
        world_id: Optional[str] = None,
        *,
        profile: Optional[ExplorationProfile] = None,
        look_radius: int = DEFAULT_LOOK_RADIUS,
        move_radius: int = DEFAULT_MOVE_RADIUS,
        initial_bound: int = DEFAULT_BOUND_EXTENT,
    ) -> None:
        if look_radius < 1 or move_radius < 1:
            raise ValueError("look_radius and move_radius must be positive")
        self.world_id = world_id or "default"
        self.profile = profile or profile_for(world_id)
        self.look_radius = look_radius
        self.move_radius = move_radius
        self.initial_bound = initial_bound
        self.frame = CoordinateFrame()
        self.world_map = WorldMap(bounds=Bounds.symmetric(initial_bound))

    @property
    def position(self) -> Coord:
        return self.frame.position

    def reset(self) -> None:
        """Forget the map and put the agent back at the origin."""
        self.frame.set_position(0, 0)
        self.world_map.reset(Bounds.symmetric(self.initial_bound))

    def restore(self, state: WorldMapState) -> None:
        """Load a previously saved map (and position, if recorded)."""
        self.world_map = WorldMap.from_state(state)
        if state.position is not None:
            self.frame.set_position(*state.position)

    def snapshot(self) -> WorldMapState:
        return self.world_map.to_state(self.world_id, self.position)

    # ------------------------------------------------------------------
    # Oracle responses
    # ------------------------------------------------------------------

    def ingest_observation(self, observation: Observation) -> List[Cell]:
        """Apply an observe result: resync, calibrate, merge, tighten bounds."""
        if observation.position is not None:
            self._resync(observation.position)
        self.frame.calibrate(observation.cells)
        cells = self.frame.to_absolute(observation.cells)
        self.world_map.merge(cells)
        self.world_map.adjust_bounds(self.position, self.look_radius)
        log_debug(f"Observed {len(cells)} cells at {self.position}; bounds {self.world_map.bounds}")
        return cells

    def ingest_move(self, outcome: MoveOutcome) -> Coord:
        """Apply a move result. Position only changes for accepted moves."""
        if outcome.accepted:
            self.frame.update_position(outcome.dx, outcome.dy)
        if outcome.position is not None:
            self._resync(outcome.position)
        if outcome.cells:
            self.frame.calibrate(outcome.cells)
            self.world_map.merge(self.frame.to_absolute(outcome.cells))
            self.world_map.adjust_bounds(self.position, self.move_radius)
        return self.position

    def _resync(self, reported: Coord) -> None:
        reported = (int(reported[0]), int(reported[1]))
        if reported != self.position:
            log_error(f"Position drift: tracked {self.position}, oracle reports {reported}; resyncing")
            self.frame.set_position(*reported)

    # ------------------------------------------------------------------
    # Queries for the controller
    # ------------------------------------------------------------------

    def current_kind(self) -> Optional[CellKind]:
        return self.world_map.kind_at(*self.position)

    def consume_current(self) -> None:
        self.world_map.mark_consumed(*self.position)

    def block(self, x: int, y: int) -> None:
        self.world_map.mark_blocked(x, y)

    def frontier_bounds(self) -> Bounds:
        """Bounds inset by the profile's ignore margins."""
        return self.world_map.bounds.inset(self.profile.ignore_unknown_x, self.profile.ignore_unknown_y)

    def known_diagonals(self) -> int:
        """How many of the four look-radius diagonal corners are already known."""
        x, y = self.position
        r = self.look_radius
        corners = ((x + r, y + r), (x - r, y + r), (x + r, y - r), (x - r, y - r))
        return sum(1 for cx, cy in corners if self.world_map.is_known(cx, cy))
