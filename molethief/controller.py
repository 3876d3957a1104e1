"""
Decision loop for one solve episode.

The controller never talks to the oracle itself. ``episode()`` and
``reveal()`` return generators that yield ``ControllerAction`` requests; the
driver (see ``runner.py``) performs each request and sends the oracle's
outcome back in. This keeps every decision synchronous and testable with
scripted outcomes, while the driver owns all suspension points.

State machine::

    SCANNING -> PURSUING | EXPLORING -> SCANNING ... -> ATTEMPTING_FINISH -> DONE

A failed finish drops back to SCANNING.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Generator, List, Optional, Tuple, Union

from pydantic import BaseModel, Field

from .logging_utils import log_debug, log_deterministic, log_error
from .oracle import CollectOutcome, FinishOutcome, MoveOutcome, Observation
from .pathfinding import BreadthFirstSearch, Path, PathfindingStrategy, waypoints
from .session import GameSession

DEFAULT_MAX_CONSECUTIVE_REJECTIONS = 5

REASON_FINISHED = "finished"
REASON_EXHAUSTED = "exhausted"
REASON_CANCELLED = "cancelled"
REASON_TOO_MANY_REJECTIONS = "too many rejections"
REASON_REVEALED = "map revealed"


class EpisodeAlreadyRunningError(RuntimeError):
    """Raised when an episode is started while another one is still running."""

    def __init__(self, world_id: str) -> None:
        self.world_id = world_id
        super().__init__(
            f"An episode for world '{world_id}' is already running.\n\n"
            "Remediation tips:\n"
            "  - Wait for the running episode to finish, or call cancel() on it\n"
            "  - Use a separate controller and session per concurrent game"
        )


class ControllerState(str, Enum):
    SCANNING = "scanning"
    PURSUING = "pursuing"
    EXPLORING = "exploring"
    ATTEMPTING_FINISH = "attempting_finish"
    DONE = "done"


class ActionKind(str, Enum):
    OBSERVE = "observe"
    MOVE = "move"
    COLLECT = "collect"
    FINISH = "finish"


@dataclass(frozen=True)
class ControllerAction:
    """A request for the driver to perform against the oracle."""

    kind: ActionKind
    dx: int = 0
    dy: int = 0

    @classmethod
    def observe(cls) -> "ControllerAction":
        return cls(ActionKind.OBSERVE)

    @classmethod
    def move(cls, dx: int, dy: int) -> "ControllerAction":
        return cls(ActionKind.MOVE, dx, dy)

    @classmethod
    def collect(cls) -> "ControllerAction":
        return cls(ActionKind.COLLECT)

    @classmethod
    def finish(cls) -> "ControllerAction":
        return cls(ActionKind.FINISH)

    def __str__(self) -> str:
        if self.kind == ActionKind.MOVE:
            return f"move({self.dx}, {self.dy})"
        return self.kind.value


OracleOutcome = Union[Observation, MoveOutcome, CollectOutcome, FinishOutcome]
Episode = Generator[ControllerAction, OracleOutcome, "EpisodeSummary"]


class ExplorationProgress(BaseModel):
    """Read-only view of a running episode, e.g. for a renderer."""

    state: ControllerState
    position: Tuple[int, int]
    path: List[Tuple[int, int]] = Field(default_factory=list, description="Absolute waypoints of the current path")
    collected: int = 0
    actions: int = 0
    statistics: Dict[str, int] = Field(default_factory=dict)


class EpisodeSummary(BaseModel):
    """Returned when an episode generator completes."""

    world_id: str
    finished: bool
    reason: str
    collected: int
    actions: int
    rejections: int
    position: Tuple[int, int]
    statistics: Dict[str, int] = Field(default_factory=dict)


class ExplorationController:
    """Chooses between known targets and frontier cells until the world is done."""

    def __init__(
        self,
        session: GameSession,
        strategy: PathfindingStrategy,
        *,
        max_consecutive_rejections: int = DEFAULT_MAX_CONSECUTIVE_REJECTIONS,
    ) -> None:
        if max_consecutive_rejections < 1:
            raise ValueError("max_consecutive_rejections must be at least 1")
        self.session = session
        self.strategy = strategy
        self.max_consecutive_rejections = max_consecutive_rejections

        self.state = ControllerState.DONE
        self.collected = 0
        self.actions = 0
        self.rejections = 0
        self._consecutive_rejections = 0
        self._current_path: List[Tuple[int, int]] = []
        self._failed_finish_at: Optional[Tuple[int, int]] = None
        self._pending_block: Optional[Tuple[int, int]] = None
        self._finished = False
        self._cancelled = False
        self._running = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def episode(self) -> Episode:
        """Generator for one solve episode. Returns an ``EpisodeSummary``."""
        if self._running:
            raise EpisodeAlreadyRunningError(self.session.world_id)
        return self._guarded(self._solve)

    def reveal(self) -> Episode:
        """Generator that walks to every reachable unknown cell without collecting.

        Always searches with BFS and looks around before every leg, whatever
        strategy the controller was built with.
        """
        if self._running:
            raise EpisodeAlreadyRunningError(self.session.world_id)
        return self._guarded(self._reveal)

    def cancel(self) -> None:
        """Ask the running episode to stop at the next step boundary."""
        self._cancelled = True

    @property
    def running(self) -> bool:
        return self._running

    def progress(self) -> ExplorationProgress:
        return ExplorationProgress(
            state=self.state,
            position=self.session.position,
            path=list(self._current_path),
            collected=self.collected,
            actions=self.actions,
            statistics=self.session.world_map.statistics(),
        )

    # ------------------------------------------------------------------
    # Episode bodies
    # ------------------------------------------------------------------

    def _guarded(self, body: Callable[[], Episode]) -> Episode:
        if self._running:
            raise EpisodeAlreadyRunningError(self.session.world_id)
        self._running = True
        self._reset_counters()
        try:
            return (yield from body())
        finally:
            self._running = False
            self._current_path = []

    def _reset_counters(self) -> None:
        self.state = ControllerState.SCANNING
        self.collected = 0
        self.actions = 0
        self.rejections = 0
        self._consecutive_rejections = 0
        self._failed_finish_at = None
        self._finished = False
        self._cancelled = False

    def _solve(self) -> Episode:
        profile = self.session.profile
        reason = REASON_EXHAUSTED

        self.state = ControllerState.SCANNING
        yield from self._observe()

        while True:
            stop = self._stop_reason()
            if stop:
                reason = stop
                break

            if self._may_attempt_finish():
                if (yield from self._finish()):
                    reason = REASON_FINISHED
                    break

            frontier_path = self._frontier_path()
            if not self.session.world_map.has_kind(profile.target_kind) and frontier_path is None:
                break

            target_path = self._target_path()
            if target_path is None:
                if self.session.known_diagonals() < profile.look_confidence_threshold:
                    self.state = ControllerState.SCANNING
                    yield from self._observe()
                target_path = self._target_path()
                frontier_path = self._frontier_path()
            elif len(target_path) > profile.change_to_unknown_threshold:
                if frontier_path is not None and len(frontier_path) < len(target_path):
                    log_debug(
                        f"Target path of {len(target_path)} steps exceeds "
                        f"{profile.change_to_unknown_threshold}; exploring {len(frontier_path)} steps instead"
                    )
                    target_path = None

            if target_path is not None:
                yield from self._follow(target_path, ControllerState.PURSUING)
            elif frontier_path is not None:
                if len(frontier_path) > profile.try_finish_threshold and self._may_attempt_finish(forced=True):
                    if (yield from self._finish()):
                        reason = REASON_FINISHED
                        break
                yield from self._follow(frontier_path, ControllerState.EXPLORING)
            else:
                log_deterministic("Known targets are unreachable and no frontier remains")
                break

        if reason == REASON_EXHAUSTED and not self._finished:
            if (yield from self._finish()):
                reason = REASON_FINISHED

        self.state = ControllerState.DONE
        return self._summary(reason)

    def _reveal(self) -> Episode:
        reason = REASON_REVEALED
        search = BreadthFirstSearch()

        while True:
            stop = self._stop_reason()
            if stop:
                reason = stop
                break
            self.state = ControllerState.SCANNING
            yield from self._observe()
            world = self.session.world_map
            path = search.find_path_to_unknown(world, self.session.position, world.bounds)
            if path is None:
                break
            yield from self._follow(path, ControllerState.EXPLORING, collect=False)

        self.state = ControllerState.DONE
        return self._summary(reason)

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def _target_path(self) -> Optional[Path]:
        world = self.session.world_map
        return self.strategy.find_path_to_type(
            world, self.session.profile.target_kind, self.session.position, world.bounds
        )

    def _frontier_path(self) -> Optional[Path]:
        return self.strategy.find_path_to_unknown(
            self.session.world_map, self.session.position, self.session.frontier_bounds()
        )

    def _may_attempt_finish(self, *, forced: bool = False) -> bool:
        """Whether a finish is worth asking for.

        After a refusal, the routine check waits until more targets were
        collected; a forced check (long frontier path) only waits until the
        map has grown.
        """
        if self.collected < self.session.profile.finish_target_count:
            return False
        if self._failed_finish_at is None:
            return True
        collected_then, known_then = self._failed_finish_at
        if self.collected > collected_then:
            return True
        return forced and len(self.session.world_map) > known_then

    def _stop_reason(self) -> Optional[str]:
        if self._cancelled:
            return REASON_CANCELLED
        if self._consecutive_rejections >= self.max_consecutive_rejections:
            return REASON_TOO_MANY_REJECTIONS
        return None

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _observe(self) -> Generator[ControllerAction, OracleOutcome, None]:
        outcome = yield ControllerAction.observe()
        self.actions += 1
        self.session.ingest_observation(outcome)

    def _follow(
        self,
        path: Path,
        state: ControllerState,
        *,
        collect: bool = True,
    ) -> Generator[ControllerAction, OracleOutcome, None]:
        self.state = state
        self._current_path = waypoints(self.session.position, path)
        target_kind = self.session.profile.target_kind
        try:
            for dx, dy in path:
                if self._stop_reason():
                    return
                if not (yield from self._move(dx, dy)):
                    yield from self._resync()
                    return
                if collect and self.session.current_kind() == target_kind:
                    if not (yield from self._collect()):
                        yield from self._resync()
                        return
        finally:
            self._current_path = []
            if self.state == state:
                self.state = ControllerState.SCANNING

    def _move(self, dx: int, dy: int) -> Generator[ControllerAction, OracleOutcome, bool]:
        x, y = self.session.position
        outcome: MoveOutcome = yield ControllerAction.move(dx, dy)
        self.actions += 1
        self.session.ingest_move(outcome)
        if outcome.accepted:
            self._consecutive_rejections = 0
            return True
        self._register_rejection(f"move({dx}, {dy})", outcome.reason)
        self._pending_block = (x + dx, y + dy)
        return False

    def _collect(self) -> Generator[ControllerAction, OracleOutcome, bool]:
        outcome: CollectOutcome = yield ControllerAction.collect()
        self.actions += 1
        self.session.consume_current()
        if outcome.accepted:
            self.collected += 1
            self._consecutive_rejections = 0
            return True
        self._register_rejection("collect", outcome.reason)
        return False

    def _finish(self) -> Generator[ControllerAction, OracleOutcome, bool]:
        self.state = ControllerState.ATTEMPTING_FINISH
        outcome: FinishOutcome = yield ControllerAction.finish()
        self.actions += 1
        if outcome.finished:
            self._finished = True
            return True
        log_deterministic(f"Finish refused after {self.collected} collected: {outcome.reason or 'targets remain'}")
        self._failed_finish_at = (self.collected, len(self.session.world_map))
        self.state = ControllerState.SCANNING
        return False

    def _resync(self) -> Generator[ControllerAction, OracleOutcome, None]:
        """Re-observe after a rejection so the map matches the server again."""
        pending, self._pending_block = self._pending_block, None
        if self._stop_reason():
            return
        self.state = ControllerState.SCANNING
        yield from self._observe()
        if pending is not None and not self.session.world_map.is_known(*pending):
            # Still unseen after a fresh look: treat it as impassable.
            self.session.block(*pending)

    def _register_rejection(self, action: str, reason: Optional[str]) -> None:
        self.rejections += 1
        self._consecutive_rejections += 1
        log_error(
            f"Oracle rejected {action}: {reason or 'no reason given'} "
            f"({self._consecutive_rejections}/{self.max_consecutive_rejections})"
        )

    def _summary(self, reason: str) -> EpisodeSummary:
        return EpisodeSummary(
            world_id=self.session.world_id,
            finished=self._finished,
            reason=reason,
            collected=self.collected,
            actions=self.actions,
            rejections=self.rejections,
            position=self.session.position,
            statistics=self.session.world_map.statistics(),
        )
