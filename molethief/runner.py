"""
Async driver connecting an ExplorationController to a GameOracle.

The controller decides; the runner performs. For every ``ControllerAction``
the runner awaits the matching oracle call, logs it, sends the outcome back
into the controller and notifies any action listeners. When the episode ends
the discovered map is saved to the snapshot store (if one is configured).

Errors from the oracle (after ``RetryingOracle`` has given up) propagate to
the caller. The controller generator is closed first so the controller can
start a fresh episode afterwards.
"""

from __future__ import annotations

from typing import Callable, List, Optional

from .controller import (
    ActionKind,
    ControllerAction,
    Episode,
    EpisodeSummary,
    ExplorationController,
    OracleOutcome,
)
from .logging_utils import log_debug, log_error, log_info, log_oracle, log_success
from .oracle import GameOracle
from .session import GameSession
from .snapshots import MapSnapshotStore

ActionListener = Callable[[ControllerAction, OracleOutcome, ExplorationController], None]


class ExplorationRunner:
    """Runs solve and reveal episodes against an oracle."""

    def __init__(
        self,
        controller: ExplorationController,
        oracle: GameOracle,
        *,
        snapshot_store: Optional[MapSnapshotStore] = None,
        action_listeners: Optional[List[ActionListener]] = None,
    ) -> None:
        """
        Args:
            controller: Decision loop bound to a ``GameSession``.
            oracle: Game server (usually wrapped in ``RetryingOracle``).
            snapshot_store: Optional store receiving the map after each episode.
            action_listeners: Callables invoked after each action with the
                action, the oracle outcome and the controller. Useful for
                rendering or tests; exceptions they raise are logged and
                ignored.
        """
        self.controller = controller
        self.oracle = oracle
        self.snapshot_store = snapshot_store
        self.action_listeners = action_listeners or []

    @property
    def session(self) -> GameSession:
        return self.controller.session

    async def run(self) -> EpisodeSummary:
        """Play one solve episode to completion."""
        log_info(
            f"Solving world '{self.session.world_id}' with {self.controller.strategy.name} "
            f"(target {self.session.profile.target_kind.value})"
        )
        return await self._drive(self.controller.episode())

    async def reveal(self) -> EpisodeSummary:
        """Walk the whole reachable map without collecting, then save it."""
        log_info(f"Revealing world '{self.session.world_id}'")
        return await self._drive(self.controller.reveal())

    async def restore(self) -> bool:
        """Load a previously saved map for this world into the session."""
        if self.snapshot_store is None:
            return False
        state = await self.snapshot_store.load(self.session.world_id)
        if state is None:
            return False
        self.session.restore(state)
        log_info(f"Restored {len(state.cells)} cells for world '{self.session.world_id}'")
        return True

    async def _drive(self, episode: Episode) -> EpisodeSummary:
        try:
            action = next(episode)
            while True:
                outcome = await self._perform(action)
                self._notify(action, outcome)
                action = episode.send(outcome)
        except StopIteration as stop:
            summary: EpisodeSummary = stop.value
        except Exception as exc:
            log_error(f"Episode for world '{self.session.world_id}' aborted: {exc}")
            raise
        finally:
            episode.close()

        await self._save_snapshot()
        self._log_summary(summary)
        return summary

    async def _perform(self, action: ControllerAction) -> OracleOutcome:
        log_oracle(f"{action} at {self.session.position}")
        if action.kind == ActionKind.OBSERVE:
            outcome = await self.oracle.observe()
            log_debug(f"observe returned {len(outcome.cells)} cells")
        elif action.kind == ActionKind.MOVE:
            outcome = await self.oracle.move(action.dx, action.dy)
        elif action.kind == ActionKind.COLLECT:
            outcome = await self.oracle.collect()
            if outcome.accepted:
                log_success(f"Collected at {self.session.position}")
        elif action.kind == ActionKind.FINISH:
            outcome = await self.oracle.finish()
        else:  # pragma: no cover - enum is closed
            raise ValueError(f"Unsupported controller action {action.kind}")
        return outcome

    def _notify(self, action: ControllerAction, outcome: OracleOutcome) -> None:
        for listener in self.action_listeners:
            try:
                listener(action, outcome, self.controller)
            except Exception as exc:  # pragma: no cover - diagnostic hook
                log_error(f"Action listener failed: {exc}")

    async def _save_snapshot(self) -> None:
        if self.snapshot_store is None:
            return
        await self.snapshot_store.save(self.session.world_id, self.session.snapshot())
        log_debug(f"Saved snapshot for world '{self.session.world_id}'")

    def _log_summary(self, summary: EpisodeSummary) -> None:
        if summary.finished:
            log_success(f"Episode {summary.reason} for world '{summary.world_id}'")
        else:
            log_info(f"Episode ended for world '{summary.world_id}': {summary.reason}")
        log_info(
            f"Collected {summary.collected}, actions {summary.actions}, rejections {summary.rejections}, "
            f"cells known {summary.statistics.get('total', 0)}"
        )
