"""
GameOracle interface for the authoritative game server.

The oracle answers the four requests the explorer can make: observe (look
around), move one step, collect the item underneath, and finish the game.
Everything it reports about cells is relative to the agent; the explorer
owns the absolute frame.

Two failure modes are kept apart:
- Domain rejections (move into a wall, nothing to collect, coins left) come
  back as outcomes with ``accepted=False`` / ``finished=False`` and an opaque
  reason string. They are normal and never retried.
- Transport failures raise ``OracleUnavailableError``. ``RetryingOracle``
  retries those with tenacity before giving up.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from .logging_utils import log_error
from .world import RelativeCell


# =============================
# Exceptions
# =============================

class OracleRejectedError(Exception):
    """Raised by ``raise_for_rejection`` when the oracle refused an action."""

    def __init__(self, *, action: str, reason: Optional[str]) -> None:
        self.action = action
        self.reason = reason or "no reason given"
        super().__init__(f"Oracle rejected {action}: {self.reason}")


class OracleUnavailableError(Exception):
    """Raised when the oracle could not be reached or gave no usable answer."""

    def __init__(self, *, action: str, underlying: Optional[Exception] = None) -> None:
        self.action = action
        self.underlying = underlying
        message = f"Oracle unavailable during {action}"
        if underlying is not None:
            message += f": {underlying}"
        message += (
            "\n\nRemediation tips:\n"
            "  - Check that the game server is running and reachable\n"
            "  - Raise MOLETHIEF_ORACLE_RETRIES for flaky connections"
        )
        super().__init__(message)


# =============================
# Outcomes
# =============================

class Observation(BaseModel):
    """Result of an observe (look) request."""

    cells: List[RelativeCell] = Field(default_factory=list, description="Visible cells, relative to the agent")
    position: Optional[Tuple[int, int]] = Field(
        None,
        description="Agent position in the start-marker frame, if the oracle reports one",
    )


class MoveOutcome(BaseModel):
    """Result of a single-step move request."""

    accepted: bool
    dx: int
    dy: int
    cells: List[RelativeCell] = Field(default_factory=list, description="Cells visible after the move")
    position: Optional[Tuple[int, int]] = None
    reason: Optional[str] = None

    @classmethod
    def rejected(cls, dx: int, dy: int, reason: str) -> "MoveOutcome":
        return cls(accepted=False, dx=dx, dy=dy, reason=reason)

    def raise_for_rejection(self) -> None:
        if not self.accepted:
            raise OracleRejectedError(action=f"move({self.dx}, {self.dy})", reason=self.reason)


class CollectOutcome(BaseModel):
    """Result of a collect request."""

    accepted: bool
    reason: Optional[str] = None

    def raise_for_rejection(self) -> None:
        if not self.accepted:
            raise OracleRejectedError(action="collect", reason=self.reason)


class FinishOutcome(BaseModel):
    """Result of a finish request. ``finished=False`` means targets remain."""

    finished: bool
    reason: Optional[str] = None

    def raise_for_rejection(self) -> None:
        if not self.finished:
            raise OracleRejectedError(action="finish", reason=self.reason)


# =============================
# Interface
# =============================

class GameOracle(ABC):
    """Abstract game server. All calls are suspension points for the explorer."""

    @abstractmethod
    async def observe(self) -> Observation:
        """Return everything currently visible around the agent."""

    @abstractmethod
    async def move(self, dx: int, dy: int) -> MoveOutcome:
        """Move one step; ``dx`` and ``dy`` are in ``{-1, 0, 1}``."""

    @abstractmethod
    async def collect(self) -> CollectOutcome:
        """Collect the item on the agent's cell."""

    @abstractmethod
    async def finish(self) -> FinishOutcome:
        """Ask the server to end the game."""


class RetryingOracle(GameOracle):
    """Wraps an oracle and retries transport failures.

    Only ``OracleUnavailableError`` triggers a retry; rejections pass through
    untouched. After ``max_attempts`` the last error is re-raised.
    """

    def __init__(self, inner: GameOracle, *, max_attempts: int = 3, wait_seconds: float = 0.0) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.inner = inner
        self.max_attempts = max_attempts
        self.wait_seconds = wait_seconds

    async def _call(self, action: str, func, *args):
        attempt_number = 0
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(OracleUnavailableError),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.wait_seconds),
            reraise=True,
        ):
            with attempt:
                attempt_number += 1
                if attempt_number > 1:
                    log_error(f"Oracle retry {attempt_number}/{self.max_attempts} for {action}")
                return await func(*args)
        raise RuntimeError("Oracle retry mechanism exited unexpectedly")

    async def observe(self) -> Observation:
        return await self._call("observe", self.inner.observe)

    async def move(self, dx: int, dy: int) -> MoveOutcome:
        return await self._call(f"move({dx}, {dy})", self.inner.move, dx, dy)

    async def collect(self) -> CollectOutcome:
        return await self._call("collect", self.inner.collect)

    async def finish(self) -> FinishOutcome:
        return await self._call("finish", self.inner.finish)
