"""
MoleThief - fog-of-war maze exploration and coin collection.

Builds a map from partial observations, plans with BFS or A*, and decides
between chasing known coins and exploring the unknown.

No file I/O required. No global state. The game server is injected as a
``GameOracle``; storage is an optional ``MapSnapshotStore``.
"""

__version__ = "0.1.0"

from .world import (
    Bounds,
    Cell,
    CellKind,
    CoordinateFrame,
    RelativeCell,
    WorldMap,
    WorldMapState,
)
from .pathfinding import (
    AStarSearch,
    BreadthFirstSearch,
    MapInconsistencyError,
    PathfindingStrategy,
    get_strategy,
)
from .profiles import ExplorationProfile, ProfileError, load_profiles, profile_for
from .oracle import (
    CollectOutcome,
    FinishOutcome,
    GameOracle,
    MoveOutcome,
    Observation,
    OracleRejectedError,
    OracleUnavailableError,
    RetryingOracle,
)
from .session import GameSession
from .controller import (
    ActionKind,
    ControllerAction,
    ControllerState,
    EpisodeAlreadyRunningError,
    EpisodeSummary,
    ExplorationController,
    ExplorationProgress,
)
from .runner import ExplorationRunner
from .snapshots import InMemorySnapshotStore, JsonSnapshotStore, MapSnapshotStore, SnapshotFormatError
from .simulator import SimulatedOracle, SimulatedWorld

__all__ = [
    "Bounds",
    "Cell",
    "CellKind",
    "CoordinateFrame",
    "RelativeCell",
    "WorldMap",
    "WorldMapState",
    "AStarSearch",
    "BreadthFirstSearch",
    "MapInconsistencyError",
    "PathfindingStrategy",
    "get_strategy",
    "ExplorationProfile",
    "ProfileError",
    "load_profiles",
    "profile_for",
    "CollectOutcome",
    "FinishOutcome",
    "GameOracle",
    "MoveOutcome",
    "Observation",
    "OracleRejectedError",
    "OracleUnavailableError",
    "RetryingOracle",
    "GameSession",
    "ActionKind",
    "ControllerAction",
    "ControllerState",
    "EpisodeAlreadyRunningError",
    "EpisodeSummary",
    "ExplorationController",
    "ExplorationProgress",
    "ExplorationRunner",
    "InMemorySnapshotStore",
    "JsonSnapshotStore",
    "MapSnapshotStore",
    "SnapshotFormatError",
    "SimulatedOracle",
    "SimulatedWorld",
]
