"""
MoleThief Configuration

Loads configuration from environment variables with sensible defaults.
Library classes never read this directly; the CLI injects the values.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    # World selection
    WORLD_ID: str | None = os.getenv("MOLETHIEF_WORLD_ID")

    # Pathfinding
    ALGORITHM: str = os.getenv("MOLETHIEF_ALGORITHM", "bfs")
    DISTANCE_METRIC: str = os.getenv("MOLETHIEF_DISTANCE_METRIC", "octile")

    # Oracle geometry: Manhattan radius of observe, square radius of move answers
    LOOK_RADIUS: int = int(os.getenv("MOLETHIEF_LOOK_RADIUS", "5"))
    MOVE_RADIUS: int = int(os.getenv("MOLETHIEF_MOVE_RADIUS", "1"))
    INITIAL_BOUND: int = int(os.getenv("MOLETHIEF_INITIAL_BOUND", "999"))

    # Resilience
    ORACLE_RETRIES: int = int(os.getenv("MOLETHIEF_ORACLE_RETRIES", "3"))
    MAX_REJECTIONS: int = int(os.getenv("MOLETHIEF_MAX_REJECTIONS", "5"))

    # Storage
    SNAPSHOT_DIR: Path | None = Path(os.environ["MOLETHIEF_SNAPSHOT_DIR"]) if os.getenv("MOLETHIEF_SNAPSHOT_DIR") else None
    PROFILES_PATH: Path | None = Path(os.environ["MOLETHIEF_PROFILES"]) if os.getenv("MOLETHIEF_PROFILES") else None

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise errors for unusable values."""
        if cls.ALGORITHM.lower() not in ("bfs", "astar", "a*"):
            raise ValueError(
                f"MOLETHIEF_ALGORITHM must be 'bfs' or 'astar', got '{cls.ALGORITHM}'"
            )

        if cls.DISTANCE_METRIC not in ("octile", "legacy"):
            raise ValueError(
                f"MOLETHIEF_DISTANCE_METRIC must be 'octile' or 'legacy', got '{cls.DISTANCE_METRIC}'"
            )

        if cls.LOOK_RADIUS < 1 or cls.MOVE_RADIUS < 1:
            raise ValueError("MOLETHIEF_LOOK_RADIUS and MOLETHIEF_MOVE_RADIUS must be positive")

        if cls.ORACLE_RETRIES < 1:
            raise ValueError("MOLETHIEF_ORACLE_RETRIES must be at least 1")

        if cls.MAX_REJECTIONS < 1:
            raise ValueError("MOLETHIEF_MAX_REJECTIONS must be at least 1")

        if cls.PROFILES_PATH is not None and not cls.PROFILES_PATH.exists():
            raise ValueError(
                f"MOLETHIEF_PROFILES points to {cls.PROFILES_PATH}, which does not exist"
            )

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        lines = [
            "MoleThief Configuration:",
            f"  World: {cls.WORLD_ID or '(from map file)'}",
            f"  Algorithm: {cls.ALGORITHM} ({cls.DISTANCE_METRIC})",
            f"  Look/Move radius: {cls.LOOK_RADIUS}/{cls.MOVE_RADIUS}",
            f"  Initial bound: ±{cls.INITIAL_BOUND}",
            f"  Oracle retries: {cls.ORACLE_RETRIES}",
            f"  Max rejections: {cls.MAX_REJECTIONS}",
            f"  Snapshots: {cls.SNAPSHOT_DIR or '(disabled)'}",
        ]
        return "\n".join(lines)
