"""Pydantic schemas for the world map.

The runtime containers in ``world_map.py`` are plain
dataclasses tuned for the search loops. These models mirror them so map
snapshots and oracle payloads stay validated and serializable.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class CellKind(str, Enum):
    """Closed set of cell categories reported by the game oracle.

    Values are the wire tags. Tags outside this set parse to ``OTHER`` and
    the raw tag travels alongside the kind on the cell itself.
    """

    NONE = "NONE"
    COIN = "COLLECTIBLE_COIN"
    DYNAMITE = "COLLECTIBLE_DYNAMITE"
    WALL = "SOLID_WALL"
    ROCK = "SOLID_ROCK"
    START = "INFO_STARTPOS"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, type_name: Optional[str]) -> "CellKind":
        if not type_name:
            return cls.NONE
        try:
            return cls(type_name)
        except ValueError:
            return cls.OTHER

    @property
    def is_obstacle(self) -> bool:
        return self in (CellKind.WALL, CellKind.ROCK)

    @property
    def is_collectible(self) -> bool:
        return self in (CellKind.COIN, CellKind.DYNAMITE)


class RelativeCell(BaseModel):
    """One observation record, positioned relative to the agent."""

    x: int = Field(..., description="X offset from the agent at observation time")
    y: int = Field(..., description="Y offset from the agent at observation time")
    type_name: str = Field(CellKind.NONE.value, description="Raw wire type tag")
    name: str = Field("", description="Display name reported by the oracle")

    @property
    def kind(self) -> CellKind:
        return CellKind.parse(self.type_name)


class CellState(BaseModel):
    """Serializable form of a discovered cell."""

    x: int
    y: int
    type_name: str = CellKind.NONE.value
    name: str = ""


class BoundsState(BaseModel):
    """Serializable form of the explorable-region bounds (inclusive)."""

    min_x: int
    min_y: int
    max_x: int
    max_y: int


class WorldMapState(BaseModel):
    """Snapshot of a world map, keyed by world identifier in snapshot stores."""

    world_id: str = Field(..., description="Identifier of the world this map belongs to")
    bounds: BoundsState
    cells: List[CellState] = Field(
        default_factory=list,
        description="Discovered cells in absolute coordinates",
    )
    position: Optional[List[int]] = Field(
        None,
        description="Agent position when the snapshot was taken, as [x, y]",
    )
