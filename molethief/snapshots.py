"""
MapSnapshotStore interface for saving discovered maps.

A snapshot is the ``WorldMapState`` of one world: bounds, every discovered
cell and, optionally, the agent position. Storage is optional; the explorer
runs fine without a store.

Two implementations:
1. InMemorySnapshotStore - dict-based, lost on exit (tests, prototyping)
2. JsonSnapshotStore - one human-readable JSON file per world

Usage pattern:
    store = JsonSnapshotStore("maps")
    await store.initialize()
    await store.save(world_id, session.snapshot())
    state = await store.load(world_id)
    await store.close()
"""

import asyncio
import json
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from .world import BoundsState, CellState, WorldMapState


class SnapshotFormatError(ValueError):
    """Raised when a snapshot file cannot be parsed."""


class MapSnapshotStore(ABC):
    """Abstract base class for map snapshot storage."""

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the backend (create directories, open connections)."""

    @abstractmethod
    async def close(self) -> None:
        """Release backend resources."""

    @abstractmethod
    async def save(self, world_id: str, state: WorldMapState) -> None:
        """Store the snapshot for ``world_id``, replacing any previous one."""

    @abstractmethod
    async def load(self, world_id: str) -> Optional[WorldMapState]:
        """Return the stored snapshot, or ``None`` if the world was never saved."""

    @abstractmethod
    async def list_worlds(self) -> List[str]:
        """World ids with a stored snapshot, sorted."""


class InMemorySnapshotStore(MapSnapshotStore):
    """Snapshots kept in a dict. Close does not clear them, so tests can read back."""

    def __init__(self) -> None:
        self.snapshots: Dict[str, WorldMapState] = {}

    async def initialize(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def save(self, world_id: str, state: WorldMapState) -> None:
        self.snapshots[world_id] = state.model_copy(deep=True)

    async def load(self, world_id: str) -> Optional[WorldMapState]:
        state = self.snapshots.get(world_id)
        return state.model_copy(deep=True) if state is not None else None

    async def list_worlds(self) -> List[str]:
        return sorted(self.snapshots)


class JsonSnapshotStore(MapSnapshotStore):
    """File-based snapshots, one pretty-printed JSON file per world.

    File layout (``{base_path}/map_{world_id}.json``)::

        {
          "world_id": "m01",
          "bounds": {"min_x": -12, "min_y": -7, "max_x": 30, "max_y": 18},
          "position": [4, -2],
          "cells": {
            "0,0": {"type": "INFO_STARTPOS", "name": "Start"},
            "1,0": {"type": "SOLID_WALL", "name": ""}
          }
        }

    Cells are keyed by ``"x,y"`` so the file stays readable and diffable.
    All file I/O runs in ``asyncio.to_thread``.
    """

    _UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")

    def __init__(self, base_path: Path | str = "maps"):
        self.base_path = Path(base_path)

    async def initialize(self) -> None:
        await asyncio.to_thread(self.base_path.mkdir, parents=True, exist_ok=True)

    async def close(self) -> None:
        return None

    async def save(self, world_id: str, state: WorldMapState) -> None:
        await asyncio.to_thread(self.base_path.mkdir, parents=True, exist_ok=True)
        data = self._encode(state)
        await asyncio.to_thread(self._path(world_id).write_text, json.dumps(data, indent=2), "utf-8")

    async def load(self, world_id: str) -> Optional[WorldMapState]:
        path = self._path(world_id)
        if not path.exists():
            return None
        text = await asyncio.to_thread(path.read_text, "utf-8")
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SnapshotFormatError(f"Snapshot {path} is not valid JSON: {exc}") from exc
        return self._decode(data, path)

    async def list_worlds(self) -> List[str]:
        if not self.base_path.exists():
            return []
        paths = await asyncio.to_thread(lambda: sorted(self.base_path.glob("map_*.json")))
        worlds = []
        for path in paths:
            text = await asyncio.to_thread(path.read_text, "utf-8")
            try:
                worlds.append(json.loads(text)["world_id"])
            except (json.JSONDecodeError, KeyError) as exc:
                raise SnapshotFormatError(f"Snapshot {path} is missing a world id") from exc
        return sorted(worlds)

    def _path(self, world_id: str) -> Path:
        return self.base_path / f"map_{self._UNSAFE.sub('_', world_id)}.json"

    @staticmethod
    def _encode(state: WorldMapState) -> dict:
        return {
            "world_id": state.world_id,
            "bounds": state.bounds.model_dump(),
            "position": state.position,
            "cells": {f"{c.x},{c.y}": {"type": c.type_name, "name": c.name} for c in state.cells},
        }

    @staticmethod
    def _decode(data: dict, path: Path) -> WorldMapState:
        cells = []
        try:
            for key, value in data.get("cells", {}).items():
                x, y = (int(part) for part in key.split(","))
                cells.append(CellState(x=x, y=y, type_name=value.get("type", "NONE"), name=value.get("name", "")))
            return WorldMapState(
                world_id=data["world_id"],
                bounds=BoundsState.model_validate(data["bounds"]),
                cells=cells,
                position=data.get("position"),
            )
        except (KeyError, ValueError, AttributeError) as exc:
            raise SnapshotFormatError(f"Snapshot {path} is malformed: {exc}") from exc
