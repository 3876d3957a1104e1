"""Per-world tuning for the exploration loop.

Each world (maze) gets its own thresholds: how long a detour to a known coin
may be before exploring looks better, when to force a finish attempt, how far
to stay away from the map edge when hunting frontiers, how many coins the
world holds, and how much of the surroundings must already be known before a
fresh observe is skipped.

Profiles can be extended from a JSON file:

```json
{
  "m04": {"change_to_unknown_threshold": 8, "finish_target_count": 120}
}
```
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from .world import CellKind


class ProfileError(ValueError):
    """Raised when a profile file cannot be read or fails validation."""


class ExplorationProfile(BaseModel):
    """Thresholds steering one solve episode."""

    change_to_unknown_threshold: int = Field(
        20,
        ge=0,
        description="Known-target path length above which a shorter frontier path wins",
    )
    try_finish_threshold: int = Field(
        999,
        ge=0,
        description="Frontier path length above which a finish is forced once enough coins are in",
    )
    ignore_unknown_x: int = Field(0, ge=0, description="X inset applied to bounds for frontier search")
    ignore_unknown_y: int = Field(0, ge=0, description="Y inset applied to bounds for frontier search")
    finish_target_count: int = Field(
        999,
        ge=0,
        description="Number of collected targets after which finishing is attempted",
    )
    look_confidence_threshold: int = Field(
        4,
        ge=0,
        le=4,
        description="Known diagonal corners of the look square needed to skip a re-observe",
    )
    target_kind: CellKind = Field(CellKind.COIN, description="Cell kind the episode collects")


DEFAULT_PROFILE = ExplorationProfile()

BUILTIN_PROFILES: Dict[str, ExplorationProfile] = {
    "m01": ExplorationProfile(
        change_to_unknown_threshold=5,
        try_finish_threshold=999,
        finish_target_count=404,
        look_confidence_threshold=3,
    ),
    "m02": ExplorationProfile(
        change_to_unknown_threshold=10,
        try_finish_threshold=999,
        finish_target_count=332,
        look_confidence_threshold=2,
    ),
    "m03": ExplorationProfile(
        change_to_unknown_threshold=20,
        try_finish_threshold=20,
        ignore_unknown_x=5,
        ignore_unknown_y=2,
        finish_target_count=20,
        look_confidence_threshold=4,
    ),
}

_ID_PREFIX = re.compile(r"^[^_.]+")


def profile_for(
    world_id: Optional[str],
    profiles: Optional[Mapping[str, ExplorationProfile]] = None,
) -> ExplorationProfile:
    """Look up the profile for ``world_id``.

    Tries the exact id, then the id's prefix before the first ``_`` or ``.``
    (so ``m03_87!sd6x.map.json`` resolves to ``m03``), then the default.
    """
    registry = BUILTIN_PROFILES if profiles is None else profiles
    if not world_id:
        return DEFAULT_PROFILE
    if world_id in registry:
        return registry[world_id]
    match = _ID_PREFIX.match(world_id)
    if match and match.group(0) in registry:
        return registry[match.group(0)]
    return DEFAULT_PROFILE


def load_profiles(path: Path | str) -> Dict[str, ExplorationProfile]:
    """Read profiles from JSON and merge them over the built-in set."""
    path = Path(path)
    try:
        payload = json.loads(path.read_text("utf-8"))
    except FileNotFoundError as exc:
        raise ProfileError(f"Profile file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ProfileError(f"Profile file {path} is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise ProfileError(f"Profile file {path} must contain an object keyed by world id")

    merged = dict(BUILTIN_PROFILES)
    for world_id, raw in payload.items():
        try:
            merged[world_id] = ExplorationProfile.model_validate(raw)
        except ValidationError as exc:
            raise ProfileError(f"Invalid profile '{world_id}' in {path}: {exc}") from exc
    return merged
