"""Engine configuration: environment flags and session defaults.

Environment variables
=====================

- ``CHAINREACTION_DEBUG_ENGINE=1``
  Emit per-level debug logging from the cascade resolver.

- ``CHAINREACTION_STRICT_INVARIANTS=1``
  Run ``BoardManager.assert_invariants`` after every explosion level.
  The soak tool always runs the check after each turn regardless.

- ``CHAINREACTION_CASCADE_LEVEL_FACTOR`` (default: 4)
  Multiplier on ``width * height`` for the cascade loop guard. A resolution
  that needs more levels than the guard raises ``CascadeLimitError``.
"""

from __future__ import annotations

import os
from typing import List, Optional

from pydantic import BaseModel, Field

from .models import Player

_TRUTHY = {"1", "true", "yes", "on"}

DEBUG_ENGINE = os.environ.get("CHAINREACTION_DEBUG_ENGINE", "0").lower() in _TRUTHY
STRICT_INVARIANTS = os.environ.get(
    "CHAINREACTION_STRICT_INVARIANTS",
    "0",
).lower() in _TRUTHY
CASCADE_LEVEL_FACTOR = int(os.getenv("CHAINREACTION_CASCADE_LEVEL_FACTOR", "4"))

DEFAULT_GRID_WIDTH = 8
"""Default grid width in cells."""

DEFAULT_GRID_HEIGHT = 16
"""Default grid height in cells."""

DEFAULT_PLAYER_COUNT = 2
MIN_PLAYERS = 2
MAX_PLAYERS = 8


def default_player_name(index: int) -> str:
    return f"Player {index + 1}"


def max_cascade_levels(width: int, height: int) -> int:
    """Level guard for one resolution on a ``width`` x ``height`` grid."""
    return max(width * height, 1) * max(CASCADE_LEVEL_FACTOR, 1)


class GameConfig(BaseModel):
    """Session setup: grid size and seats.

    Values are not range-checked here; ``GameEngine.new_game`` is the single
    place that rejects bad dimensions or player counts.
    """
    grid_width: int = Field(DEFAULT_GRID_WIDTH, alias="gridWidth")
    grid_height: int = Field(DEFAULT_GRID_HEIGHT, alias="gridHeight")
    player_count: int = Field(DEFAULT_PLAYER_COUNT, alias="playerCount")
    player_names: List[str] = Field(default_factory=list, alias="playerNames")
    player_colors: List[Optional[str]] = Field(
        default_factory=list, alias="playerColors"
    )

    class Config:
        frozen = True
        populate_by_name = True

    def build_players(self) -> List[Player]:
        """Seat players ``0..player_count-1``, filling in missing names."""
        players: List[Player] = []
        for index in range(max(self.player_count, 0)):
            name = (
                self.player_names[index]
                if index < len(self.player_names)
                else default_player_name(index)
            )
            color = (
                self.player_colors[index]
                if index < len(self.player_colors)
                else None
            )
            players.append(Player(id=index, name=name, color=color))
        return players
