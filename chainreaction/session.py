"""Single-game session: the authoritative snapshot plus intent handling.

``GameSession`` is what a UI or CLI talks to. It owns the current
``GameState``, turns rejected placements into explicit ``IllegalMoveError``
rejections, and allows at most one placement in flight: while a stepwise
resolution is open, ``place`` and ``begin_place`` raise
``ResolutionInProgressError``. ``restart`` abandons any open resolution,
and a resolution that fails with an engine error is dropped so the session
keeps the pre-placement state and accepts new placements.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from . import metrics
from .config import GameConfig
from .errors import IllegalMoveError, ResolutionInProgressError
from .game_engine import GameEngine, StepwiseResolution
from .models import GameState, PlaceIntent, RestartIntent

logger = logging.getLogger(__name__)

__all__ = ["GameSession", "Intent"]

Intent = Union[PlaceIntent, RestartIntent]


class GameSession:
    """Holds one game and applies user intents to it."""

    def __init__(self, config: Optional[GameConfig] = None):
        self.config = config or GameConfig()
        self._pending: Optional[StepwiseResolution] = None
        self._state = self._create_state()

    def _create_state(self) -> GameState:
        return GameEngine.new_game(
            self.config.grid_width,
            self.config.grid_height,
            self.config.build_players(),
        )

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def is_resolving(self) -> bool:
        return self._pending is not None

    def _check_idle(self) -> None:
        if self._pending is not None:
            metrics.observe_rejection("in_progress")
            raise ResolutionInProgressError(
                "A placement is still being resolved",
                context={
                    "x": self._pending.position.x,
                    "y": self._pending.position.y,
                },
            )

    def _reject_opponent_cell(self, x: int, y: int) -> None:
        owner = self._state.grid[y][x].owner
        raise IllegalMoveError(
            "Cell is owned by another player",
            context={
                "x": x,
                "y": y,
                "owner": owner,
                "mover": self._state.current_player.id,
            },
        )

    def place(self, x: int, y: int) -> GameState:
        """Play a full turn for the current player and return the new state."""
        self._check_idle()
        new_state = GameEngine.play_turn(self._state, x, y)
        if new_state is self._state:
            self._reject_opponent_cell(x, y)
        self._state = new_state
        return new_state

    def begin_place(self, x: int, y: int) -> StepwiseResolution:
        """Start a stepwise turn; the session adopts its result on ``finish()``."""
        self._check_idle()
        handle = GameEngine.begin_stepwise_turn(
            self._state, x, y, on_finish=self._adopt, on_abort=self._abandon
        )
        if not handle.accepted:
            self._reject_opponent_cell(x, y)
        self._pending = handle
        return handle

    def _adopt(self, handle: StepwiseResolution, result: GameState) -> None:
        # A handle orphaned by restart() must not overwrite the new game.
        if handle is not self._pending:
            logger.debug("Ignoring result of an abandoned stepwise resolution")
            return
        self._pending = None
        self._state = result

    def _abandon(self, handle: StepwiseResolution, exc: Exception) -> None:
        if handle is not self._pending:
            return
        logger.debug("Dropping failed placement at %s: %s", handle.position.to_key(), exc)
        self._pending = None

    def restart(self) -> GameState:
        """Discard the current game (and any open resolution) and start over."""
        if self._pending is not None:
            logger.debug("Restart abandons an open stepwise resolution")
        self._pending = None
        self._state = self._create_state()
        return self._state

    def submit(self, intent: Intent) -> GameState:
        """Apply a ``PlaceIntent`` or ``RestartIntent``."""
        if isinstance(intent, RestartIntent):
            return self.restart()
        if isinstance(intent, PlaceIntent):
            return self.place(intent.x, intent.y)
        raise TypeError(f"Unsupported intent: {type(intent).__name__}")
