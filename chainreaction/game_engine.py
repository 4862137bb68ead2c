"""Simulation facade for the chain reaction engine.

``GameEngine`` is the entry point external callers use. It sequences
placement, cascade resolution and the turn decision, and returns a new
immutable ``GameState`` per accepted turn. Animated consumers use
``begin_stepwise_turn`` instead of ``play_turn`` and pull one explosion level
at a time from the returned ``StepwiseResolution``.

Rejections:

- coordinates off the grid raise ``OutOfBoundsError``;
- any placement after the game ended raises ``GameOverError``;
- a cell owned by another player is a no-op: the input state is returned
  as is (``GameSession`` turns this into an explicit ``IllegalMoveError``).

No rejection ever mutates or replaces the caller's state.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterator, List, Optional, Sequence

from . import config, metrics
from .board_manager import BoardManager
from .errors import (
    CascadeLimitError,
    ChainReactionError,
    GameOverError,
    IllegalMoveError,
    InvalidConfigurationError,
    OutOfBoundsError,
)
from .models import GameState, Player, Position
from .rules.cascade import (
    clear_transient_flags,
    place_molecule,
    resolve_one_level,
    resolve_to_fixpoint,
    should_continue,
)
from .rules.turns import advance_turn

logger = logging.getLogger(__name__)

__all__ = ["GameEngine", "StepwiseResolution"]


def _complete_turn(state: GameState, *, mode: str, levels: int, explosions: int) -> GameState:
    """Clear effects, run the turn decision and record telemetry."""
    final = advance_turn(clear_transient_flags(state))
    metrics.observe_turn(mode, levels, explosions)
    if final.is_over:
        metrics.observe_game_completed(len(final.players), final.winner)
    if config.STRICT_INVARIANTS:
        BoardManager.assert_invariants(final)
    return final


class StepwiseResolution:
    """Handle for resolving one placement a level at a time.

    Typical use by an animated consumer::

        handle = GameEngine.begin_stepwise_turn(state, x, y)
        while handle.has_next():
            snapshot = handle.advance_level()
            render(snapshot)        # snapshot.effects drives the animation
        state = handle.finish()

    ``advance_level`` clears the previous level's effects before running the
    next level, so each snapshot carries only the current level's metadata.
    ``finish`` drains any levels still pending, clears effects and applies
    the turn decision; calling it again returns the same state.

    If a level fails (guard exceeded, or an invariant check under strict
    mode), the error propagates and ``on_abort`` is told first; the handle
    then reports no further levels and ``finish`` raises the same error.
    """

    def __init__(
        self,
        initial_state: GameState,
        x: int,
        y: int,
        *,
        max_levels: Optional[int] = None,
        on_finish: Optional[Callable[["StepwiseResolution", GameState], None]] = None,
        on_abort: Optional[Callable[["StepwiseResolution", Exception], None]] = None,
    ):
        self.initial_state = initial_state
        self.position = Position(x=x, y=y)
        self._state = place_molecule(initial_state, x, y)
        self.accepted = self._state is not initial_state
        self._max_levels = (
            max_levels
            if max_levels is not None
            else config.max_cascade_levels(initial_state.width, initial_state.height)
        )
        self._level = 0
        self._explosions = 0
        self._result: Optional[GameState] = None
        self._on_finish = on_finish
        self._on_abort = on_abort
        self._error: Optional[Exception] = None

    @property
    def state(self) -> GameState:
        """Latest snapshot: the placement, a level in progress, or the final state."""
        return self._result if self._result is not None else self._state

    @property
    def level(self) -> int:
        """Number of levels resolved so far."""
        return self._level

    @property
    def is_finished(self) -> bool:
        return self._result is not None

    def has_next(self) -> bool:
        if self._result is not None or self._error is not None or not self.accepted:
            return False
        return should_continue(self._state)

    def advance_level(self) -> GameState:
        """Resolve exactly one level and return the tagged snapshot."""
        if not self.has_next():
            raise IllegalMoveError(
                "No explosion levels remain for this placement",
                context={"level": self._level, "finished": self.is_finished},
            )
        try:
            if self._level >= self._max_levels:
                raise CascadeLimitError(
                    "Cascade did not stabilise within the level guard",
                    max_levels=self._max_levels,
                )
            self._state = resolve_one_level(clear_transient_flags(self._state), self._level)
        except ChainReactionError as exc:
            self._abort(exc)
            raise
        self._explosions += sum(1 for e in self._state.effects.values() if e.exploding)
        self._level += 1
        return self._state

    def finish(self) -> GameState:
        """Complete the turn and return the resulting state."""
        if self._result is not None:
            return self._result
        if self._error is not None:
            raise self._error

        if not self.accepted:
            self._result = self.initial_state
        else:
            try:
                drained = resolve_to_fixpoint(
                    self._state,
                    start_level=self._level,
                    max_levels=self._max_levels - self._level,
                )
                final = _complete_turn(
                    drained.state,
                    mode="stepwise",
                    levels=self._level + drained.levels,
                    explosions=self._explosions + drained.explosions,
                )
            except ChainReactionError as exc:
                self._abort(exc)
                raise
            self._level += drained.levels
            self._explosions += drained.explosions
            self._result = final

        if self._on_finish is not None:
            self._on_finish(self, self._result)
        return self._result

    def _abort(self, exc: Exception) -> None:
        self._error = exc
        logger.warning(
            "Stepwise resolution at (%d, %d) aborted at level %d: %s",
            self.position.x, self.position.y, self._level, exc,
        )
        if self._on_abort is not None:
            self._on_abort(self, exc)

    def __iter__(self) -> Iterator[GameState]:
        while self.has_next():
            yield self.advance_level()


class GameEngine:
    """Stateless facade over the board model, cascade resolver and turn logic.

    All methods are static and operate on immutable snapshots.
    """

    @staticmethod
    def new_game(width: int, height: int, players: Sequence[Player]) -> GameState:
        """Return a fresh game: empty grid, zeroed turn counters, seat 0 to move.

        Raises:
            InvalidConfigurationError: on non-positive dimensions, fewer than
                ``MIN_PLAYERS`` or more than ``MAX_PLAYERS`` players, or
                duplicate player ids.
        """
        if width < 1 or height < 1:
            raise InvalidConfigurationError(
                "Grid dimensions must be positive",
                context={"width": width, "height": height},
            )
        players = tuple(players)
        if not config.MIN_PLAYERS <= len(players) <= config.MAX_PLAYERS:
            raise InvalidConfigurationError(
                f"A game needs {config.MIN_PLAYERS} to {config.MAX_PLAYERS} players",
                context={"players": len(players)},
            )
        ids = [p.id for p in players]
        if len(set(ids)) != len(ids):
            raise InvalidConfigurationError(
                "Player ids must be unique",
                context={"ids": ids},
            )

        state = GameState(
            grid=BoardManager.create_empty_grid(width, height),
            players=players,
            current_player_index=0,
            is_over=False,
            winner=None,
            turns_taken={pid: 0 for pid in ids},
        )
        logger.debug(
            "New %dx%d game for players %s", width, height, [p.name for p in players]
        )
        return state

    @staticmethod
    def _check_can_act(state: GameState, x: int, y: int) -> None:
        if state.is_over:
            metrics.observe_rejection("game_over")
            raise GameOverError(
                "The game is over",
                context={"winner": state.winner},
            )
        if not BoardManager.is_valid_position(x, y, state.width, state.height):
            metrics.observe_rejection("out_of_bounds")
            raise OutOfBoundsError(x, y, state.width, state.height)

    @staticmethod
    def is_legal_move(state: GameState, x: int, y: int) -> bool:
        """True if the current player may place at ``(x, y)``."""
        if state.is_over or not BoardManager.is_valid_position(
            x, y, state.width, state.height
        ):
            return False
        owner = state.grid[y][x].owner
        return owner is None or owner == state.current_player.id

    @staticmethod
    def get_valid_moves(state: GameState) -> List[Position]:
        """All cells the current player may place on, in row-major order."""
        if state.is_over:
            return []
        mover = state.current_player.id
        return [
            Position(x=x, y=y)
            for x, y, cell in BoardManager.iter_cells(state)
            if cell.owner is None or cell.owner == mover
        ]

    @staticmethod
    def play_turn(state: GameState, x: int, y: int) -> GameState:
        """Place, resolve every explosion and advance the turn.

        Returns the input state unchanged when the cell belongs to another
        player.
        """
        GameEngine._check_can_act(state, x, y)
        placed = place_molecule(state, x, y)
        if placed is state:
            metrics.observe_rejection("opponent_cell")
            return state
        result = resolve_to_fixpoint(placed)
        return _complete_turn(
            result.state,
            mode="atomic",
            levels=result.levels,
            explosions=result.explosions,
        )

    @staticmethod
    def begin_stepwise_turn(
        state: GameState,
        x: int,
        y: int,
        *,
        on_finish: Optional[Callable[[StepwiseResolution, GameState], None]] = None,
        on_abort: Optional[Callable[[StepwiseResolution, Exception], None]] = None,
    ) -> StepwiseResolution:
        """Start a placement whose explosions are resolved level by level.

        An opponent-owned target yields a handle with no levels whose
        ``finish`` returns the input state.
        """
        GameEngine._check_can_act(state, x, y)
        handle = StepwiseResolution(
            state, x, y, on_finish=on_finish, on_abort=on_abort
        )
        if not handle.accepted:
            metrics.observe_rejection("opponent_cell")
        return handle
