"""
Shared pytest fixtures for chain reaction tests.

Boards are written as rows of whitespace-separated tokens: ``.`` for an
empty cell and ``<owner>:<molecules>`` for an owned one, e.g.::

    state_factory([
        "0:1 1:1 .",
        "1:1 .   .",
        ".   .   .",
    ])
"""

from typing import Callable, Dict, List, Optional, Sequence

import pytest

from chainreaction.game_engine import GameEngine
from chainreaction.models import GameState, Player

from tests.helpers import parse_rows


# =============================================================================
# FACTORY FIXTURES
# =============================================================================


@pytest.fixture
def player_factory() -> Callable[..., Player]:
    """Factory for creating Player instances with customizable defaults."""

    def _create_player(
        player_id: int = 0,
        name: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Player:
        return Player(id=player_id, name=name or f"Player {player_id + 1}", color=color)

    return _create_player


@pytest.fixture
def players_factory(player_factory) -> Callable[[int], List[Player]]:
    def _create_players(num_players: int = 2) -> List[Player]:
        return [player_factory(i) for i in range(num_players)]

    return _create_players


@pytest.fixture
def new_game(players_factory) -> Callable[..., GameState]:
    """Factory for fresh games via ``GameEngine.new_game``."""

    def _create_game(width: int = 3, height: int = 3, num_players: int = 2) -> GameState:
        return GameEngine.new_game(width, height, players_factory(num_players))

    return _create_game


@pytest.fixture
def state_factory(players_factory) -> Callable[..., GameState]:
    """Factory for GameState snapshots with a hand-built grid.

    ``turns`` defaults to zero for every player, so no one is eligible for
    elimination and cascades never stop early.
    """

    def _create_state(
        rows: Sequence[str],
        num_players: int = 2,
        current: int = 0,
        turns: Optional[Dict[int, int]] = None,
        is_over: bool = False,
        winner: Optional[int] = None,
    ) -> GameState:
        players = players_factory(num_players)
        return GameState(
            grid=parse_rows(rows),
            players=tuple(players),
            current_player_index=current,
            is_over=is_over,
            winner=winner,
            turns_taken=turns if turns is not None else {p.id: 0 for p in players},
        )

    return _create_state


@pytest.fixture
def play_moves() -> Callable[[GameState, Sequence[tuple]], GameState]:
    """Apply a sequence of ``(x, y)`` placements with ``GameEngine.play_turn``."""

    def _play(state: GameState, moves: Sequence[tuple]) -> GameState:
        for x, y in moves:
            state = GameEngine.play_turn(state, x, y)
        return state

    return _play
