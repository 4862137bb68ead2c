"""Turn order, elimination and victory.

Elimination is a two-part predicate: a player must have taken at least one
turn (first-turn immunity) *and* own no cells. The game can only end once
every seated player has moved.
"""

from __future__ import annotations

import logging
from typing import List

from ..board_manager import BoardManager
from ..models import GameState, Player

logger = logging.getLogger(__name__)

__all__ = [
    "advance_turn",
    "all_players_have_played",
    "is_decided",
    "is_eligible_for_elimination",
    "is_eliminated",
    "owned_cell_count",
    "surviving_players",
]


def owned_cell_count(state: GameState, player_id: int) -> int:
    return sum(1 for row in state.grid for cell in row if cell.owner == player_id)


def is_eligible_for_elimination(state: GameState, player_id: int) -> bool:
    """A player who has never moved cannot be eliminated."""
    return state.turns_taken.get(player_id, 0) > 0


def is_eliminated(state: GameState, player_id: int) -> bool:
    if not is_eligible_for_elimination(state, player_id):
        return False
    return owned_cell_count(state, player_id) == 0


def all_players_have_played(state: GameState) -> bool:
    return all(state.turns_taken.get(p.id, 0) > 0 for p in state.players)


def surviving_players(state: GameState) -> List[Player]:
    """Players not eliminated, in seat order."""
    owned = BoardManager.owned_cell_counts(state.grid)
    return [
        p for p in state.players
        if state.turns_taken.get(p.id, 0) == 0 or owned[p.id] > 0
    ]


def is_decided(state: GameState) -> bool:
    """True once the board already determines the end of the game."""
    return all_players_have_played(state) and len(surviving_players(state)) <= 1


def _finish(state: GameState, survivors: List[Player]) -> GameState:
    winner = survivors[0].id if len(survivors) == 1 else None
    logger.info(
        "Game over after %d moves; winner=%s",
        len(state.move_history),
        winner,
    )
    return state.model_copy(update={"is_over": True, "winner": winner})


def advance_turn(state: GameState) -> GameState:
    """Apply the once-per-turn continue/win decision to a resolved state.

    - Before every player has moved: hand the turn to the next seat.
    - Afterwards: one survivor wins, zero survivors ends the game without a
      winner, otherwise the turn passes to the next non-eliminated seat.

    Transient effects must already be cleared; the facade does so before
    every call.
    """
    if state.is_over:
        return state

    num_players = len(state.players)
    current = state.current_player_index

    if not all_players_have_played(state):
        return state.model_copy(
            update={"current_player_index": (current + 1) % num_players}
        )

    survivors = surviving_players(state)
    if len(survivors) <= 1:
        return _finish(state, survivors)

    survivor_ids = {p.id for p in survivors}
    idx = (current + 1) % num_players
    while idx != current:
        if state.players[idx].id in survivor_ids:
            return state.model_copy(update={"current_player_index": idx})
        idx = (idx + 1) % num_players

    # Cycled back without another survivor: the mover is alone.
    return _finish(state, [p for p in survivors if p.id == state.players[current].id])
