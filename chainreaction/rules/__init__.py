"""Rules layer: cascade resolution and the turn/elimination state machine."""

from chainreaction.rules.cascade import (
    CascadeResult,
    clear_transient_flags,
    find_unstable_cells,
    has_pending_explosions,
    place_and_resolve_atomic,
    place_molecule,
    resolve_one_level,
    resolve_to_fixpoint,
    should_continue,
)
from chainreaction.rules.turns import (
    advance_turn,
    all_players_have_played,
    is_decided,
    is_eligible_for_elimination,
    is_eliminated,
    owned_cell_count,
    surviving_players,
)

__all__ = [
    "CascadeResult",
    "advance_turn",
    "all_players_have_played",
    "clear_transient_flags",
    "find_unstable_cells",
    "has_pending_explosions",
    "is_decided",
    "is_eligible_for_elimination",
    "is_eliminated",
    "owned_cell_count",
    "place_and_resolve_atomic",
    "place_molecule",
    "resolve_one_level",
    "resolve_to_fixpoint",
    "should_continue",
    "surviving_players",
]
