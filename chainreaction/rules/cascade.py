"""Placement and cascade resolution.

A placement adds one molecule for the mover. Every cell that then exceeds
its capacity explodes. Explosions run in *levels*: all cells over capacity
at the start of a level explode together, reading the start-of-level
snapshot, and their combined effect forms the next snapshot. Order inside
a level therefore never matters.

Resolution is an explicit loop guarded by ``max_cascade_levels``. It also
stops once the board has decided the game: after a player captures every
occupied cell the explosions would otherwise continue forever.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional

from .. import config
from ..board_manager import BoardManager, capacity, classify, neighbors
from ..errors import CascadeLimitError, InvalidStateError
from ..models import (
    Cell,
    CellEffect,
    Coord,
    GameState,
    Move,
    Position,
    freeze_mapping,
    position_key,
)
from .turns import is_decided

logger = logging.getLogger(__name__)

__all__ = [
    "CascadeResult",
    "clear_transient_flags",
    "find_unstable_cells",
    "has_pending_explosions",
    "place_and_resolve_atomic",
    "place_molecule",
    "resolve_one_level",
    "resolve_to_fixpoint",
    "should_continue",
]


def place_molecule(state: GameState, x: int, y: int) -> GameState:
    """Apply the placement rule without resolving explosions.

    Returns ``state`` itself (no copy) when the game is over or the target
    cell belongs to another player.

    Raises:
        OutOfBoundsError: if ``(x, y)`` is not on the grid.
    """
    cell = BoardManager.get_cell(state, x, y)
    if state.is_over:
        return state
    mover = state.current_player
    if cell.owner is not None and cell.owner != mover.id:
        logger.debug(
            "Placement at (%d, %d) rejected: owned by player %s, mover is %s",
            x, y, cell.owner, mover.id,
        )
        return state

    rows = [list(row) for row in state.grid]
    rows[y][x] = Cell(owner=mover.id, molecules=cell.molecules + 1)

    turns = dict(state.turns_taken)
    turns[mover.id] = turns.get(mover.id, 0) + 1

    move = Move(
        player=mover.id,
        position=Position(x=x, y=y),
        move_number=len(state.move_history) + 1,
    )
    return state.model_copy(
        update={
            "grid": tuple(tuple(row) for row in rows),
            "turns_taken": freeze_mapping(turns),
            "move_history": state.move_history + (move,),
        }
    )


def find_unstable_cells(state: GameState) -> List[Coord]:
    """Cells over capacity, in row-major order."""
    width, height = state.width, state.height
    unstable: List[Coord] = []
    for y, row in enumerate(state.grid):
        for x, cell in enumerate(row):
            if cell.molecules > capacity(classify(x, y, width, height)):
                unstable.append((x, y))
    return unstable


def has_pending_explosions(state: GameState) -> bool:
    width, height = state.width, state.height
    return any(
        cell.molecules > capacity(classify(x, y, width, height))
        for y, row in enumerate(state.grid)
        for x, cell in enumerate(row)
    )


def should_continue(state: GameState) -> bool:
    """True while another level must run: explosions pending, game undecided."""
    return has_pending_explosions(state) and not is_decided(state)


def resolve_one_level(state: GameState, level: int) -> GameState:
    """Explode every over-capacity cell once, simultaneously.

    Each cell touched in this level is tagged with a ``CellEffect`` carrying
    ``level``. Effects from earlier levels are replaced, not merged.
    """
    unstable = find_unstable_cells(state)
    if not unstable:
        return state

    width, height = state.width, state.height
    grid = state.grid

    incoming: Dict[Coord, int] = defaultdict(int)
    incoming_owner: Dict[Coord, Optional[int]] = {}
    targets_by_source: Dict[Coord, List[Coord]] = {}

    for x, y in unstable:
        source = grid[y][x]
        targets = neighbors(x, y, width, height)
        targets_by_source[(x, y)] = targets
        for target in targets:
            incoming[target] += 1
            owner = incoming_owner.setdefault(target, source.owner)
            if owner != source.owner:
                raise InvalidStateError(
                    "Conflicting owners explode into the same cell in one level",
                    context={
                        "level": level,
                        "target": position_key(*target),
                        "owners": sorted(
                            o for o in (owner, source.owner) if o is not None
                        ),
                    },
                )

    rows = [list(row) for row in grid]
    effects: Dict[str, CellEffect] = {}

    for (x, y), targets in targets_by_source.items():
        source = grid[y][x]
        remaining = source.molecules - len(targets)
        rows[y][x] = Cell(
            owner=source.owner if remaining > 0 else None,
            molecules=remaining,
        )
        effects[position_key(x, y)] = CellEffect(
            level=level,
            exploding=True,
            targets=tuple(Position(x=tx, y=ty) for tx, ty in targets),
        )

    for (tx, ty), count in incoming.items():
        before = grid[ty][tx]
        after_explosion = rows[ty][tx]
        new_owner = incoming_owner[(tx, ty)]
        captured = before.owner is not None and before.owner != new_owner
        rows[ty][tx] = Cell(
            owner=new_owner,
            molecules=after_explosion.molecules + count,
        )
        key = position_key(tx, ty)
        existing = effects.get(key)
        effects[key] = CellEffect(
            level=level,
            exploding=existing.exploding if existing else False,
            captured=captured,
            previous_owner=before.owner if captured else None,
            targets=existing.targets if existing else (),
        )

    next_state = state.model_copy(
        update={
            "grid": tuple(tuple(row) for row in rows),
            "effects": freeze_mapping(effects),
        }
    )

    if config.DEBUG_ENGINE:
        logger.debug(
            "Level %d: %d explosions, %d cells touched\n%s",
            level,
            len(unstable),
            len(effects),
            BoardManager.summarize_board(next_state),
        )
    if config.STRICT_INVARIANTS:
        BoardManager.assert_invariants(next_state)
    return next_state


def clear_transient_flags(state: GameState) -> GameState:
    """Drop all per-cell cascade effects; ownership and molecules are untouched."""
    if not state.effects:
        return state
    return state.model_copy(update={"effects": freeze_mapping({})})


@dataclass
class CascadeResult:
    """Outcome of resolving one placement to its fixpoint.

    Attributes:
        state: Final snapshot with transient effects cleared.
        levels: Number of explosion levels run.
        explosions: Total cell explosions across all levels.
    """
    state: GameState
    levels: int
    explosions: int


def resolve_to_fixpoint(
    state: GameState,
    *,
    start_level: int = 0,
    max_levels: Optional[int] = None,
) -> CascadeResult:
    """Run levels until the board is stable or the game is decided.

    Raises:
        CascadeLimitError: if more than ``max_levels`` levels would be needed.
    """
    limit = (
        max_levels
        if max_levels is not None
        else config.max_cascade_levels(state.width, state.height)
    )
    level = start_level
    explosions = 0
    while should_continue(state):
        if level - start_level >= limit:
            raise CascadeLimitError(
                "Cascade did not stabilise within the level guard",
                max_levels=limit,
                context={"width": state.width, "height": state.height},
            )
        state = resolve_one_level(state, level)
        explosions += sum(1 for effect in state.effects.values() if effect.exploding)
        level += 1
    return CascadeResult(
        state=clear_transient_flags(state),
        levels=level - start_level,
        explosions=explosions,
    )


def place_and_resolve_atomic(
    state: GameState,
    x: int,
    y: int,
    *,
    max_levels: Optional[int] = None,
) -> GameState:
    """Place for the current player, then resolve every explosion.

    Returns ``state`` unchanged when the placement is illegal.
    """
    placed = place_molecule(state, x, y)
    if placed is state:
        return state
    return resolve_to_fixpoint(placed, max_levels=max_levels).state
