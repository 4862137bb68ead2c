"""Board-level helpers for the chain reaction engine.

Pure geometry and capacity rules. Nothing here holds state: callers pass
dimensions, grids or ``GameState`` snapshots and receive derived values or
new value objects.

Capacity rule
=============

A cell explodes once its molecule count *exceeds* its capacity
(corner 1, edge 2, inner 3). On any grid at least 2x2 the critical mass
``capacity + 1`` equals the number of orthogonal neighbours, so an
exploding cell hands exactly one molecule to each neighbour and the board
total is conserved. One-wide grids break that equality at their ends; the
explosion then sheds ``critical_mass`` (the neighbour count) molecules and
keeps the remainder, which still conserves the total.
"""
from __future__ import annotations

import hashlib
import json
from collections import Counter
from typing import Dict, List, Sequence, Tuple

from .errors import InvalidStateError, OutOfBoundsError
from .models import Cell, CellKind, Coord, EMPTY_CELL, GameState

__all__ = [
    "BoardManager",
    "CAPACITY_BY_KIND",
    "capacity",
    "classify",
    "critical_mass",
    "neighbors",
]

CAPACITY_BY_KIND: Dict[CellKind, int] = {
    CellKind.CORNER: 1,
    CellKind.EDGE: 2,
    CellKind.INNER: 3,
}

# up, down, left, right. Renderers and tests depend on this order.
_NEIGHBOR_OFFSETS: Tuple[Coord, ...] = ((0, -1), (0, 1), (-1, 0), (1, 0))


def _check_bounds(x: int, y: int, width: int, height: int) -> None:
    if not (0 <= x < width and 0 <= y < height):
        raise OutOfBoundsError(x, y, width, height)


def classify(x: int, y: int, width: int, height: int) -> CellKind:
    """Return the geometric kind of ``(x, y)``.

    Corner iff both coordinates sit on an extreme, edge iff exactly one
    does, inner otherwise.

    Raises:
        OutOfBoundsError: if ``(x, y)`` is not on the grid.
    """
    _check_bounds(x, y, width, height)
    x_extreme = x == 0 or x == width - 1
    y_extreme = y == 0 or y == height - 1
    if x_extreme and y_extreme:
        return CellKind.CORNER
    if x_extreme or y_extreme:
        return CellKind.EDGE
    return CellKind.INNER


def capacity(kind: CellKind) -> int:
    """Maximum molecules a cell of ``kind`` holds without exploding."""
    return CAPACITY_BY_KIND[kind]


def neighbors(x: int, y: int, width: int, height: int) -> List[Coord]:
    """Orthogonal in-bounds neighbours of ``(x, y)`` in up/down/left/right order."""
    _check_bounds(x, y, width, height)
    result: List[Coord] = []
    for dx, dy in _NEIGHBOR_OFFSETS:
        nx, ny = x + dx, y + dy
        if 0 <= nx < width and 0 <= ny < height:
            result.append((nx, ny))
    return result


def critical_mass(x: int, y: int, width: int, height: int) -> int:
    """Molecules an exploding cell at ``(x, y)`` sheds (one per neighbour)."""
    return len(neighbors(x, y, width, height))


class BoardManager:
    """Helper for board-level operations.

    Provides grid construction, cell queries, ownership tallies, a canonical
    state hash for determinism checks, a text summary for logs and the CLI,
    and the representation-invariant check used in strict mode.
    """

    @staticmethod
    def create_empty_grid(width: int, height: int) -> Tuple[Tuple[Cell, ...], ...]:
        row = tuple(EMPTY_CELL for _ in range(width))
        return tuple(row for _ in range(height))

    @staticmethod
    def is_valid_position(x: int, y: int, width: int, height: int) -> bool:
        return 0 <= x < width and 0 <= y < height

    @staticmethod
    def get_cell(state: GameState, x: int, y: int) -> Cell:
        """Return the cell at ``(x, y)``, raising ``OutOfBoundsError`` off-grid."""
        _check_bounds(x, y, state.width, state.height)
        return state.grid[y][x]

    @staticmethod
    def cell_capacity(x: int, y: int, width: int, height: int) -> int:
        return capacity(classify(x, y, width, height))

    @staticmethod
    def is_over_capacity(cell: Cell, x: int, y: int, width: int, height: int) -> bool:
        return cell.molecules > BoardManager.cell_capacity(x, y, width, height)

    @staticmethod
    def iter_cells(state: GameState):
        """Yield ``(x, y, cell)`` in row-major order."""
        for y, row in enumerate(state.grid):
            for x, cell in enumerate(row):
                yield x, y, cell

    @staticmethod
    def owned_cell_counts(grid: Sequence[Sequence[Cell]]) -> Counter:
        """Number of cells owned per player id."""
        counts: Counter = Counter()
        for row in grid:
            for cell in row:
                if cell.owner is not None:
                    counts[cell.owner] += 1
        return counts

    @staticmethod
    def owned_molecule_counts(grid: Sequence[Sequence[Cell]]) -> Counter:
        counts: Counter = Counter()
        for row in grid:
            for cell in row:
                if cell.owner is not None:
                    counts[cell.owner] += cell.molecules
        return counts

    @staticmethod
    def total_molecules(grid: Sequence[Sequence[Cell]]) -> int:
        return sum(cell.molecules for row in grid for cell in row)

    @staticmethod
    def grid_signature(grid: Sequence[Sequence[Cell]]) -> List[List[Tuple]]:
        """Plain ``(owner, molecules)`` rows, for comparisons that ignore effects."""
        return [[(cell.owner, cell.molecules) for cell in row] for row in grid]

    @staticmethod
    def hash_game_state(state: GameState) -> str:
        """
        Canonical hash of the rules-relevant part of a GameState.

        Transient effects and move history are excluded, so two snapshots
        that differ only in animation metadata hash identically.
        """
        payload = {
            "grid": BoardManager.grid_signature(state.grid),
            "players": [p.id for p in state.players],
            "current": state.current_player_index,
            "over": state.is_over,
            "winner": state.winner,
            "turns": sorted(state.turns_taken.items()),
        }
        encoded = json.dumps(payload, separators=(",", ":")).encode()
        return hashlib.sha256(encoded).hexdigest()

    @staticmethod
    def summarize_board(state: GameState) -> str:
        """Render the grid as text: ``.`` for empty, ``<owner>:<molecules>`` otherwise."""
        width = max(
            (
                len(f"{cell.owner}:{cell.molecules}")
                for row in state.grid
                for cell in row
                if cell.owner is not None
            ),
            default=1,
        )
        lines = []
        for row in state.grid:
            tokens = [
                ("." if cell.owner is None else f"{cell.owner}:{cell.molecules}").rjust(width)
                for cell in row
            ]
            lines.append(" ".join(tokens))
        return "\n".join(lines)

    @staticmethod
    def assert_invariants(state: GameState) -> None:
        """Raise ``InvalidStateError`` on any representation-invariant violation."""
        if not state.grid or any(len(row) != state.width for row in state.grid):
            raise InvalidStateError("Grid must be a non-empty rectangle")
        player_ids = {p.id for p in state.players}
        if set(state.turns_taken) != player_ids:
            raise InvalidStateError(
                "turns_taken must have exactly one entry per player",
                context={"players": sorted(player_ids), "turns": sorted(state.turns_taken)},
            )
        if not 0 <= state.current_player_index < len(state.players):
            raise InvalidStateError(
                "current_player_index out of range",
                context={"index": state.current_player_index},
            )
        for x, y, cell in BoardManager.iter_cells(state):
            if cell.molecules < 0:
                raise InvalidStateError(
                    "Negative molecule count",
                    context={"x": x, "y": y, "molecules": cell.molecules},
                )
            if (cell.molecules == 0) != (cell.owner is None):
                raise InvalidStateError(
                    "Cell owner must be set exactly when molecules > 0",
                    context={"x": x, "y": y, "owner": cell.owner, "molecules": cell.molecules},
                )
            if cell.owner is not None and cell.owner not in player_ids:
                raise InvalidStateError(
                    "Cell owned by unknown player",
                    context={"x": x, "y": y, "owner": cell.owner},
                )
