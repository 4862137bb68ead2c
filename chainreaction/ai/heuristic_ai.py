"""
Heuristic AI implementation for chain reaction.

This agent evaluates every legal placement one ply deep and selects the best
candidate, breaking ties with its RNG so seeded self-play stays
reproducible.

Each candidate is simulated with the rules layer directly
(``place_and_resolve_atomic`` followed by ``advance_turn``) rather than
through ``GameEngine.play_turn``, so look-ahead never counts towards the
turn and explosion metrics.

Weights
=======

- ``WEIGHT_WIN``: a placement that ends the game in our favour.
- ``WEIGHT_OWNED_CELLS`` / ``WEIGHT_OWNED_MOLECULES``: material on the board.
- ``WEIGHT_OPPONENT_CELLS``: cells held by anyone else (negative).
- ``WEIGHT_EXPOSED_CELL``: our loaded cells (at capacity) sitting next to a
  loaded opponent cell, which the opponent can capture first (negative).
- ``WEIGHT_LOADED_CORNER``: loaded corners, the cheapest cascades to start.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from ..board_manager import BoardManager, capacity, classify, neighbors
from ..models import CellKind, GameState, Position
from ..rules.cascade import place_and_resolve_atomic
from ..rules.turns import advance_turn
from .base import BaseAI

logger = logging.getLogger(__name__)


class HeuristicAI(BaseAI):
    """AI that uses heuristics to select moves"""

    WEIGHT_WIN = 1_000_000.0
    WEIGHT_OWNED_CELLS = 1.0
    WEIGHT_OWNED_MOLECULES = 0.25
    WEIGHT_OPPONENT_CELLS = -1.0
    WEIGHT_EXPOSED_CELL = -2.0
    WEIGHT_LOADED_CORNER = 0.5

    def select_move(self, game_state: GameState) -> Position | None:
        """Select the best placement using heuristic evaluation.

        Args:
            game_state: Current game state.

        Returns:
            The best heuristic :class:`Position` or ``None`` if there are no
            valid moves for this player.
        """
        valid_moves = self.get_valid_moves(game_state)
        if not valid_moves:
            return None

        if self.should_pick_random_move():
            selected = self.get_random_element(valid_moves)
        else:
            best_moves: List[Position] = []
            best_score = float("-inf")
            for move in valid_moves:
                score = self._score_move(game_state, move)
                if score > best_score:
                    best_score = score
                    best_moves = [move]
                elif score == best_score:
                    best_moves.append(move)
            selected = self.get_random_element(best_moves)
            logger.debug(
                "Player %s picked %s (score=%.2f, %d tied)",
                self.player_id, selected, best_score, len(best_moves),
            )

        self.move_count += 1
        return selected

    def _simulate(self, game_state: GameState, move: Position) -> GameState:
        resolved = place_and_resolve_atomic(game_state, move.x, move.y)
        return advance_turn(resolved)

    def _score_move(self, game_state: GameState, move: Position) -> float:
        return self.evaluate_position(self._simulate(game_state, move))

    def evaluate_position(self, game_state: GameState) -> float:
        return sum(self.get_evaluation_breakdown(game_state).values())

    def get_evaluation_breakdown(self, game_state: GameState) -> Dict[str, float]:
        if game_state.is_over:
            won = game_state.winner == self.player_id
            return {"win": self.WEIGHT_WIN if won else -self.WEIGHT_WIN}

        cells = BoardManager.owned_cell_counts(game_state.grid)
        molecules = BoardManager.owned_molecule_counts(game_state.grid)
        opponent_cells = sum(
            count for owner, count in cells.items() if owner != self.player_id
        )
        exposed, loaded_corners = self._loaded_cell_features(game_state)

        return {
            "owned_cells": self.WEIGHT_OWNED_CELLS * cells[self.player_id],
            "owned_molecules": (
                self.WEIGHT_OWNED_MOLECULES * molecules[self.player_id]
            ),
            "opponent_cells": self.WEIGHT_OPPONENT_CELLS * opponent_cells,
            "exposed_cells": self.WEIGHT_EXPOSED_CELL * exposed,
            "loaded_corners": self.WEIGHT_LOADED_CORNER * loaded_corners,
        }

    def _loaded_cell_features(self, game_state: GameState) -> Tuple[int, int]:
        width, height = game_state.width, game_state.height
        exposed = 0
        loaded_corners = 0
        for x, y, cell in BoardManager.iter_cells(game_state):
            if cell.owner != self.player_id:
                continue
            kind = classify(x, y, width, height)
            if cell.molecules < capacity(kind):
                continue
            if kind == CellKind.CORNER:
                loaded_corners += 1
            for nx, ny in neighbors(x, y, width, height):
                other = game_state.grid[ny][nx]
                if (
                    other.owner is not None
                    and other.owner != self.player_id
                    and other.molecules >= BoardManager.cell_capacity(
                        nx, ny, width, height
                    )
                ):
                    exposed += 1
                    break
        return exposed, loaded_corners
