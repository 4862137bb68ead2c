"""Random AI implementation.

This agent selects uniformly random legal cells using the per-instance RNG
on :class:`BaseAI`. It is meant for soak runs and baselines.
"""

from __future__ import annotations

from ..models import GameState, Position
from .base import BaseAI


class RandomAI(BaseAI):
    """AI that selects random valid moves."""

    def select_move(self, game_state: GameState) -> Position | None:
        """Select a random valid cell for ``game_state``.

        Returns:
            A random legal :class:`Position` or ``None`` if none exist.
        """
        valid_moves = self.get_valid_moves(game_state)
        if not valid_moves:
            return None

        selected = self.get_random_element(valid_moves)
        self.move_count += 1
        return selected

    def evaluate_position(self, game_state: GameState) -> float:
        """Return a small random evaluation; RandomAI does not evaluate."""
        _ = game_state
        return self.rng.uniform(-0.1, 0.1)
