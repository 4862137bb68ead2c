"""
Base AI Player class for chain reaction bots
Abstract base class that all AI implementations inherit from
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
import random

from ..game_engine import GameEngine
from ..models import AIConfig, GameState, Position


def derive_seed(player_id: int) -> int:
    """
    Deterministic fallback seed used when ``AIConfig.rng_seed`` is unset.

    Mixing only the seat id keeps self-play reproducible while still giving
    each seat its own stream.
    """
    base = (player_id + 1) * 97_911 ^ 1_000_003
    return int(base & 0xFFFFFFFF)


class BaseAI(ABC):
    """Abstract base class for all AI implementations"""

    def __init__(self, player_id: int, config: Optional[AIConfig] = None):
        """
        Initialize AI player

        Args:
            player_id: Id of the player this AI controls
            config: AI configuration settings
        """
        self.player_id = player_id
        self.config = config or AIConfig()
        self.move_count = 0

        if self.config.rng_seed is not None:
            self.rng_seed: int = int(self.config.rng_seed)
        else:
            self.rng_seed = derive_seed(self.player_id)
        self.rng: random.Random = random.Random(self.rng_seed)

    @abstractmethod
    def select_move(self, game_state: GameState) -> Optional[Position]:
        """
        Select a cell to place on

        Args:
            game_state: Current game state

        Returns:
            Selected position or None if no valid moves
        """

    @abstractmethod
    def evaluate_position(self, game_state: GameState) -> float:
        """
        Evaluate the current position from this AI's perspective

        Args:
            game_state: Current game state

        Returns:
            Evaluation score (positive = good for this AI, negative = bad)
        """

    def get_evaluation_breakdown(
        self, game_state: GameState
    ) -> Dict[str, float]:
        return {
            "total": self.evaluate_position(game_state)
        }

    def get_valid_moves(self, game_state: GameState) -> List[Position]:
        """
        Legal placements, or an empty list when it is not this AI's turn.
        """
        if game_state.is_over or game_state.current_player.id != self.player_id:
            return []
        return GameEngine.get_valid_moves(game_state)

    def should_pick_random_move(self) -> bool:
        if self.config.randomness is None or self.config.randomness == 0:
            return False
        return self.rng.random() < self.config.randomness

    def get_random_element(self, items: List[Any]) -> Optional[Any]:
        if not items:
            return None
        return self.rng.choice(items)

    def get_opponent_ids(self, game_state: GameState) -> List[int]:
        return [p.id for p in game_state.players if p.id != self.player_id]
