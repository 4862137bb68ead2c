"""Bot players for self-play and soak testing."""

from .base import BaseAI
from .factory import AIFactory
from .heuristic_ai import HeuristicAI
from .random_ai import RandomAI

__all__ = ["AIFactory", "BaseAI", "HeuristicAI", "RandomAI"]
