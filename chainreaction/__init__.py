"""Chain reaction board engine.

Turn-based, multi-player rules engine: players place molecules on a grid,
over-capacity cells explode into their neighbours and capture them, and the
last player holding cells wins.

Usage:
    from chainreaction import GameEngine, GameSession

    session = GameSession()
    session.place(0, 0)
    print(session.state.current_player.name)
"""

from .config import GameConfig
from .errors import (
    CascadeLimitError,
    ChainReactionError,
    GameOverError,
    IllegalMoveError,
    InvalidConfigurationError,
    InvalidStateError,
    OutOfBoundsError,
    ResolutionInProgressError,
)
from .game_engine import GameEngine, StepwiseResolution
from .models import (
    Cell,
    CellEffect,
    CellKind,
    GameState,
    Move,
    PlaceIntent,
    Player,
    Position,
    RestartIntent,
)
from .session import GameSession

__version__ = "1.0.0"

__all__ = [
    "CascadeLimitError",
    "Cell",
    "CellEffect",
    "CellKind",
    "ChainReactionError",
    "GameConfig",
    "GameEngine",
    "GameOverError",
    "GameSession",
    "GameState",
    "IllegalMoveError",
    "InvalidConfigurationError",
    "InvalidStateError",
    "Move",
    "OutOfBoundsError",
    "PlaceIntent",
    "Player",
    "Position",
    "ResolutionInProgressError",
    "RestartIntent",
    "StepwiseResolution",
]
