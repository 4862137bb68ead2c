"""
Chain Reaction Error Hierarchy

Unified exception hierarchy for the engine. Every rejection the engine
reports inherits from ChainReactionError so callers can catch the whole
family at the session boundary.

Usage:
    from chainreaction.errors import IllegalMoveError, OutOfBoundsError

    try:
        state = GameEngine.play_turn(state, x, y)
    except IllegalMoveError as e:
        logger.warning(f"Rejected move: {e.message}")
"""

from typing import Any

__all__ = [
    "CascadeLimitError",
    # Base error
    "ChainReactionError",
    "GameOverError",
    # Rules errors
    "IllegalMoveError",
    # Configuration errors
    "InvalidConfigurationError",
    # State errors
    "InvalidStateError",
    "OutOfBoundsError",
    "ResolutionInProgressError",
]


class ChainReactionError(Exception):
    """Base exception for all engine errors.

    Attributes:
        code: Machine-readable error code for categorization
        message: Human-readable error description
        context: Additional context for debugging
    """
    code: str = "CHAIN_REACTION_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Rules Errors
# =============================================================================


class OutOfBoundsError(ChainReactionError):
    """Coordinate outside the grid.

    Attributes:
        x, y: The rejected coordinate
        width, height: The grid dimensions it was checked against
    """
    code: str = "OUT_OF_BOUNDS"

    def __init__(
        self,
        x: int,
        y: int,
        width: int,
        height: int,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(
            f"Position ({x}, {y}) is outside the {width}x{height} grid",
            context=context,
        )
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.context.update({"x": x, "y": y, "width": width, "height": height})


class IllegalMoveError(ChainReactionError):
    """Placement that the rules do not allow.

    Raised at the session boundary when the target cell belongs to another
    player, and (via subclasses) when the game is already over or a
    stepwise resolution is still in flight.
    """
    code: str = "ILLEGAL_MOVE"


class GameOverError(IllegalMoveError):
    """Placement attempted after the game ended."""
    code: str = "GAME_OVER"


class ResolutionInProgressError(IllegalMoveError):
    """New placement attempted while a stepwise resolution is incomplete."""
    code: str = "RESOLUTION_IN_PROGRESS"


# =============================================================================
# Configuration Errors
# =============================================================================


class InvalidConfigurationError(ChainReactionError):
    """Bad player count, player ids or grid dimensions at game creation."""
    code: str = "INVALID_CONFIGURATION"


# =============================================================================
# State Errors
# =============================================================================


class InvalidStateError(ChainReactionError):
    """Representation invariant violation.

    Raised when a snapshot is in a configuration that cannot be reached
    through legal play (negative molecule counts, an owned empty cell,
    conflicting owners inside one explosion level). Indicates a bug in
    the engine or in hand-built test state, never bad user input.
    """
    code: str = "INVALID_STATE"


class CascadeLimitError(InvalidStateError):
    """Cascade resolution exceeded its level guard."""
    code: str = "CASCADE_LIMIT"

    def __init__(
        self,
        message: str,
        max_levels: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        if max_levels is not None:
            self.context["max_levels"] = max_levels
