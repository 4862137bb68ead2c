"""
Pydantic Models for Chain Reaction Game State

Snapshots are frozen: the engine never mutates a GameState in place, it
derives a new one with ``model_copy(update=...)``. Map fields hold read-only
mappings; ``model_copy`` skips validation, so updates to them go through
``freeze_mapping``. Field aliases follow the camelCase names an external
renderer reads from ``model_dump(by_alias=True)``.
"""

from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any, Dict, Mapping, Optional, Tuple

from pydantic import AfterValidator, BaseModel, Field, WrapSerializer

Coord = Tuple[int, int]


def freeze_mapping(value: Mapping) -> Mapping:
    """Read-only view over a private copy of ``value``."""
    return MappingProxyType(dict(value))


def _dump_mapping(value: Mapping, handler: Any) -> Any:
    return handler(dict(value))


TurnCounts = Annotated[
    Dict[int, int], AfterValidator(freeze_mapping), WrapSerializer(_dump_mapping)
]


class CellKind(str, Enum):
    """Cell classification derived from grid geometry"""
    CORNER = "corner"
    EDGE = "edge"
    INNER = "inner"


class Position(BaseModel):
    """Grid position"""
    x: int
    y: int

    class Config:
        frozen = True

    def to_key(self) -> str:
        """Convert position to string key"""
        return f"{self.x},{self.y}"

    def as_tuple(self) -> Coord:
        return (self.x, self.y)

    @classmethod
    def from_key(cls, key: str) -> "Position":
        x, y = key.split(",")
        return cls(x=int(x), y=int(y))


def position_key(x: int, y: int) -> str:
    """Key used for per-cell maps; matches ``Position.to_key``."""
    return f"{x},{y}"


class Cell(BaseModel):
    """A single grid cell: an optional owner and its molecule count"""
    owner: Optional[int] = None
    molecules: int = 0

    class Config:
        frozen = True

    @property
    def is_empty(self) -> bool:
        return self.owner is None


EMPTY_CELL = Cell()


class CellEffect(BaseModel):
    """Transient cascade metadata for one cell during one level.

    Presentation only: renderers use it to sequence explosion and capture
    animations. It never feeds back into rules decisions and is cleared
    before the turn advances.
    """
    level: int
    exploding: bool = False
    captured: bool = False
    previous_owner: Optional[int] = Field(None, alias="previousOwner")
    targets: Tuple[Position, ...] = ()

    class Config:
        frozen = True
        populate_by_name = True


CellEffects = Annotated[
    Dict[str, CellEffect], AfterValidator(freeze_mapping), WrapSerializer(_dump_mapping)
]


class Player(BaseModel):
    """Player identity; ``color`` is opaque to the engine"""
    id: int
    name: str
    color: Optional[str] = None

    class Config:
        frozen = True


class Move(BaseModel):
    """Accepted placement"""
    player: int
    position: Position
    move_number: int = Field(alias="moveNumber")

    class Config:
        frozen = True
        populate_by_name = True


class GameState(BaseModel):
    """Complete game state snapshot"""
    grid: Tuple[Tuple[Cell, ...], ...]
    players: Tuple[Player, ...]
    current_player_index: int = Field(0, alias="currentPlayerIndex")
    is_over: bool = Field(False, alias="isOver")
    winner: Optional[int] = None
    turns_taken: TurnCounts = Field(
        default_factory=lambda: freeze_mapping({}), alias="turnsTaken"
    )
    effects: CellEffects = Field(default_factory=lambda: freeze_mapping({}))
    move_history: Tuple[Move, ...] = Field(
        default_factory=tuple, alias="moveHistory"
    )

    class Config:
        frozen = True
        populate_by_name = True

    @property
    def width(self) -> int:
        return len(self.grid[0]) if self.grid else 0

    @property
    def height(self) -> int:
        return len(self.grid)

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_index]

    def cell(self, x: int, y: int) -> Cell:
        """Return the cell at ``(x, y)`` without bounds translation."""
        return self.grid[y][x]

    def player_by_id(self, player_id: int) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None


class AIType(str, Enum):
    """AI type enumeration"""
    RANDOM = "random"
    HEURISTIC = "heuristic"


class AIConfig(BaseModel):
    """AI configuration"""
    rng_seed: Optional[int] = Field(None, alias="rngSeed")
    randomness: Optional[float] = Field(None, ge=0, le=1)

    class Config:
        frozen = True
        populate_by_name = True


class PlaceIntent(BaseModel):
    """User intent: place a molecule for the current player"""
    x: int
    y: int

    class Config:
        frozen = True


class RestartIntent(BaseModel):
    """User intent: discard the session and start a fresh game"""

    class Config:
        frozen = True
