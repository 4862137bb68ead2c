import pytest

from chainreaction.errors import (
    CascadeLimitError,
    ChainReactionError,
    GameOverError,
    IllegalMoveError,
    InvalidConfigurationError,
    InvalidStateError,
    OutOfBoundsError,
    ResolutionInProgressError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "cls,parent",
        [
            (OutOfBoundsError, ChainReactionError),
            (IllegalMoveError, ChainReactionError),
            (GameOverError, IllegalMoveError),
            (ResolutionInProgressError, IllegalMoveError),
            (InvalidConfigurationError, ChainReactionError),
            (InvalidStateError, ChainReactionError),
            (CascadeLimitError, InvalidStateError),
        ],
    )
    def test_subclassing(self, cls, parent):
        assert issubclass(cls, parent)

    def test_codes(self):
        assert IllegalMoveError("x").code == "ILLEGAL_MOVE"
        assert GameOverError("x").code == "GAME_OVER"
        assert ResolutionInProgressError("x").code == "RESOLUTION_IN_PROGRESS"
        assert InvalidConfigurationError("x").code == "INVALID_CONFIGURATION"
        assert InvalidStateError("x").code == "INVALID_STATE"
        assert CascadeLimitError("x").code == "CASCADE_LIMIT"
        assert OutOfBoundsError(0, 0, 1, 1).code == "OUT_OF_BOUNDS"


class TestFormatting:
    def test_str_without_context(self):
        assert str(ChainReactionError("boom")) == "[CHAIN_REACTION_ERROR] boom"

    def test_str_with_context(self):
        err = IllegalMoveError("Cell is owned by another player", context={"x": 1, "y": 2})
        assert str(err) == "[ILLEGAL_MOVE] Cell is owned by another player (x=1, y=2)"

    def test_explicit_code_overrides_class_code(self):
        assert ChainReactionError("boom", code="CUSTOM").code == "CUSTOM"

    def test_to_dict(self):
        err = InvalidStateError("bad", context={"x": 0})
        assert err.to_dict() == {
            "code": "INVALID_STATE",
            "message": "bad",
            "context": {"x": 0},
        }

    def test_out_of_bounds_attributes(self):
        err = OutOfBoundsError(5, -1, 3, 4)
        assert (err.x, err.y, err.width, err.height) == (5, -1, 3, 4)
        assert err.message == "Position (5, -1) is outside the 3x4 grid"
        assert err.context == {"x": 5, "y": -1, "width": 3, "height": 4}

    def test_cascade_limit_records_guard(self):
        err = CascadeLimitError("too deep", max_levels=36, context={"width": 3})
        assert err.context == {"width": 3, "max_levels": 36}
