import pytest

from chainreaction.config import GameConfig
from chainreaction.errors import (
    GameOverError,
    IllegalMoveError,
    InvalidStateError,
    OutOfBoundsError,
    ResolutionInProgressError,
)
from chainreaction.models import PlaceIntent, RestartIntent
from chainreaction.session import GameSession


def _fail_level(*args, **kwargs):
    raise InvalidStateError("Cells claimed by more than one player")


@pytest.fixture
def session():
    return GameSession(GameConfig(grid_width=3, grid_height=3, player_count=2))


class TestSetup:
    def test_defaults(self):
        s = GameSession()
        assert (s.state.width, s.state.height) == (8, 16)
        assert [p.name for p in s.state.players] == ["Player 1", "Player 2"]
        assert not s.is_resolving

    def test_custom_names_and_colors(self):
        s = GameSession(
            GameConfig(
                grid_width=4,
                grid_height=4,
                player_count=3,
                player_names=["Ann"],
                player_colors=["#ff0000"],
            )
        )
        players = s.state.players
        assert [p.id for p in players] == [0, 1, 2]
        assert [p.name for p in players] == ["Ann", "Player 2", "Player 3"]
        assert players[0].color == "#ff0000"
        assert players[1].color is None

    def test_camel_case_config(self):
        cfg = GameConfig.model_validate({"gridWidth": 5, "gridHeight": 6, "playerCount": 4})
        s = GameSession(cfg)
        assert (s.state.width, s.state.height, len(s.state.players)) == (5, 6, 4)


class TestPlace:
    def test_place_advances(self, session):
        state = session.place(1, 1)
        assert session.state is state
        assert state.current_player.id == 1

    def test_opponent_cell_is_rejected_explicitly(self, session):
        session.place(0, 0)
        before = session.state
        with pytest.raises(IllegalMoveError) as excinfo:
            session.place(0, 0)
        assert excinfo.value.code == "ILLEGAL_MOVE"
        assert excinfo.value.context["owner"] == 0
        assert excinfo.value.context["mover"] == 1
        assert session.state is before

    def test_out_of_bounds(self, session):
        with pytest.raises(OutOfBoundsError):
            session.place(3, 3)
        assert session.state.move_history == ()

    def test_game_over(self):
        s = GameSession(GameConfig(grid_width=2, grid_height=2))
        for x, y in [(0, 0), (1, 1), (0, 0), (1, 1)]:
            s.place(x, y)
        assert s.state.is_over
        assert s.state.winner == 1
        with pytest.raises(GameOverError):
            s.place(1, 0)


class TestStepwise:
    def test_in_flight_guard(self, session):
        handle = session.begin_place(1, 1)
        assert session.is_resolving
        with pytest.raises(ResolutionInProgressError):
            session.place(0, 0)
        with pytest.raises(ResolutionInProgressError):
            session.begin_place(0, 0)

        final = handle.finish()
        assert not session.is_resolving
        assert session.state is final
        session.place(0, 0)

    def test_begin_place_on_opponent_cell(self, session):
        session.place(0, 0)
        with pytest.raises(IllegalMoveError):
            session.begin_place(0, 0)
        assert not session.is_resolving

    def test_restart_abandons_open_resolution(self, session):
        handle = session.begin_place(1, 1)
        fresh = session.restart()
        assert not session.is_resolving
        assert fresh.move_history == ()

        handle.finish()
        assert session.state is fresh

    def test_failed_level_releases_the_session(self, session, monkeypatch):
        session.place(0, 0)
        before = session.place(2, 2)
        monkeypatch.setattr("chainreaction.game_engine.resolve_one_level", _fail_level)

        handle = session.begin_place(0, 0)
        with pytest.raises(InvalidStateError):
            handle.advance_level()
        assert not session.is_resolving
        assert session.state is before
        assert not handle.has_next()
        with pytest.raises(InvalidStateError):
            handle.finish()
        assert session.state is before

        after = session.place(1, 1)
        assert after.cell(1, 1).owner == 0

    def test_failed_finish_releases_the_session(self, session, monkeypatch):
        session.place(0, 0)
        before = session.place(2, 2)
        monkeypatch.setattr("chainreaction.game_engine.resolve_to_fixpoint", _fail_level)

        handle = session.begin_place(0, 0)
        with pytest.raises(InvalidStateError):
            handle.finish()
        assert not session.is_resolving
        assert session.state is before
        monkeypatch.undo()
        assert session.begin_place(1, 1).finish().cell(1, 1).owner == 0


class TestIntents:
    def test_place_intent(self, session):
        state = session.submit(PlaceIntent(x=2, y=0))
        assert state.cell(2, 0).owner == 0

    def test_restart_intent(self, session):
        session.submit(PlaceIntent(x=2, y=0))
        state = session.submit(RestartIntent())
        assert state.move_history == ()
        assert state.current_player_index == 0

    def test_unknown_intent(self, session):
        with pytest.raises(TypeError):
            session.submit("place 1 1")
