import pytest

from chainreaction.board_manager import (
    BoardManager,
    capacity,
    classify,
    critical_mass,
    neighbors,
)
from chainreaction.errors import InvalidStateError, OutOfBoundsError
from chainreaction.models import Cell, CellEffect, CellKind

from tests.helpers import parse_rows


class TestClassify:
    @pytest.mark.parametrize(
        "x,y,expected",
        [
            (0, 0, CellKind.CORNER),
            (2, 0, CellKind.CORNER),
            (0, 2, CellKind.CORNER),
            (2, 2, CellKind.CORNER),
            (1, 0, CellKind.EDGE),
            (0, 1, CellKind.EDGE),
            (2, 1, CellKind.EDGE),
            (1, 2, CellKind.EDGE),
            (1, 1, CellKind.INNER),
        ],
    )
    def test_three_by_three(self, x, y, expected):
        assert classify(x, y, 3, 3) == expected

    def test_one_wide_grid_has_no_inner_cells(self):
        assert classify(0, 0, 1, 3) == CellKind.CORNER
        assert classify(0, 1, 1, 3) == CellKind.EDGE
        assert classify(0, 2, 1, 3) == CellKind.CORNER

    def test_single_cell_grid_is_a_corner(self):
        assert classify(0, 0, 1, 1) == CellKind.CORNER

    @pytest.mark.parametrize("x,y", [(-1, 0), (0, -1), (3, 0), (0, 3)])
    def test_out_of_bounds(self, x, y):
        with pytest.raises(OutOfBoundsError):
            classify(x, y, 3, 3)

    def test_capacity_table(self):
        assert capacity(CellKind.CORNER) == 1
        assert capacity(CellKind.EDGE) == 2
        assert capacity(CellKind.INNER) == 3


class TestNeighbors:
    def test_inner_order_is_up_down_left_right(self):
        assert neighbors(1, 1, 3, 3) == [(1, 0), (1, 2), (0, 1), (2, 1)]

    def test_corner(self):
        assert neighbors(0, 0, 3, 3) == [(0, 1), (1, 0)]
        assert neighbors(2, 2, 3, 3) == [(2, 1), (1, 2)]

    def test_edge(self):
        assert neighbors(1, 0, 3, 3) == [(1, 1), (0, 0), (2, 0)]

    def test_one_wide(self):
        assert neighbors(0, 0, 1, 3) == [(0, 1)]
        assert neighbors(0, 1, 1, 3) == [(0, 0), (0, 2)]

    def test_single_cell(self):
        assert neighbors(0, 0, 1, 1) == []
        assert critical_mass(0, 0, 1, 1) == 0

    def test_off_grid_origin_raises(self):
        with pytest.raises(OutOfBoundsError):
            neighbors(5, 5, 3, 3)


class TestBoardManager:
    def test_create_empty_grid(self):
        grid = BoardManager.create_empty_grid(4, 2)
        assert len(grid) == 2
        assert all(len(row) == 4 for row in grid)
        assert all(cell.owner is None and cell.molecules == 0 for row in grid for cell in row)

    def test_get_cell_bounds(self, new_game):
        state = new_game(3, 3)
        assert BoardManager.get_cell(state, 2, 2) == Cell()
        with pytest.raises(OutOfBoundsError) as excinfo:
            BoardManager.get_cell(state, 3, 0)
        assert excinfo.value.x == 3
        assert excinfo.value.width == 3

    def test_is_over_capacity(self):
        assert BoardManager.is_over_capacity(Cell(owner=0, molecules=2), 0, 0, 3, 3)
        assert not BoardManager.is_over_capacity(Cell(owner=0, molecules=2), 1, 0, 3, 3)
        assert BoardManager.is_over_capacity(Cell(owner=0, molecules=4), 1, 1, 3, 3)

    def test_counts(self, state_factory):
        state = state_factory([
            "0:1 1:2 .",
            "0:3 .   .",
            ".   .   1:1",
        ])
        assert BoardManager.owned_cell_counts(state.grid) == {0: 2, 1: 2}
        assert BoardManager.owned_molecule_counts(state.grid) == {0: 4, 1: 3}
        assert BoardManager.total_molecules(state.grid) == 7

    def test_iter_cells_row_major(self, new_game):
        coords = [(x, y) for x, y, _ in BoardManager.iter_cells(new_game(2, 2))]
        assert coords == [(0, 0), (1, 0), (0, 1), (1, 1)]

    def test_summarize_board(self, state_factory):
        state = state_factory(["0:1 .", ". 1:2"])
        assert BoardManager.summarize_board(state) == "0:1   .\n  . 1:2"

    def test_hash_ignores_effects(self, state_factory):
        state = state_factory(["0:1 .", ". ."])
        tagged = state.model_copy(
            update={"effects": {"0,0": CellEffect(level=0, exploding=True)}}
        )
        assert BoardManager.hash_game_state(state) == BoardManager.hash_game_state(tagged)

    def test_hash_changes_with_grid(self, state_factory):
        a = state_factory(["0:1 .", ". ."])
        b = state_factory(["0:2 .", ". ."])
        assert BoardManager.hash_game_state(a) != BoardManager.hash_game_state(b)


class TestAssertInvariants:
    def test_fresh_game_is_valid(self, new_game):
        BoardManager.assert_invariants(new_game(5, 4, 3))

    def test_owned_empty_cell(self, new_game):
        state = new_game(2, 2)
        bad = state.model_copy(
            update={"grid": ((Cell(owner=0, molecules=0), Cell()), (Cell(), Cell()))}
        )
        with pytest.raises(InvalidStateError):
            BoardManager.assert_invariants(bad)

    def test_unowned_molecules(self, new_game):
        state = new_game(2, 2)
        bad = state.model_copy(
            update={"grid": ((Cell(owner=None, molecules=1), Cell()), (Cell(), Cell()))}
        )
        with pytest.raises(InvalidStateError):
            BoardManager.assert_invariants(bad)

    def test_negative_molecules(self, new_game):
        state = new_game(2, 2)
        bad = state.model_copy(
            update={"grid": ((Cell(owner=0, molecules=-1), Cell()), (Cell(), Cell()))}
        )
        with pytest.raises(InvalidStateError):
            BoardManager.assert_invariants(bad)

    def test_unknown_owner(self, new_game):
        state = new_game(2, 2)
        bad = state.model_copy(update={"grid": parse_rows(["7:1 .", ". ."])})
        with pytest.raises(InvalidStateError):
            BoardManager.assert_invariants(bad)

    def test_ragged_grid(self, new_game):
        state = new_game(2, 2)
        bad = state.model_copy(update={"grid": parse_rows([". .", "."])})
        with pytest.raises(InvalidStateError):
            BoardManager.assert_invariants(bad)

    def test_turns_must_cover_players(self, new_game):
        state = new_game(2, 2)
        bad = state.model_copy(update={"turns_taken": {0: 0}})
        with pytest.raises(InvalidStateError):
            BoardManager.assert_invariants(bad)
