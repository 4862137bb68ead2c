"""Board notation helpers shared by the test modules."""

from typing import Sequence

from chainreaction.models import Cell


def parse_rows(rows: Sequence[str]):
    """Turn the textual board notation into a grid of ``Cell`` values.

    Tokens are whitespace separated: ``.`` for an empty cell and
    ``<owner>:<molecules>`` for an owned one.
    """
    grid = []
    for row in rows:
        cells = []
        for token in row.split():
            if token == ".":
                cells.append(Cell())
            else:
                owner, molecules = token.split(":")
                cells.append(Cell(owner=int(owner), molecules=int(molecules)))
        grid.append(tuple(cells))
    return tuple(grid)


def grid_rows(state) -> list:
    """Inverse of ``parse_rows`` with single-space separators."""
    return [
        " ".join("." if c.owner is None else f"{c.owner}:{c.molecules}" for c in row)
        for row in state.grid
    ]
