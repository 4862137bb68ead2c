"""Prometheus metrics for the chain reaction engine.

Counters and histograms are module-level singletons registered on the
default registry, so every session in the process reports into the same
series. The CLI soak tool exposes them with ``--metrics-port``.
"""

from __future__ import annotations

from typing import Final

from prometheus_client import Counter, Histogram


TURNS_TOTAL: Final[Counter] = Counter(
    "chainreaction_turns_total",
    "Total accepted turns, labeled by resolution mode (atomic or stepwise).",
    labelnames=("mode",),
)

REJECTED_MOVES_TOTAL: Final[Counter] = Counter(
    "chainreaction_rejected_moves_total",
    (
        "Total rejected placements, labeled by reason "
        "(out_of_bounds, opponent_cell, game_over, in_progress)."
    ),
    labelnames=("reason",),
)

EXPLOSIONS_TOTAL: Final[Counter] = Counter(
    "chainreaction_explosions_total",
    "Total individual cell explosions across all cascades.",
)

CASCADE_LEVELS: Final[Histogram] = Histogram(
    "chainreaction_cascade_levels",
    "Number of explosion levels needed to resolve one placement.",
    buckets=(0, 1, 2, 3, 5, 8, 13, 21, 34, 55, 89),
)

GAMES_COMPLETED: Final[Counter] = Counter(
    "chainreaction_games_completed_total",
    "Total finished games, labeled by num_players and outcome (win or wipeout).",
    labelnames=("num_players", "outcome"),
)


def observe_turn(mode: str, levels: int, explosions: int) -> None:
    """Record one accepted, fully resolved turn."""
    TURNS_TOTAL.labels(mode=mode).inc()
    CASCADE_LEVELS.observe(levels)
    if explosions:
        EXPLOSIONS_TOTAL.inc(explosions)


def observe_rejection(reason: str) -> None:
    REJECTED_MOVES_TOTAL.labels(reason=reason).inc()


def observe_game_completed(num_players: int, winner: int | None) -> None:
    GAMES_COMPLETED.labels(
        num_players=str(num_players),
        outcome="win" if winner is not None else "wipeout",
    ).inc()
