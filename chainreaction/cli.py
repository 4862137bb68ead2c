"""Command line entry point for the chain reaction engine.

Two subcommands:

``chainreaction play``
    Interactive terminal game. Reads one intent per line from stdin::

        x y        place a molecule for the current player
        restart    start a fresh game with the same setup
        quit       leave

    With ``--stepwise`` each explosion level is printed as it resolves.

``chainreaction soak``
    Bot self-play soak. Runs ``--num-games`` games between AI players,
    checks representation invariants and molecule conservation after every
    turn, and prints (optionally writes) a JSON summary::

        chainreaction soak --num-games 200 --width 6 --height 9 \\
            --num-players 3 --ai-type heuristic --seed 42 \\
            --summary-json logs/soak.summary.json

    ``--metrics-port`` exposes the engine's Prometheus metrics while the
    soak runs.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import random
import sys
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence, TextIO

from prometheus_client import start_http_server

from . import config
from .ai.factory import AIFactory
from .board_manager import BoardManager
from .config import GameConfig
from .errors import ChainReactionError, InvalidStateError
from .game_engine import GameEngine
from .models import AIConfig, AIType, GameState, PlaceIntent, RestartIntent
from .session import GameSession

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# =============================================================================
# play
# =============================================================================


def _describe(state: GameState) -> str:
    board = BoardManager.summarize_board(state)
    if state.is_over:
        if state.winner is None:
            status = "Game over: no players left"
        else:
            winner = state.player_by_id(state.winner)
            status = f"Game over: {winner.name if winner else state.winner} wins"
    else:
        status = f"{state.current_player.name} (id {state.current_player.id}) to move"
    return f"{board}\n{status}"


def _parse_place(line: str) -> Optional[PlaceIntent]:
    parts = line.replace(",", " ").split()
    if len(parts) != 2:
        return None
    try:
        return PlaceIntent(x=int(parts[0]), y=int(parts[1]))
    except ValueError:
        return None


def _place_stepwise(session: GameSession, intent: PlaceIntent, out: TextIO) -> None:
    handle = session.begin_place(intent.x, intent.y)
    for snapshot in handle:
        exploding = sum(1 for e in snapshot.effects.values() if e.exploding)
        captured = sum(1 for e in snapshot.effects.values() if e.captured)
        print(
            f"-- level {handle.level - 1}: {exploding} exploding, {captured} captured",
            file=out,
        )
        print(BoardManager.summarize_board(snapshot), file=out)
    handle.finish()


def run_play(
    game_config: GameConfig,
    *,
    stepwise: bool = False,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
) -> int:
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout
    session = GameSession(game_config)
    print(_describe(session.state), file=stdout)

    for raw in stdin:
        line = raw.strip()
        if not line:
            continue
        command = line.lower()
        if command in {"quit", "exit", "q"}:
            return 0

        try:
            if command == "restart":
                session.submit(RestartIntent())
            else:
                intent = _parse_place(line)
                if intent is None:
                    print("Expected 'x y', 'restart' or 'quit'", file=stdout)
                    continue
                if stepwise:
                    _place_stepwise(session, intent, stdout)
                else:
                    session.submit(intent)
        except ChainReactionError as exc:
            print(f"Rejected: {exc}", file=stdout)
            continue

        print(_describe(session.state), file=stdout)

    return 0


# =============================================================================
# soak
# =============================================================================


@dataclass
class GameRecord:
    index: int
    num_players: int
    width: int
    height: int
    ai_type: str
    seed: Optional[int]
    length: int
    status: str
    winner: Optional[int]
    termination_reason: str
    invariant_violations_by_type: Dict[str, int] = field(default_factory=dict)


def _check_turn_invariants(state: GameState) -> None:
    BoardManager.assert_invariants(state)
    total = BoardManager.total_molecules(state.grid)
    if total != len(state.move_history):
        raise InvalidStateError(
            "Molecule total differs from accepted placements",
            context={"molecules": total, "placements": len(state.move_history)},
        )


def run_single_game(
    index: int,
    *,
    width: int,
    height: int,
    num_players: int,
    ai_type: str,
    seed: Optional[int],
    max_moves: int,
) -> GameRecord:
    """Play one bot game and return its record."""
    game_config = GameConfig(
        grid_width=width, grid_height=height, player_count=num_players
    )
    state = GameEngine.new_game(width, height, game_config.build_players())
    ais = {
        player.id: AIFactory.create_by_name(
            ai_type,
            player.id,
            AIConfig(rng_seed=None if seed is None else seed * 31 + player.id),
        )
        for player in state.players
    }

    violations: Dict[str, int] = {}
    termination_reason = "max_moves_reached"
    moves = 0
    while moves < max_moves:
        if state.is_over:
            termination_reason = "status:completed"
            break
        ai = ais[state.current_player.id]
        move = ai.select_move(state)
        if move is None:
            termination_reason = "no_legal_moves"
            break
        try:
            state = GameEngine.play_turn(state, move.x, move.y)
            _check_turn_invariants(state)
        except ChainReactionError as exc:
            violations[exc.code] = violations.get(exc.code, 0) + 1
            termination_reason = f"error:{exc.code}"
            logger.error("Game %d move %d: %s", index, moves, exc)
            break
        moves += 1
    else:
        if state.is_over:
            termination_reason = "status:completed"

    return GameRecord(
        index=index,
        num_players=num_players,
        width=width,
        height=height,
        ai_type=ai_type,
        seed=seed,
        length=moves,
        status="completed" if state.is_over else "unfinished",
        winner=state.winner,
        termination_reason=termination_reason,
        invariant_violations_by_type=violations,
    )


def run_self_play_soak(args: argparse.Namespace) -> List[GameRecord]:
    seed_rng = random.Random(args.seed)
    records: List[GameRecord] = []
    for index in range(args.num_games):
        game_seed = seed_rng.randrange(2**31)
        record = run_single_game(
            index,
            width=args.width,
            height=args.height,
            num_players=args.num_players,
            ai_type=args.ai_type,
            seed=game_seed,
            max_moves=args.max_moves,
        )
        logger.info(
            "Game %d: %s after %d moves (winner=%s)",
            index, record.termination_reason, record.length, record.winner,
        )
        records.append(record)
    return records


def _summarise(records: List[GameRecord]) -> Dict[str, Any]:
    by_reason: Dict[str, int] = {}
    wins_by_player: Dict[str, int] = {}
    violation_counts_by_type: Dict[str, int] = {}
    lengths = [r.length for r in records]

    for r in records:
        by_reason[r.termination_reason] = by_reason.get(r.termination_reason, 0) + 1
        if r.winner is not None:
            key = str(r.winner)
            wins_by_player[key] = wins_by_player.get(key, 0) + 1
        for v_type, count in r.invariant_violations_by_type.items():
            violation_counts_by_type[v_type] = (
                violation_counts_by_type.get(v_type, 0) + count
            )

    return {
        "total_games": len(records),
        "completed_games": sum(1 for r in records if r.status == "completed"),
        "max_moves_games": by_reason.get("max_moves_reached", 0),
        "by_termination_reason": by_reason,
        "wins_by_player": wins_by_player,
        "min_length": min(lengths) if lengths else 0,
        "max_length": max(lengths) if lengths else 0,
        "avg_length": (sum(lengths) / len(lengths)) if lengths else 0.0,
        "invariant_violations_by_type": violation_counts_by_type,
        "games": [asdict(r) for r in records],
    }


def run_soak(args: argparse.Namespace, *, stdout: Optional[TextIO] = None) -> int:
    stdout = stdout if stdout is not None else sys.stdout
    if args.ai_type not in AIFactory.list_registered():
        print(f"Error: unknown AI type {args.ai_type!r}", file=sys.stderr)
        return 2
    if args.metrics_port:
        start_http_server(args.metrics_port)
        logger.info("Prometheus metrics on port %d", args.metrics_port)

    records = run_self_play_soak(args)
    summary = _summarise(records)
    summary["config"] = {
        "num_games": args.num_games,
        "width": args.width,
        "height": args.height,
        "num_players": args.num_players,
        "ai_type": args.ai_type,
        "seed": args.seed,
        "max_moves": args.max_moves,
    }
    print(json.dumps(summary, indent=2, sort_keys=True), file=stdout)

    if args.summary_json:
        os.makedirs(os.path.dirname(args.summary_json) or ".", exist_ok=True)
        with open(args.summary_json, "w", encoding="utf-8") as f:
            json.dump(summary, f, indent=2, sort_keys=True)

    if args.fail_on_anomaly and summary["invariant_violations_by_type"]:
        print(
            "Soak detected invariant violations; exiting with non-zero status.",
            file=sys.stderr,
        )
        return 1
    return 0


# =============================================================================
# entry point
# =============================================================================


def _add_board_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--width",
        type=int,
        default=config.DEFAULT_GRID_WIDTH,
        help=f"Grid width in cells (default: {config.DEFAULT_GRID_WIDTH}).",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=config.DEFAULT_GRID_HEIGHT,
        help=f"Grid height in cells (default: {config.DEFAULT_GRID_HEIGHT}).",
    )
    parser.add_argument(
        "--num-players",
        type=int,
        default=config.DEFAULT_PLAYER_COUNT,
        help=(
            f"Number of players, {config.MIN_PLAYERS}-{config.MAX_PLAYERS} "
            f"(default: {config.DEFAULT_PLAYER_COUNT})."
        ),
    )


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="chainreaction",
        description="Chain reaction board engine: interactive play and bot soaks.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    play = subparsers.add_parser("play", help="Play interactively on the terminal.")
    _add_board_arguments(play)
    play.add_argument(
        "--names",
        nargs="*",
        default=[],
        help="Player names in seat order; missing names default to 'Player N'.",
    )
    play.add_argument(
        "--stepwise",
        action="store_true",
        help="Print every explosion level as it resolves.",
    )

    soak = subparsers.add_parser("soak", help="Run bot self-play games.")
    _add_board_arguments(soak)
    soak.add_argument(
        "--num-games",
        type=int,
        default=100,
        help="Number of self-play games to run (default: 100).",
    )
    soak.add_argument(
        "--ai-type",
        default=AIType.RANDOM.value,
        help=(
            "AI identifier for every seat: a built-in type "
            f"({', '.join(t.value for t in AIType)}) or a registered custom AI "
            "(default: random)."
        ),
    )
    soak.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Base RNG seed for reproducible soaks.",
    )
    soak.add_argument(
        "--max-moves",
        type=int,
        default=2000,
        help="Stop a game after this many placements (default: 2000).",
    )
    soak.add_argument(
        "--summary-json",
        default=None,
        help="Optional path to write the aggregate JSON summary.",
    )
    soak.add_argument(
        "--metrics-port",
        type=int,
        default=None,
        help="Expose Prometheus metrics on this port while the soak runs.",
    )
    soak.add_argument(
        "--fail-on-anomaly",
        action="store_true",
        help="Exit non-zero if any invariant violation was recorded.",
    )

    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)

    if args.command == "play":
        game_config = GameConfig(
            grid_width=args.width,
            grid_height=args.height,
            player_count=args.num_players,
            player_names=args.names,
        )
        try:
            return run_play(game_config, stepwise=args.stepwise)
        except ChainReactionError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 2

    try:
        return run_soak(args)
    except ChainReactionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
