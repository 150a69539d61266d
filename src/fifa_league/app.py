from __future__ import annotations

import argparse
import logging
import random
from typing import Sequence

from .config import HOME_ADVANTAGE, SUGGESTED_STRENGTHS
from .engine import simulate_score
from .league import TeamRegistry
from .logging_config import setup_logging
from .models import ShootoutOutcome, SimulationOutcome, TeamStrength
from .shootout import ShootoutResolver


def build_default_teams() -> list[TeamStrength]:
    teams: list[TeamStrength] = []
    team_id = 1
    for league, table in SUGGESTED_STRENGTHS.items():
        for team_name, rating in table.items():
            teams.append(TeamStrength(team_id=team_id, rating=rating, team_name=team_name, league=league))
            team_id += 1
    return teams


def build_default_registry(state_path: str | None = None) -> TeamRegistry:
    return TeamRegistry(teams=build_default_teams(), state_path=state_path)


def _pct(value: float) -> str:
    return f"{value * 100:.1f}%"


def format_simulation(home: TeamStrength, away: TeamStrength, outcome: SimulationOutcome) -> str:
    lines = [
        f"{home.team_name or home.team_id} {outcome.home_score} - {outcome.away_score} {away.team_name or away.team_id}",
        f"Ratings {home.rating} vs {away.rating} (home advantage {outcome.home_advantage_applied},"
        f" difference {outcome.strength_difference:+d})",
        f"Home {_pct(outcome.home_win_probability)}  Draw {_pct(outcome.draw_probability)}"
        f"  Away {_pct(outcome.away_win_probability)}",
    ]
    return "\n".join(lines)


def format_shootout(outcome: ShootoutOutcome, names: dict[object, str] | None = None) -> str:
    names = names or {}
    lines = ["No  Rd Kicker           Call  Coin  Result"]
    for attempt in outcome.attempts:
        kicker = names.get(attempt.contestant_id, str(attempt.contestant_id))
        result = "GOAL" if attempt.scored else "miss"
        lines.append(
            f"{attempt.sequence_number:>2} {attempt.round_number:>3} {kicker:<16} {attempt.call:<5} {attempt.outcome:<5} {result}"
        )
        lines.append(f"        {attempt.narrative}")
    lines.append(outcome.summary)
    return "\n".join(lines)


def _find_team(registry: TeamRegistry, token: str) -> TeamStrength:
    if token.isdigit() and int(token) in registry:
        return registry.get(int(token))
    team = registry.find_by_name(token)
    if team is None:
        raise SystemExit(f"Unknown team: {token}")
    return team


def _cmd_simulate(args: argparse.Namespace) -> None:
    registry = build_default_registry()
    home = _find_team(registry, args.home)
    away = _find_team(registry, args.away)
    rng = random.Random(args.seed)
    outcome = simulate_score(home.rating, away.rating, home_advantage=args.home_advantage, rng=rng)
    print(format_simulation(home, away, outcome))
    if outcome.is_draw and args.shootout:
        shootout = ShootoutResolver(rng=rng).resolve(home.team_id, away.team_id)
        print()
        print(format_shootout(shootout, {home.team_id: home.team_name, away.team_id: away.team_name}))


def _cmd_shootout(args: argparse.Namespace) -> None:
    outcome = ShootoutResolver(rng=random.Random(args.seed)).resolve(args.first, args.second)
    print(format_shootout(outcome))


def _cmd_serve(args: argparse.Namespace) -> None:
    import uvicorn

    uvicorn.run("fifa_league.api:app", host=args.host, port=args.port)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fifa-league", description="FIFA league match and shootout simulator")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    simulate = sub.add_parser("simulate", help="Simulate one match between two teams")
    simulate.add_argument("home", help="Home team id or name")
    simulate.add_argument("away", help="Away team id or name")
    simulate.add_argument("--home-advantage", type=int, default=HOME_ADVANTAGE)
    simulate.add_argument("--seed", type=int, default=None)
    simulate.add_argument("--shootout", action="store_true", help="Settle a draw with penalties")
    simulate.set_defaults(func=_cmd_simulate)

    shootout = sub.add_parser("shootout", help="Run an automatic penalty shootout")
    shootout.add_argument("first", nargs="?", default="Player 1")
    shootout.add_argument("second", nargs="?", default="Player 2")
    shootout.add_argument("--seed", type=int, default=None)
    shootout.set_defaults(func=_cmd_shootout)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.set_defaults(func=_cmd_serve)
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)
    args.func(args)


if __name__ == "__main__":
    main()
