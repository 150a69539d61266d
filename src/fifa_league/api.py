from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Union

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .app import build_default_teams
from .config import HOME_ADVANTAGE, MAX_SHOOTOUT_ATTEMPTS, REGULATION_ROUNDS
from .engine import simulate_fixtures, simulate_score
from .league import TeamRegistry, suggest_team_strengths, validate_rating
from .logging_config import get_logger
from .models import Fixture, ShootoutOutcome, SimulationOutcome, TeamStrength
from .shootout import InteractiveShootout, ShootoutResolver, flip_coin

logger = get_logger(__name__)

IdValue = Union[int, str]


class StrengthSelection(BaseModel):
    strength_rating: float


class StrengthUpdate(BaseModel):
    team_id: int
    strength_rating: float


class BulkStrengthSelection(BaseModel):
    updates: list[StrengthUpdate]


class MatchSimulationRequest(BaseModel):
    home_team_id: int | None = None
    away_team_id: int | None = None
    home_rating: float | None = None
    away_rating: float | None = None
    home_advantage: int = Field(default=HOME_ADVANTAGE, ge=0, le=20)


class FixtureSelection(BaseModel):
    fixture_id: IdValue
    home_team_id: int
    away_team_id: int


class FixtureBatchRequest(BaseModel):
    fixtures: list[FixtureSelection]
    home_advantage: int = Field(default=HOME_ADVANTAGE, ge=0, le=20)


class ShootoutSelection(BaseModel):
    contestant1_id: IdValue
    contestant2_id: IdValue
    match_id: IdValue | None = None


class AttemptSelection(BaseModel):
    call: str
    contestant_id: IdValue | None = None


def _pct(value: float) -> str:
    return f"{value * 100:.1f}%"


def _team_payload(team: TeamStrength | None, team_id: int | None, score: int) -> dict[str, Any]:
    return {
        "id": team_id,
        "name": team.team_name if team else None,
        "score": score,
    }


def _simulation_payload(outcome: SimulationOutcome) -> dict[str, Any]:
    return {
        "probabilities": {
            "home_win": _pct(outcome.home_win_probability),
            "draw": _pct(outcome.draw_probability),
            "away_win": _pct(outcome.away_win_probability),
        },
        "simulation": outcome.to_dict(),
        "simulation_details": {
            "home_advantage": outcome.home_advantage_applied,
            "strength_difference": outcome.strength_difference,
        },
    }



def _session_contestant(session: InteractiveShootout, contestant_id: IdValue | None) -> IdValue | None:
    # JSON clients may send "1" for contestant 1 or the other way round.
    if contestant_id is None:
        return None
    for candidate in (session.contestant1_id, session.contestant2_id):
        if str(candidate) == str(contestant_id):
            return candidate
    return contestant_id

@dataclass(slots=True)
class ShootoutRecord:
    shootout_id: int
    mode: str
    contestant1_id: IdValue
    contestant2_id: IdValue
    match_id: IdValue | None = None
    session: InteractiveShootout | None = None
    outcome: ShootoutOutcome | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "shootout_id": self.shootout_id,
            "mode": self.mode,
            "match_id": self.match_id,
            "contestant1_id": self.contestant1_id,
            "contestant2_id": self.contestant2_id,
        }
        if self.outcome is not None:
            payload.update(self.outcome.to_dict())
            payload["status"] = {"phase": "complete", "is_complete": True}
        elif self.session is not None:
            status = self.session.status()
            payload["attempts"] = [attempt.to_dict() for attempt in self.session.attempts]
            payload["status"] = status.to_dict()
            payload["contestant1_score"] = status.contestant1_score
            payload["contestant2_score"] = status.contestant2_score
            payload["winner_contestant_id"] = status.winner_contestant_id
        return payload


class SimService:
    def __init__(self, data_root: Path | None = None, seed: int | None = None, persist: bool = True) -> None:
        self.data_root = data_root or Path(__file__).resolve().parents[2]
        self.state_path = self.data_root / "team_strengths.json" if persist else None
        self._rng = random.Random(seed)
        self._init_fresh_state()
        self._lock = Lock()

    def _init_fresh_state(self) -> None:
        self.registry = TeamRegistry(
            teams=build_default_teams(),
            state_path=str(self.state_path) if self.state_path else None,
        )
        if self.registry.last_load_error:
            logger.warning(self.registry.last_load_error)
        self.shootouts: dict[int, ShootoutRecord] = {}
        self.next_shootout_id: int = 1

    def _team_or_404(self, team_id: int) -> TeamStrength:
        try:
            return self.registry.get(team_id)
        except KeyError:
            raise HTTPException(status_code=404, detail="Team not found") from None

    def _shootout_or_404(self, shootout_id: int) -> ShootoutRecord:
        record = self.shootouts.get(shootout_id)
        if record is None:
            raise HTTPException(status_code=404, detail="Penalty shootout not found")
        return record

    def meta(self) -> dict[str, Any]:
        leagues = sorted({team.league for team in self.registry.teams() if team.league})
        return {
            "team_count": len(self.registry),
            "leagues": leagues,
            "home_advantage": HOME_ADVANTAGE,
            "regulation_rounds": REGULATION_ROUNDS,
            "max_shootout_attempts": MAX_SHOOTOUT_ATTEMPTS,
            "shootouts": len(self.shootouts),
        }

    def teams(self, league: str | None = None) -> list[dict[str, Any]]:
        return [team.to_dict() for team in self.registry.teams(league)]

    def update_strength(self, team_id: int, rating: float) -> dict[str, Any]:
        self._team_or_404(team_id)
        try:
            team = self.registry.update_strength(team_id, rating)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"message": "Team strength updated successfully", "team": team.to_dict()}

    def bulk_update(self, updates: list[StrengthUpdate]) -> dict[str, Any]:
        if not updates:
            raise HTTPException(status_code=400, detail="No updates provided")
        for update in updates:
            self._team_or_404(update.team_id)
        try:
            changed = self.registry.bulk_update((u.team_id, u.strength_rating) for u in updates)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {
            "message": f"Successfully updated strength ratings for {len(changed)} teams",
            "updated_teams": len(changed),
        }

    def league_analysis(self, league: str) -> dict[str, Any]:
        analysis = self.registry.league_analysis(league)
        if analysis is None:
            raise HTTPException(status_code=404, detail="League not found or has no teams")
        return analysis.to_dict()

    def league_suggestions(self, league: str) -> dict[str, Any]:
        suggestions = suggest_team_strengths(league)
        if not suggestions:
            return {
                "message": f"No predefined suggestions available for {league}",
                "suggestions": [],
            }
        applicable = self.registry.applicable_suggestions(league)
        return {
            "league": league,
            "total_suggestions": len(suggestions),
            "applicable_suggestions": len(applicable),
            "suggestions": applicable,
            "bulk_update_payload": [
                {"team_id": row["team_id"], "strength_rating": row["suggested_strength"]} for row in applicable
            ],
        }

    def apply_suggestions(self, league: str) -> dict[str, Any]:
        if not suggest_team_strengths(league):
            raise HTTPException(status_code=404, detail="No suggestions available for this league")
        changed = self.registry.apply_suggestions(league)
        if not changed:
            raise HTTPException(status_code=404, detail="No matching teams found")
        return {
            "message": f"Applied suggested strength ratings for {len(changed)} teams in {league}",
            "league": league,
            "updated_teams": len(changed),
            "updates": [{"team_id": t.team_id, "strength_rating": t.rating} for t in changed],
        }

    def simulate_match(self, payload: MatchSimulationRequest) -> dict[str, Any]:
        home_team: TeamStrength | None = None
        away_team: TeamStrength | None = None
        if payload.home_team_id is not None and payload.away_team_id is not None:
            if payload.home_team_id == payload.away_team_id:
                raise HTTPException(status_code=400, detail="Home and away teams must be different")
            home_team = self._team_or_404(payload.home_team_id)
            away_team = self._team_or_404(payload.away_team_id)
            home_rating = home_team.rating
            away_rating = away_team.rating
        elif payload.home_rating is not None and payload.away_rating is not None:
            try:
                home_rating = validate_rating(payload.home_rating)
                away_rating = validate_rating(payload.away_rating)
            except ValueError as exc:
                raise HTTPException(status_code=400, detail=str(exc)) from exc
        else:
            raise HTTPException(status_code=400, detail="Home and away team ids or ratings are required")

        outcome = simulate_score(home_rating, away_rating, home_advantage=payload.home_advantage, rng=self._rng)
        return {
            "home_team": _team_payload(home_team, payload.home_team_id, outcome.home_score),
            "away_team": _team_payload(away_team, payload.away_team_id, outcome.away_score),
            "needs_shootout": outcome.is_draw,
            **_simulation_payload(outcome),
        }

    def simulate_fixtures(self, payload: FixtureBatchRequest) -> dict[str, Any]:
        fixtures = [
            Fixture(fixture_id=row.fixture_id, home_team_id=row.home_team_id, away_team_id=row.away_team_id)
            for row in payload.fixtures
        ]
        batch = simulate_fixtures(
            fixtures,
            self.registry.ratings(),
            home_advantage=payload.home_advantage,
            rng=self._rng,
        )
        rows: list[dict[str, Any]] = []
        for result in batch.results:
            home = self.registry.get(result.home_team_id) if result.home_team_id in self.registry else None
            away = self.registry.get(result.away_team_id) if result.away_team_id in self.registry else None
            rows.append(
                {
                    "fixture_id": result.fixture_id,
                    "home_team": _team_payload(home, result.home_team_id, result.outcome.home_score),
                    "away_team": _team_payload(away, result.away_team_id, result.outcome.away_score),
                    "fallback": result.outcome.fallback,
                    **_simulation_payload(result.outcome),
                }
            )
        return {
            "message": f"Simulated {len(rows)} fixtures",
            "simulated_fixtures": rows,
            "failures": [{"fixture_id": f.fixture_id, "reason": f.reason} for f in batch.failures],
        }

    def _check_match_free(self, match_id: IdValue | None) -> None:
        if match_id is None:
            return
        for record in self.shootouts.values():
            # A shootout left level at the round cap does not settle the match.
            if record.outcome is not None and not record.outcome.resolved:
                continue
            if record.match_id == match_id:
                raise HTTPException(status_code=400, detail="Penalty shootout already exists for this match")

    def _register(self, record: ShootoutRecord) -> ShootoutRecord:
        self.shootouts[record.shootout_id] = record
        self.next_shootout_id += 1
        return record

    def start_shootout(self, payload: ShootoutSelection) -> dict[str, Any]:
        self._check_match_free(payload.match_id)
        try:
            outcome = ShootoutResolver(rng=self._rng).resolve(payload.contestant1_id, payload.contestant2_id)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        record = self._register(
            ShootoutRecord(
                shootout_id=self.next_shootout_id,
                mode="automatic",
                contestant1_id=payload.contestant1_id,
                contestant2_id=payload.contestant2_id,
                match_id=payload.match_id,
                outcome=outcome,
            )
        )
        logger.info("Shootout %d: %s", record.shootout_id, outcome.summary)
        return {"message": "Penalty shootout completed", **record.to_dict()}

    def create_manual_shootout(self, payload: ShootoutSelection) -> dict[str, Any]:
        self._check_match_free(payload.match_id)
        try:
            session = InteractiveShootout(payload.contestant1_id, payload.contestant2_id, rng=self._rng)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        record = self._register(
            ShootoutRecord(
                shootout_id=self.next_shootout_id,
                mode="manual",
                contestant1_id=payload.contestant1_id,
                contestant2_id=payload.contestant2_id,
                match_id=payload.match_id,
                session=session,
            )
        )
        return {
            "message": "Manual penalty shootout created. Use the attempt endpoint to add penalties.",
            "next_attempt": 1,
            "player_turn": payload.contestant1_id,
            **record.to_dict(),
        }

    def take_attempt(self, shootout_id: int, payload: AttemptSelection) -> dict[str, Any]:
        record = self._shootout_or_404(shootout_id)
        if record.session is None:
            raise HTTPException(status_code=400, detail="Automatic shootouts do not accept attempts")
        contestant_id = _session_contestant(record.session, payload.contestant_id)
        try:
            attempt = record.session.take_attempt(payload.call, contestant_id=contestant_id)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        status = record.session.status()
        if status.is_complete:
            record.outcome = record.session.outcome()
            logger.info("Shootout %d: %s", record.shootout_id, record.outcome.summary)
        return {
            "attempt": attempt.to_dict(),
            "current_scores": {
                "contestant1_score": status.contestant1_score,
                "contestant2_score": status.contestant2_score,
            },
            "total_attempts": status.attempts_taken,
            "next_attempt": None if status.is_complete else status.attempts_taken + 1,
            "player_turn": status.next_contestant_id,
            "is_complete": status.is_complete,
            "winner_contestant_id": status.winner_contestant_id,
        }

    def shootout(self, shootout_id: int) -> dict[str, Any]:
        return self._shootout_or_404(shootout_id).to_dict()

    def flip_coin(self) -> dict[str, Any]:
        return {
            "result": flip_coin(self._rng),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


service = SimService()
app = FastAPI(title="FIFA League API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/meta")
def meta() -> dict[str, Any]:
    with service._lock:
        return service.meta()


@app.get("/api/teams")
def teams(league: str | None = None) -> list[dict[str, Any]]:
    with service._lock:
        return service.teams(league=league)


@app.patch("/api/teams/bulk-strength")
def bulk_strength(payload: BulkStrengthSelection) -> dict[str, Any]:
    with service._lock:
        return service.bulk_update(payload.updates)


@app.patch("/api/teams/{team_id}/strength")
def team_strength(team_id: int, payload: StrengthSelection) -> dict[str, Any]:
    with service._lock:
        return service.update_strength(team_id, payload.strength_rating)


@app.get("/api/leagues/{league}/analysis")
def league_analysis(league: str) -> dict[str, Any]:
    with service._lock:
        return service.league_analysis(league)


@app.get("/api/leagues/{league}/suggestions")
def league_suggestions(league: str) -> dict[str, Any]:
    with service._lock:
        return service.league_suggestions(league)


@app.post("/api/leagues/{league}/apply-suggestions")
def apply_league_suggestions(league: str) -> dict[str, Any]:
    with service._lock:
        return service.apply_suggestions(league)


@app.post("/api/simulation/match")
def simulate_match(payload: MatchSimulationRequest) -> dict[str, Any]:
    with service._lock:
        return service.simulate_match(payload)


@app.post("/api/simulation/fixtures")
def simulate_fixture_batch(payload: FixtureBatchRequest) -> dict[str, Any]:
    with service._lock:
        return service.simulate_fixtures(payload)


@app.post("/api/penalties/shootout", status_code=201)
def start_shootout(payload: ShootoutSelection) -> dict[str, Any]:
    with service._lock:
        return service.start_shootout(payload)


@app.post("/api/penalties/manual", status_code=201)
def create_manual_shootout(payload: ShootoutSelection) -> dict[str, Any]:
    with service._lock:
        return service.create_manual_shootout(payload)


@app.post("/api/penalties/flip-coin")
def coin_flip() -> dict[str, Any]:
    with service._lock:
        return service.flip_coin()


@app.post("/api/penalties/{shootout_id}/attempt")
def shootout_attempt(shootout_id: int, payload: AttemptSelection) -> dict[str, Any]:
    with service._lock:
        return service.take_attempt(shootout_id, payload)


@app.get("/api/penalties/{shootout_id}")
def shootout(shootout_id: int) -> dict[str, Any]:
    with service._lock:
        return service.shootout(shootout_id)
