from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

ContestantId = Union[int, str]
TeamId = Union[int, str]

REGULATION = "regulation"
SUDDEN_DEATH = "sudden_death"
COMPLETE = "complete"


@dataclass(frozen=True, slots=True)
class TeamStrength:
    team_id: TeamId
    rating: int
    team_name: str = ""
    league: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "team_id": self.team_id,
            "team_name": self.team_name,
            "league": self.league,
            "strength_rating": self.rating,
        }


@dataclass(frozen=True, slots=True)
class Fixture:
    fixture_id: Any
    home_team_id: TeamId
    away_team_id: TeamId


@dataclass(frozen=True, slots=True)
class MatchProbabilities:
    home: float
    draw: float
    away: float


@dataclass(frozen=True, slots=True)
class SimulationOutcome:
    home_score: int
    away_score: int
    home_win_probability: float
    draw_probability: float
    away_win_probability: float
    home_advantage_applied: int
    strength_difference: int
    fallback: bool = False

    @property
    def result(self) -> str:
        if self.home_score > self.away_score:
            return "home"
        if self.home_score < self.away_score:
            return "away"
        return "draw"

    @property
    def is_draw(self) -> bool:
        return self.home_score == self.away_score

    def to_dict(self) -> dict[str, Any]:
        return {
            "home_score": self.home_score,
            "away_score": self.away_score,
            "home_win_probability": self.home_win_probability,
            "draw_probability": self.draw_probability,
            "away_win_probability": self.away_win_probability,
            "home_advantage_applied": self.home_advantage_applied,
            "strength_difference": self.strength_difference,
            "fallback": self.fallback,
        }


@dataclass(frozen=True, slots=True)
class FixtureSimulation:
    fixture_id: Any
    home_team_id: TeamId
    away_team_id: TeamId
    outcome: SimulationOutcome


@dataclass(frozen=True, slots=True)
class FixtureFailure:
    fixture_id: Any
    reason: str


@dataclass(frozen=True, slots=True)
class BatchSimulation:
    results: tuple[FixtureSimulation, ...] = ()
    failures: tuple[FixtureFailure, ...] = ()

    @property
    def fallback_count(self) -> int:
        return len(self.failures)


@dataclass(frozen=True, slots=True)
class ShootoutAttempt:
    sequence_number: int
    contestant_id: ContestantId
    round_number: int
    call: str
    outcome: str
    scored: bool
    narrative: str = ""
    phase: str = REGULATION

    def to_dict(self) -> dict[str, Any]:
        return {
            "sequence_number": self.sequence_number,
            "contestant_id": self.contestant_id,
            "round_number": self.round_number,
            "phase": self.phase,
            "call": self.call,
            "outcome": self.outcome,
            "scored": self.scored,
            "narrative": self.narrative,
        }


@dataclass(frozen=True, slots=True)
class ShootoutOutcome:
    contestant1_id: ContestantId
    contestant2_id: ContestantId
    attempts: tuple[ShootoutAttempt, ...]
    contestant1_score: int
    contestant2_score: int
    winner_contestant_id: ContestantId | None

    @property
    def resolved(self) -> bool:
        return self.winner_contestant_id is not None

    @property
    def loser_contestant_id(self) -> ContestantId | None:
        if self.winner_contestant_id is None:
            return None
        if self.winner_contestant_id == self.contestant1_id:
            return self.contestant2_id
        return self.contestant1_id

    @property
    def summary(self) -> str:
        score = f"{self.contestant1_score}-{self.contestant2_score}"
        if not self.resolved:
            return f"Penalty shootout unresolved after {len(self.attempts)} attempts at {score}."
        return f"Penalty shootout completed! Final score: {score}. Winner: {self.winner_contestant_id}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "contestant1_id": self.contestant1_id,
            "contestant2_id": self.contestant2_id,
            "contestant1_score": self.contestant1_score,
            "contestant2_score": self.contestant2_score,
            "winner_contestant_id": self.winner_contestant_id,
            "resolved": self.resolved,
            "summary": self.summary,
            "attempts": [attempt.to_dict() for attempt in self.attempts],
        }


@dataclass(frozen=True, slots=True)
class ShootoutStatus:
    phase: str
    round_number: int
    contestant1_score: int
    contestant2_score: int
    attempts_taken: int
    next_contestant_id: ContestantId | None = None
    winner_contestant_id: ContestantId | None = None

    @property
    def is_complete(self) -> bool:
        return self.phase == COMPLETE

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase,
            "round_number": self.round_number,
            "contestant1_score": self.contestant1_score,
            "contestant2_score": self.contestant2_score,
            "attempts_taken": self.attempts_taken,
            "next_contestant_id": self.next_contestant_id,
            "winner_contestant_id": self.winner_contestant_id,
            "is_complete": self.is_complete,
        }
