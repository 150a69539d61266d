from __future__ import annotations

import math
import random
from typing import Callable, Iterable, Mapping, Union

from .config import (
    DRAW_BASE,
    DRAW_SPAN,
    FALLBACK_PROBABILITIES,
    HOME_ADVANTAGE,
    LOGISTIC_SCALE,
    MAX_BUCKET_GOALS,
    MAX_GOALS,
)
from .logging_config import get_logger
from .models import (
    BatchSimulation,
    Fixture,
    FixtureFailure,
    FixtureSimulation,
    MatchProbabilities,
    SimulationOutcome,
    TeamId,
)

logger = get_logger(__name__)

RatingSource = Union[Mapping[TeamId, int], Callable[[TeamId], int]]

# Lookup errors that turn a fixture into a fallback entry instead of failing the batch.
RATING_LOOKUP_ERRORS = (LookupError, TypeError, ValueError)


def _logistic(x: float) -> float:
    # exp() only ever sees a non-positive argument, so large gaps cannot overflow.
    z = math.exp(-abs(x))
    return 1.0 / (1.0 + z) if x >= 0 else z / (1.0 + z)


def compute_probabilities(
    home_rating: float,
    away_rating: float,
    home_advantage: float = HOME_ADVANTAGE,
) -> MatchProbabilities:
    adjusted_home = home_rating + home_advantage
    diff = adjusted_home - away_rating

    home = _logistic(diff / LOGISTIC_SCALE)
    # Draws are most likely between evenly matched sides.
    balance = 1.0 - abs(diff) / 100.0
    draw = min(DRAW_BASE + DRAW_SPAN, max(DRAW_BASE, DRAW_BASE + balance * DRAW_SPAN))
    away = max(0.0, 1.0 - home - draw)

    total = home + draw + away
    return MatchProbabilities(home=home / total, draw=draw / total, away=away / total)


def _pick_bucket(probabilities: MatchProbabilities, rng: random.Random) -> str:
    roll = rng.random()
    if roll < probabilities.home:
        return "home"
    if roll < probabilities.home + probabilities.draw:
        return "draw"
    return "away"


def _sample_scoreline(bucket: str, rng: random.Random) -> tuple[int, int]:
    if bucket == "home":
        home_score = 1 + rng.randint(0, MAX_BUCKET_GOALS)
        away_score = rng.randint(0, home_score - 1)
    elif bucket == "away":
        away_score = 1 + rng.randint(0, MAX_BUCKET_GOALS)
        home_score = rng.randint(0, away_score - 1)
    else:
        home_score = away_score = rng.randint(0, MAX_BUCKET_GOALS)
    return min(home_score, MAX_GOALS), min(away_score, MAX_GOALS)


def simulate_score(
    home_rating: int,
    away_rating: int,
    home_advantage: int = HOME_ADVANTAGE,
    rng: random.Random | None = None,
) -> SimulationOutcome:
    rng = rng or random.Random()
    probabilities = compute_probabilities(home_rating, away_rating, home_advantage)
    bucket = _pick_bucket(probabilities, rng)
    home_score, away_score = _sample_scoreline(bucket, rng)
    return SimulationOutcome(
        home_score=home_score,
        away_score=away_score,
        home_win_probability=probabilities.home,
        draw_probability=probabilities.draw,
        away_win_probability=probabilities.away,
        home_advantage_applied=home_advantage,
        strength_difference=(home_rating + home_advantage) - away_rating,
    )


def fallback_outcome(
    home_advantage: int = HOME_ADVANTAGE,
    rng: random.Random | None = None,
) -> SimulationOutcome:
    """Neutral result used when a fixture cannot be simulated from ratings."""
    rng = rng or random.Random()
    home_p, draw_p, away_p = FALLBACK_PROBABILITIES
    return SimulationOutcome(
        home_score=rng.randint(0, MAX_BUCKET_GOALS),
        away_score=rng.randint(0, MAX_BUCKET_GOALS),
        home_win_probability=home_p,
        draw_probability=draw_p,
        away_win_probability=away_p,
        home_advantage_applied=home_advantage,
        strength_difference=0,
        fallback=True,
    )


def _lookup_rating(ratings: RatingSource, team_id: TeamId) -> int:
    if callable(ratings):
        rating = ratings(team_id)
    else:
        rating = ratings[team_id]
    if rating is None:
        raise LookupError(f"No strength rating for team {team_id}")
    return int(rating)


def _simulate_fixture(
    fixture: Fixture,
    ratings: RatingSource,
    home_advantage: int,
    rng: random.Random,
) -> tuple[FixtureSimulation, FixtureFailure | None]:
    failure: FixtureFailure | None = None
    try:
        home_rating = _lookup_rating(ratings, fixture.home_team_id)
        away_rating = _lookup_rating(ratings, fixture.away_team_id)
    except RATING_LOOKUP_ERRORS as exc:
        reason = str(exc) or exc.__class__.__name__
        logger.warning("Error simulating fixture %s, using fallback result: %s", fixture.fixture_id, reason)
        outcome = fallback_outcome(home_advantage=home_advantage, rng=rng)
        failure = FixtureFailure(fixture_id=fixture.fixture_id, reason=reason)
    else:
        outcome = simulate_score(home_rating, away_rating, home_advantage=home_advantage, rng=rng)

    simulation = FixtureSimulation(
        fixture_id=fixture.fixture_id,
        home_team_id=fixture.home_team_id,
        away_team_id=fixture.away_team_id,
        outcome=outcome,
    )
    return simulation, failure


def simulate_fixtures(
    fixtures: Iterable[Fixture],
    ratings: RatingSource,
    home_advantage: int = HOME_ADVANTAGE,
    rng: random.Random | None = None,
) -> BatchSimulation:
    """Simulate every fixture; unrateable fixtures get a fallback result instead of aborting."""
    rng = rng or random.Random()
    pairs = [_simulate_fixture(fixture, ratings, home_advantage, rng) for fixture in fixtures]
    results = tuple(simulation for simulation, _failure in pairs)
    failures = tuple(failure for _simulation, failure in pairs if failure is not None)
    if failures:
        logger.info("Simulated %d fixtures with %d fallback results", len(results), len(failures))
    return BatchSimulation(results=results, failures=failures)
