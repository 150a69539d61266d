import logging
import random

import pytest

from fifa_league.engine import compute_probabilities, fallback_outcome, simulate_fixtures, simulate_score
from fifa_league.models import Fixture


def test_even_teams_without_home_advantage() -> None:
    probs = compute_probabilities(50, 50, home_advantage=0)
    assert probs.home == pytest.approx(0.5)
    assert probs.draw == pytest.approx(0.30)
    assert probs.away == pytest.approx(0.20)


def test_fifteen_point_edge_gives_about_73_percent() -> None:
    probs = compute_probabilities(60, 50, home_advantage=5)
    assert probs.home == pytest.approx(0.725, abs=1e-3)
    assert probs.away == 0.0
    assert probs.home + probs.draw == pytest.approx(1.0)


def test_probabilities_are_normalized_over_rating_grid() -> None:
    for home in range(1, 101, 3):
        for away in range(1, 101, 3):
            for advantage in (0, 5, 10, 20):
                probs = compute_probabilities(home, away, home_advantage=advantage)
                assert probs.home >= 0.0
                assert probs.draw >= 0.0
                assert probs.away >= 0.0
                assert probs.home + probs.draw + probs.away == pytest.approx(1.0, abs=1e-9)


def test_home_probability_never_drops_as_home_rating_rises() -> None:
    for away in (1, 30, 50, 70, 100):
        for advantage in (0, 5, 20):
            previous = 0.0
            for home in range(1, 101):
                current = compute_probabilities(home, away, home_advantage=advantage).home
                assert current >= previous - 1e-12
                previous = current


def test_draw_is_most_likely_between_even_sides() -> None:
    even = compute_probabilities(70, 70, home_advantage=0).draw
    lopsided = compute_probabilities(95, 20, home_advantage=5).draw
    assert even > lopsided
    # Beyond a 100-point gap the draw band bottoms out instead of going negative.
    extreme = compute_probabilities(100, 1, home_advantage=20)
    assert extreme.draw > 0.0


@pytest.mark.parametrize(
    "home, away, advantage",
    [(1, 20000, 5), (20000, 1, 5), (-50000, 50000, 0), (50000, -50000, 20), (-3, -7, 5), (0.5, 1e6, 0)],
)
def test_extreme_ratings_stay_normalized(home, away, advantage) -> None:
    probs = compute_probabilities(home, away, home_advantage=advantage)
    assert min(probs.home, probs.draw, probs.away) >= 0.0
    assert probs.home + probs.draw + probs.away == pytest.approx(1.0, abs=1e-9)
    outcome = simulate_score(home, away, home_advantage=advantage, rng=random.Random(11))
    assert 0 <= outcome.home_score <= 6
    assert 0 <= outcome.away_score <= 6


def test_huge_gaps_favour_the_stronger_side() -> None:
    underdog = compute_probabilities(1, 20000)
    assert underdog.home == 0.0
    assert underdog.away == pytest.approx(0.85)
    favourite = compute_probabilities(20000, 1)
    assert favourite.away == 0.0
    assert favourite.home == pytest.approx(1.0 / 1.15)
    outcome = simulate_score(20000, 1, rng=random.Random(3))
    assert 0 <= outcome.away_score < outcome.home_score <= 6 or outcome.is_draw


def test_home_bucket_scoreline(scripted_rng) -> None:
    rng = scripted_rng(randoms=[0.1], ints=[2, 1])
    outcome = simulate_score(60, 50, home_advantage=5, rng=rng)
    assert (outcome.home_score, outcome.away_score) == (3, 1)
    assert outcome.result == "home"
    assert outcome.strength_difference == 15
    assert outcome.home_advantage_applied == 5
    assert outcome.fallback is False


def test_draw_bucket_shares_one_goal_count(scripted_rng) -> None:
    rng = scripted_rng(randoms=[0.6], ints=[2])
    outcome = simulate_score(50, 50, home_advantage=0, rng=rng)
    assert (outcome.home_score, outcome.away_score) == (2, 2)
    assert outcome.is_draw
    assert not rng.ints


def test_away_bucket_scoreline(scripted_rng) -> None:
    rng = scripted_rng(randoms=[0.95], ints=[3, 0])
    outcome = simulate_score(50, 50, home_advantage=0, rng=rng)
    assert (outcome.home_score, outcome.away_score) == (0, 4)
    assert outcome.result == "away"
    assert outcome.strength_difference == 0


def test_outcome_carries_probability_triple() -> None:
    outcome = simulate_score(80, 40, rng=random.Random(3))
    expected = compute_probabilities(80, 40)
    assert outcome.home_win_probability == pytest.approx(expected.home)
    assert outcome.draw_probability == pytest.approx(expected.draw)
    assert outcome.away_win_probability == pytest.approx(expected.away)
    assert outcome.strength_difference == 45


def test_scores_stay_within_bounds() -> None:
    rng = random.Random(2024)
    for _ in range(2000):
        outcome = simulate_score(rng.randint(1, 100), rng.randint(1, 100), home_advantage=rng.randint(0, 20), rng=rng)
        assert 0 <= outcome.home_score <= 6
        assert 0 <= outcome.away_score <= 6


def test_heavy_home_favourite_wins_most_matches() -> None:
    probs = compute_probabilities(95, 45, home_advantage=5)
    assert probs.home > 0.5
    rng = random.Random(11)
    wins = sum(1 for _ in range(1000) if simulate_score(95, 45, home_advantage=5, rng=rng).result == "home")
    assert wins / 1000 > 0.55


def test_even_match_frequencies_follow_probabilities() -> None:
    rng = random.Random(5)
    trials = 2000
    counts = {"home": 0, "draw": 0, "away": 0}
    for _ in range(trials):
        counts[simulate_score(50, 50, home_advantage=0, rng=rng).result] += 1
    assert counts["home"] / trials == pytest.approx(0.5, abs=0.04)
    assert counts["draw"] / trials == pytest.approx(0.3, abs=0.04)
    assert counts["away"] / trials == pytest.approx(0.2, abs=0.04)


def test_fallback_outcome_is_neutral() -> None:
    outcome = fallback_outcome(rng=random.Random(1))
    assert outcome.fallback is True
    assert (outcome.home_win_probability, outcome.draw_probability, outcome.away_win_probability) == (0.33, 0.34, 0.33)
    assert outcome.strength_difference == 0
    assert 0 <= outcome.home_score <= 3
    assert 0 <= outcome.away_score <= 3


def test_batch_substitutes_fallback_for_missing_team(caplog) -> None:
    fixtures = [
        Fixture(fixture_id=1, home_team_id=10, away_team_id=20),
        Fixture(fixture_id=2, home_team_id=10, away_team_id=99),
        Fixture(fixture_id=3, home_team_id=20, away_team_id=10),
    ]
    ratings = {10: 80, 20: 60}
    with caplog.at_level(logging.WARNING, logger="fifa_league"):
        batch = simulate_fixtures(fixtures, ratings, rng=random.Random(8))

    assert [row.fixture_id for row in batch.results] == [1, 2, 3]
    assert [row.outcome.fallback for row in batch.results] == [False, True, False]
    assert len(batch.failures) == 1
    assert batch.failures[0].fixture_id == 2
    assert batch.results[0].outcome.strength_difference == 25
    assert "fixture 2" in caplog.text


def test_batch_accepts_rating_callable() -> None:
    def lookup(team_id: int) -> int:
        if team_id == 3:
            raise LookupError("rating unavailable")
        return 50

    fixtures = [Fixture(fixture_id=f"f{i}", home_team_id=i, away_team_id=i + 10) for i in range(1, 6)]
    batch = simulate_fixtures(fixtures, lookup, home_advantage=0, rng=random.Random(4))
    assert len(batch.results) == 5
    assert batch.fallback_count == 1
    assert batch.failures[0].reason == "rating unavailable"
    assert batch.results[2].outcome.fallback is True
