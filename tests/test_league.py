import json

import pytest

from fifa_league.app import build_default_teams
from fifa_league.league import TeamRegistry, suggest_team_strengths, validate_rating
from fifa_league.models import TeamStrength


def _registry(**kwargs) -> TeamRegistry:
    teams = [
        TeamStrength(team_id=1, rating=90, team_name="Arsenal", league="Premier League"),
        TeamStrength(team_id=2, rating=70, team_name="Aston Villa", league="Premier League"),
        TeamStrength(team_id=3, rating=50, team_name="Everton", league="Premier League"),
        TeamStrength(team_id=4, rating=60, team_name="Hull City", league="Championship"),
    ]
    return TeamRegistry(teams=teams, **kwargs)


@pytest.mark.parametrize("value", [0, 101, -5, 250.0, True, "50", None])
def test_validate_rating_rejects_out_of_range(value) -> None:
    with pytest.raises(ValueError):
        validate_rating(value)


def test_validate_rating_accepts_bounds() -> None:
    assert validate_rating(1) == 1
    assert validate_rating(100) == 100
    assert validate_rating(72.0) == 72


def test_update_strength() -> None:
    registry = _registry()
    updated = registry.update_strength(2, 75)
    assert updated.rating == 75
    assert registry.rating(2) == 75
    with pytest.raises(KeyError):
        registry.update_strength(42, 50)
    with pytest.raises(ValueError):
        registry.update_strength(2, 0)
    assert registry.rating(2) == 75


def test_bulk_update_is_all_or_nothing() -> None:
    registry = _registry()
    with pytest.raises(ValueError, match="team 3"):
        registry.bulk_update([(1, 85), (3, 120)])
    assert registry.rating(1) == 90
    changed = registry.bulk_update([(1, 85), (3, 55)])
    assert [team.rating for team in changed] == [85, 55]
    assert registry.ratings()[3] == 55


def test_league_analysis() -> None:
    analysis = _registry().league_analysis("Premier League")
    assert analysis is not None
    assert analysis.team_count == 3
    assert analysis.average_strength == pytest.approx(70.0)
    assert (analysis.min_strength, analysis.max_strength, analysis.strength_range) == (50, 90, 40)
    assert [team.team_name for team in analysis.teams] == ["Arsenal", "Aston Villa", "Everton"]
    assert _registry().league_analysis("Serie A") is None


def test_suggestions_match_existing_teams() -> None:
    registry = _registry()
    rows = registry.applicable_suggestions("Premier League")
    by_name = {row["team_name"]: row for row in rows}
    assert by_name["Arsenal"]["suggested_strength"] == 88
    assert by_name["Arsenal"]["difference"] == -2
    changed = registry.apply_suggestions("Premier League")
    assert len(changed) == 3
    assert registry.rating(3) == 55
    assert registry.rating(4) == 60
    assert suggest_team_strengths("Serie A") == {}


def test_default_teams_cover_both_tables() -> None:
    teams = build_default_teams()
    assert len(teams) == 44
    assert len({team.team_id for team in teams}) == 44
    assert {team.league for team in teams} == {"Premier League", "Championship"}
    assert all(1 <= team.rating <= 100 for team in teams)


@pytest.mark.regression
def test_save_and_reload_with_backup(tmp_path) -> None:
    state_path = tmp_path / "team_strengths.json"
    registry = _registry(state_path=str(state_path))
    registry.update_strength(1, 91)
    payload = json.loads(state_path.read_text(encoding="utf-8"))
    assert payload["save_version"] == TeamRegistry.SAVE_VERSION

    registry.update_strength(1, 92)
    assert (tmp_path / "team_strengths.json.bak").exists()

    reloaded = TeamRegistry(teams=[], state_path=str(state_path))
    assert reloaded.rating(1) == 92
    assert reloaded.get(4).league == "Championship"


@pytest.mark.regression
def test_loads_legacy_list_save(tmp_path) -> None:
    state_path = tmp_path / "team_strengths.json"
    state_path.write_text(
        json.dumps([{"team_id": 5, "team_name": "Fulham", "strength_rating": 60}, {"team_id": 6, "rating": 300}]),
        encoding="utf-8",
    )
    registry = TeamRegistry(state_path=str(state_path))
    assert len(registry) == 1
    assert registry.rating(5) == 60


@pytest.mark.regression
def test_rejects_future_save_version(tmp_path) -> None:
    state_path = tmp_path / "team_strengths.json"
    state_path.write_text(json.dumps({"save_version": 999, "teams": []}), encoding="utf-8")
    registry = _registry(state_path=str(state_path))
    assert len(registry) == 4
    assert "Unsupported team strength version" in registry.last_load_error


@pytest.mark.regression
def test_corrupt_save_falls_back_to_defaults(tmp_path) -> None:
    state_path = tmp_path / "team_strengths.json"
    state_path.write_text("{not json", encoding="utf-8")
    registry = _registry(state_path=str(state_path))
    assert len(registry) == 4
    assert registry.last_load_error.startswith("Failed to load team strengths")
