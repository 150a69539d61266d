from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
import json
import shutil
from typing import Any, Iterable

from .config import MAX_RATING, MIN_RATING, SUGGESTED_STRENGTHS
from .logging_config import get_logger
from .models import TeamId, TeamStrength

logger = get_logger(__name__)


def validate_rating(rating: Any, team_id: TeamId | None = None) -> int:
    """Return the rating as an int, rejecting anything outside 1..100."""
    if isinstance(rating, bool) or not isinstance(rating, (int, float)):
        raise ValueError("Strength rating must be a number")
    if rating < MIN_RATING or rating > MAX_RATING:
        if team_id is None:
            raise ValueError(f"Team strength rating must be between {MIN_RATING} and {MAX_RATING}")
        raise ValueError(f"Invalid strength rating {rating} for team {team_id}")
    return int(rating)


def suggest_team_strengths(league: str) -> dict[str, int]:
    return dict(SUGGESTED_STRENGTHS.get(league, {}))


@dataclass(slots=True)
class LeagueStrengthAnalysis:
    league: str
    team_count: int
    average_strength: float
    min_strength: int
    max_strength: int
    strength_range: int
    teams: list[TeamStrength]

    def to_dict(self) -> dict[str, Any]:
        return {
            "league": self.league,
            "team_count": self.team_count,
            "average_strength": self.average_strength,
            "min_strength": self.min_strength,
            "max_strength": self.max_strength,
            "strength_range": self.strength_range,
            "teams": [team.to_dict() for team in self.teams],
        }


class TeamRegistry:
    """Team strength ratings keyed by team id, optionally saved to JSON."""

    SAVE_VERSION = 1

    def __init__(self, teams: Iterable[TeamStrength] = (), state_path: str | None = None) -> None:
        self.state_path = Path(state_path) if state_path else None
        self.last_load_error: str = ""
        self._teams: dict[TeamId, TeamStrength] = {}
        loaded = self._load_state()
        for team in loaded or list(teams):
            self._teams[team.team_id] = team

    def __contains__(self, team_id: object) -> bool:
        return team_id in self._teams

    def __len__(self) -> int:
        return len(self._teams)

    def teams(self, league: str | None = None) -> list[TeamStrength]:
        rows = [team for team in self._teams.values() if league is None or team.league == league]
        return sorted(rows, key=lambda t: (t.league, -t.rating, t.team_name))

    def get(self, team_id: TeamId) -> TeamStrength:
        try:
            return self._teams[team_id]
        except KeyError:
            raise KeyError(f"Team {team_id} not found") from None

    def rating(self, team_id: TeamId) -> int:
        return self.get(team_id).rating

    def ratings(self) -> dict[TeamId, int]:
        return {team_id: team.rating for team_id, team in self._teams.items()}

    def find_by_name(self, team_name: str, league: str | None = None) -> TeamStrength | None:
        for team in self._teams.values():
            if team.team_name == team_name and (league is None or team.league == league):
                return team
        return None

    def update_strength(self, team_id: TeamId, rating: Any) -> TeamStrength:
        team = self.get(team_id)
        updated = replace(team, rating=validate_rating(rating))
        self._teams[team_id] = updated
        self._save_state()
        return updated

    def bulk_update(self, updates: Iterable[tuple[TeamId, Any]]) -> list[TeamStrength]:
        """Apply all updates or none of them."""
        staged: list[TeamStrength] = []
        for team_id, rating in updates:
            team = self.get(team_id)
            staged.append(replace(team, rating=validate_rating(rating, team_id)))
        for team in staged:
            self._teams[team.team_id] = team
        if staged:
            self._save_state()
        return staged

    def league_analysis(self, league: str) -> LeagueStrengthAnalysis | None:
        rows = sorted(
            (team for team in self._teams.values() if team.league == league),
            key=lambda t: (-t.rating, t.team_name),
        )
        if not rows:
            return None
        ratings = [team.rating for team in rows]
        return LeagueStrengthAnalysis(
            league=league,
            team_count=len(rows),
            average_strength=round(sum(ratings) / len(ratings), 1),
            min_strength=min(ratings),
            max_strength=max(ratings),
            strength_range=max(ratings) - min(ratings),
            teams=rows,
        )

    def applicable_suggestions(self, league: str) -> list[dict[str, Any]]:
        suggestions = suggest_team_strengths(league)
        rows: list[dict[str, Any]] = []
        for team in self.teams(league):
            suggested = suggestions.get(team.team_name)
            if suggested is None:
                continue
            rows.append(
                {
                    "team_id": team.team_id,
                    "team_name": team.team_name,
                    "current_strength": team.rating,
                    "suggested_strength": suggested,
                    "difference": suggested - team.rating,
                }
            )
        return rows

    def apply_suggestions(self, league: str) -> list[TeamStrength]:
        updates = [(row["team_id"], row["suggested_strength"]) for row in self.applicable_suggestions(league)]
        return self.bulk_update(updates)

    def _load_state(self) -> list[TeamStrength]:
        if self.state_path is None or not self.state_path.exists():
            return []
        try:
            raw = json.loads(self.state_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            self.last_load_error = f"Failed to load team strengths ({exc}); starting with defaults."
            logger.error(self.last_load_error)
            return []

        if isinstance(raw, dict):
            version = int(raw.get("save_version", 1) or 1)
            if version > self.SAVE_VERSION:
                self.last_load_error = (
                    f"Unsupported team strength version {version}; app supports up to {self.SAVE_VERSION}."
                )
                logger.warning(self.last_load_error)
                return []
            payload = raw.get("teams", [])
        else:
            # Legacy saves were a bare list of teams.
            payload = raw
        if not isinstance(payload, list):
            self.last_load_error = "Team strength file has invalid format; starting with defaults."
            logger.warning(self.last_load_error)
            return []

        teams: list[TeamStrength] = []
        for row in payload:
            if not isinstance(row, dict) or "team_id" not in row:
                continue
            try:
                rating = validate_rating(row.get("strength_rating", row.get("rating")), row["team_id"])
            except ValueError as exc:
                logger.warning("Skipping saved team: %s", exc)
                continue
            teams.append(
                TeamStrength(
                    team_id=row["team_id"],
                    rating=rating,
                    team_name=str(row.get("team_name", "")),
                    league=str(row.get("league", "")),
                )
            )
        return teams

    def _save_state(self) -> None:
        if self.state_path is None:
            return
        payload = {
            "save_version": self.SAVE_VERSION,
            "teams": [team.to_dict() for team in self.teams()],
        }
        self._write_json_with_backup(self.state_path, payload)

    def _write_json_with_backup(self, path: Path, payload: Any) -> None:
        if path.exists():
            backup = path.with_suffix(path.suffix + ".bak")
            try:
                shutil.copy2(path, backup)
            except OSError as exc:
                logger.warning("Could not back up %s: %s", path, exc)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
