"""
Spreadsheet row models.

ScoreEntry is internal (what the workflow produces). RankedPlayer and
TeaseTemplate are parsed from sheet cells, which come back as strings, so
they are Pydantic models that coerce on the way in.
"""

from __future__ import annotations

from dataclasses import dataclass
import datetime
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field, field_validator


MAX_PLAYER_SLOTS = 6

SCORE_HEADERS: List[str] = [
    "Game_id",
    "Game_date",
    "Game_nb_players",
    "Game_VP",
    "Logged_by",
] + [h for i in range(1, MAX_PLAYER_SLOTS + 1) for h in (f"Player_{i}_Discord", f"Player_{i}_VP")]

RANKING_HEADERS = ["Rank", "Player", "Points", "Games"]


@dataclass(frozen=True)
class ScoreEntry:
    player: str
    score: int


def rank_scores(entries: Sequence[ScoreEntry]) -> List[ScoreEntry]:
    """Highest score first. sorted() is stable, so ties keep input order."""
    return sorted(entries, key=lambda e: e.score, reverse=True)


def _number(value: Any) -> Any:
    if isinstance(value, str):
        v = value.strip().replace(",", "").replace("#", "")
        if not v:
            return None
        try:
            f = float(v)
        except ValueError:
            return value
        return int(f) if f.is_integer() else f
    return value


class RankedPlayer(BaseModel):
    rank: int = Field(..., ge=1)
    player: str = Field(..., min_length=1)
    points: float = 0
    games: int = 0

    @field_validator("rank", "points", "games", mode="before")
    @classmethod
    def _coerce_number(cls, v: Any) -> Any:
        return _number(v)

    @field_validator("player", mode="before")
    @classmethod
    def _strip_player(cls, v: Any) -> Any:
        return str(v or "").strip()

    @property
    def points_display(self) -> str:
        return str(int(self.points)) if float(self.points).is_integer() else f"{self.points:g}"

    @classmethod
    def from_cells(cls, cells: Sequence[Any]) -> Optional["RankedPlayer"]:
        """Build from [rank, player, points, games]; None for header/blank rows."""
        padded = list(cells) + [""] * (len(RANKING_HEADERS) - len(cells))
        try:
            return cls(rank=padded[0], player=padded[1], points=padded[2] or 0, games=padded[3] or 0)
        except ValueError:
            return None


class TeaseTemplate(BaseModel):
    template: str = Field(..., min_length=1)

    def render(self, player_mention: str) -> str:
        return self.template.replace("{player}", player_mention)


def build_game_record(
    scores: Sequence[ScoreEntry],
    game_id: str,
    logged_by: str,
    today: Optional[datetime.date] = None,
) -> Dict[str, Any]:
    """
    One spreadsheet row (header -> value) for a finished game. `scores` must
    already be ranked; slots beyond the player count are padded with "".
    """
    if not scores:
        raise ValueError("cannot record a game without scores")
    if len(scores) > MAX_PLAYER_SLOTS:
        raise ValueError(f"at most {MAX_PLAYER_SLOTS} players per game")

    today = today or datetime.date.today()
    record: Dict[str, Any] = {
        "Game_id": game_id,
        "Game_date": today.isoformat(),
        "Game_nb_players": len(scores),
        "Game_VP": scores[0].score,
        "Logged_by": logged_by,
    }
    for i in range(MAX_PLAYER_SLOTS):
        if i < len(scores):
            record[f"Player_{i + 1}_Discord"] = scores[i].player
            record[f"Player_{i + 1}_VP"] = scores[i].score
        else:
            record[f"Player_{i + 1}_Discord"] = ""
            record[f"Player_{i + 1}_VP"] = ""
    return record


def record_to_row(record: Dict[str, Any], headers: Sequence[str]) -> List[Any]:
    """Order a record by the sheet's header row (unknown headers get "")."""
    return [record.get(h, "") for h in headers]
