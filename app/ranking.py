"""
/myrank and /ladder: read-only views over the ranking tab.
"""

from __future__ import annotations

import datetime
from typing import List, Optional, Protocol

import config
from app.errors import BotError
from app.replies import Reply, UserAction
from app.summary import medal
from logger import setup_logger
from storage.models import RankedPlayer


logger = setup_logger(__name__, config.LOG_FILE, config.LOG_LEVEL)

UNAVAILABLE = "❌ Unable to connect to rankings database. Please try again later."


class RankingReader(Protocol):
    async def get_ladder_data(self) -> List[RankedPlayer]:
        ...

    async def get_player_rank(self, player: str) -> Optional[RankedPlayer]:
        ...


def rank_embed(p: RankedPlayer, now: Optional[datetime.datetime] = None) -> dict:
    now = now or datetime.datetime.now(datetime.timezone.utc)
    return {
        "color": 0x0099FF,
        "title": "🏆 Your Catan Ranking",
        "fields": [
            {"name": "👤 Player", "value": p.player, "inline": False},
            {"name": "🏆 Rank", "value": f"#{p.rank}", "inline": False},
            {"name": "⭐ Points", "value": p.points_display, "inline": False},
            {"name": "🎲 Games Played", "value": str(p.games), "inline": False},
        ],
        "timestamp": now.isoformat(),
        "footer": {"text": "Catan League Rankings"},
    }


def format_ladder(players: List[RankedPlayer], top_n: int = 5) -> str:
    text = f"🏆 **Catan League Leaderboard - Top {top_n}**\n\n"
    for i, p in enumerate(players[:top_n]):
        text += f"{medal(i, '🎯')} **#{p.rank} {p.player}**\n"
        text += f"   ⭐ {p.points_display} points • 🎲 {p.games} games\n\n"
    return text


class RankingCommands:
    def __init__(self, reader: Optional[RankingReader], top_n: Optional[int] = None) -> None:
        self.reader = reader
        self.top_n = int(top_n if top_n is not None else getattr(config, "LADDER_TOP_N", 5))

    async def my_rank(self, action: UserAction) -> Reply:
        async def _lookup() -> Reply:
            if self.reader is None:
                return Reply(content=UNAVAILABLE)
            try:
                found = await self.reader.get_player_rank(action.actor_name)
            except BotError as e:
                logger.error(f"[Ranking] myrank failed for {action.actor_name}: {e}")
                return Reply(content="❌ Error retrieving your ranking. Please try again later.")
            if found is None:
                return Reply(
                    content=(
                        f"❌ Could not find ranking for \"{action.actor_name}\". "
                        "Make sure you've played at least one game!"
                    )
                )
            return Reply(content="", embed=rank_embed(found))

        return Reply(content="⏳ Looking up your ranking...", followup=_lookup)

    async def ladder(self, action: UserAction) -> Reply:
        async def _load() -> Reply:
            if self.reader is None:
                return Reply(content=UNAVAILABLE, ephemeral=False)
            try:
                players = await self.reader.get_ladder_data()
            except BotError as e:
                logger.error(f"[Ranking] ladder failed: {e}")
                return Reply(content=f"❌ Error loading leaderboard: {e}", ephemeral=False)
            if not players:
                return Reply(content="❌ No ranking data available yet. Play some games first!", ephemeral=False)
            logger.info(f"[Ranking] ladder: {len(players)} players")
            return Reply(content=format_ladder(players, self.top_n), ephemeral=False)

        return Reply(content="⏳ Loading leaderboard...", ephemeral=False, followup=_load)
