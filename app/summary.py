"""
Public game summary: formatting and posting to the leaderboard channel.
"""

from __future__ import annotations

import datetime
from typing import Optional, Protocol, Sequence

import discord

import config
from app.errors import PublicationError
from logger import setup_logger
from storage.models import ScoreEntry


logger = setup_logger(__name__, config.LOG_FILE, config.LOG_LEVEL)

_MEDALS = ("🥇", "🥈", "🥉")
_OTHER = "🐑"


def medal(position: int, fallback: str = _OTHER) -> str:
    return _MEDALS[position] if position < len(_MEDALS) else fallback


def format_game_date(day: datetime.date) -> str:
    # "Saturday, October 18, 2026"
    return f"{day.strftime('%A')}, {day.strftime('%B')} {day.day}, {day.year}"


def format_game_summary(scores: Sequence[ScoreEntry], day: Optional[datetime.date] = None) -> str:
    if not scores:
        raise ValueError("empty score list")
    day = day or datetime.date.today()

    ranking = "".join(
        f"    {medal(i)} **{e.player}**: {e.score} points\n" for i, e in enumerate(scores)
    )
    return (
        "🎲 **Catan Game Summary**\n\n"
        f"📅 **Date**: {format_game_date(day)}\n"
        f"👥 **Players**: {len(scores)}\n\n"
        f"**Final Rankings**:\n{ranking}\n"
        f"Congratulations {scores[0].player}! 🎉"
    )


class SummaryPublisher(Protocol):
    async def publish(self, scores: Sequence[ScoreEntry]) -> None:
        ...


class DiscordSummaryPublisher:
    def __init__(self, bot: discord.Client, channel_id: Optional[int]) -> None:
        self.bot = bot
        self.channel_id = channel_id

    async def publish(self, scores: Sequence[ScoreEntry]) -> None:
        if not self.channel_id:
            raise PublicationError("LEADERBOARD_CHANNEL_ID is not set", "leaderboard channel is not configured")

        channel = self.bot.get_channel(self.channel_id)
        if channel is None:
            try:
                channel = await self.bot.fetch_channel(self.channel_id)
            except discord.DiscordException as e:
                raise PublicationError(
                    f"Could not find leaderboard channel {self.channel_id}: {e}",
                    "leaderboard channel not found",
                ) from e

        try:
            await channel.send(format_game_summary(scores))
        except discord.DiscordException as e:
            raise PublicationError(f"Failed to post summary: {e}", str(e)) from e
        logger.info("Game summary posted to leaderboard channel")
