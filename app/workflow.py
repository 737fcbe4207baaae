"""
/endgame score entry: the step-by-step state machine.

S0 /endgame            -> player count buttons          (cnt)
S1 count button        -> member select, exactly N      (sel)
S2 members submitted   -> one winner button per player  (win)
S3 winner button       -> winner score modal            (wsc)
S4 winner score        -> "Enter Other Scores" button   (cont)
S5 that button         -> remaining scores modal        (rsc)
S6 remaining scores    -> completed; persist + publish in a followup

Linear, no way back. Every step runs guard-check + mutation under the
session's lock. Session state is authoritative; the winner score echoed in
`cont`/`rsc` identifiers is only accepted if it matches what S4 recorded.
"""

from __future__ import annotations

import re
from typing import Any, List, Optional, Protocol, Sequence

import config
from app.errors import (
    ConfigurationError,
    InvalidScore,
    InvalidSelection,
    MalformedStepId,
    PersistenceError,
    PublicationError,
    StalePrompt,
    StepOutOfOrder,
    WrongChannel,
)
from app.replies import ChoiceButton, Form, FormField, MemberSelect, Reply, UserAction
from app.session_guard import SessionGuard
from app.session_store import Session, SessionStore
from app.step_codec import (
    WINNER_SCORE_FIELD,
    ChooseCount,
    ChooseWinner,
    ContinueScores,
    RemainingScoresForm,
    SelectPlayers,
    WinnerScoreForm,
    encode,
    score_field_id,
)
from app.summary import SummaryPublisher
from logger import setup_logger
from storage.models import ScoreEntry, rank_scores


logger = setup_logger(__name__, config.LOG_FILE, config.LOG_LEVEL)

_INT_RE = re.compile(r"^[+-]?\d+$")

# Discord modal title / text input label limit
_MODAL_TEXT_MAX = 45

RECORDED_MESSAGE = "✅ **Game recorded!** Summary posted to channel and saved to Google Sheets."


class ResultPersister(Protocol):
    async def add_game_scores(self, scores: Sequence[ScoreEntry], session_id: str, logged_by: str) -> Any:
        ...


def _clip(text: str, limit: int = _MODAL_TEXT_MAX) -> str:
    return text if len(text) <= limit else text[: limit - 1] + "…"


class GameEntryWorkflow:
    def __init__(
        self,
        store: SessionStore,
        persister: Optional[ResultPersister],
        publisher: Optional[SummaryPublisher],
        scoring_channel_id: Optional[int] = None,
        min_players: Optional[int] = None,
        max_players: Optional[int] = None,
        score_min: Optional[int] = None,
        score_max: Optional[int] = None,
    ) -> None:
        self.store = store
        self.guard = SessionGuard(store)
        self.persister = persister
        self.publisher = publisher
        self.scoring_channel_id = (
            scoring_channel_id if scoring_channel_id is not None else getattr(config, "SCORING_CHANNEL_ID", None)
        )
        self.min_players = int(min_players if min_players is not None else getattr(config, "MIN_PLAYERS", 2))
        self.max_players = int(max_players if max_players is not None else getattr(config, "MAX_PLAYERS", 6))
        self.score_min = int(score_min if score_min is not None else getattr(config, "SCORE_MIN", 0))
        self.score_max = int(score_max if score_max is not None else getattr(config, "SCORE_MAX", 99))

    # ---------------------------
    # Helpers
    # ---------------------------
    def _winner_name(self, st: Session, index: int) -> str:
        if not st.players:
            raise StepOutOfOrder("Select the players first.")
        if not (0 <= index < len(st.players)):
            raise MalformedStepId(f"winner index {index} out of range for session {st.session_id}")
        return st.players[index]

    def _check_winner_echo(self, st: Session, winner_index: int, winner_score: int) -> None:
        if st.winner_index != winner_index or st.winner_score != winner_score:
            raise StalePrompt(
                f"echoed winner {winner_index}/{winner_score} != recorded "
                f"{st.winner_index}/{st.winner_score} (session {st.session_id})"
            )

    def _check_score(self, score: int, player: str, retry_hint: str) -> int:
        if not (self.score_min <= score <= self.score_max):
            raise InvalidScore(
                f"❌ **{player}**'s score must be between {self.score_min} and {self.score_max}. {retry_hint}"
            )
        return score

    def _parse_score(self, raw: Optional[str], player: str, retry_hint: str) -> int:
        text = (raw or "").strip()
        if not _INT_RE.match(text):
            raise InvalidScore(f"❌ **{player}**'s score must be a whole number (got \"{text}\"). {retry_hint}")
        return self._check_score(int(text), player, retry_hint)

    @staticmethod
    def _remaining_indices(st: Session, winner_index: int) -> List[int]:
        return [i for i in range(len(st.players)) if i != winner_index]

    # ---------------------------
    # S0: /endgame
    # ---------------------------
    async def start(self, action: UserAction) -> Reply:
        if not self.scoring_channel_id:
            raise ConfigurationError("SCORING_CHANNEL_ID is not set")
        if action.channel_id != self.scoring_channel_id:
            raise WrongChannel(
                f"/endgame used in channel {action.channel_id}",
                f"🎲 Please use `/endgame` in the <#{self.scoring_channel_id}> channel!",
            )

        sid = self.store.create(action.actor_id)
        logger.info(f"[EndGame] session {sid} started by {action.actor_name}")
        buttons = [
            ChoiceButton(custom_id=encode(ChooseCount(session_id=sid, count=n)), label=f"{n} Players")
            for n in range(self.min_players, self.max_players + 1)
        ]
        return Reply(
            content="🎲 **End Game Score Entry**\nHow many players were in this game?",
            buttons=buttons,
            buttons_per_row=3,
        )

    # ---------------------------
    # S1: player count chosen
    # ---------------------------
    async def choose_count(self, action: UserAction, payload: ChooseCount) -> Reply:
        n = payload.count
        async with self.store.lock(payload.session_id):
            st = self.guard.validate(payload.session_id, action.actor_id)
            if st.players:
                raise StepOutOfOrder("Players were already selected for this game.")
            self.store.mutate(st.session_id, lambda s: setattr(s, "declared_player_count", n))

        return Reply(
            content=f"🎲 **Select {n} players** who played in this Catan game:",
            member_select=MemberSelect(
                custom_id=encode(SelectPlayers(session_id=payload.session_id, count=n)),
                placeholder=f"Select {n} players for this game",
                count=n,
            ),
        )

    # ---------------------------
    # S2: players selected
    # ---------------------------
    async def select_players(self, action: UserAction, payload: SelectPlayers) -> Reply:
        names = [str(s).strip() for s in action.selections]
        async with self.store.lock(payload.session_id):
            st = self.guard.validate(payload.session_id, action.actor_id)
            if st.players:
                raise StepOutOfOrder("Players were already selected for this game.")
            if st.declared_player_count is None:
                raise StepOutOfOrder("Choose the number of players first.")
            if payload.count != st.declared_player_count:
                raise StalePrompt(
                    f"select for {payload.count} players, session declared {st.declared_player_count}"
                )
            n = st.declared_player_count
            if len(names) != n:
                raise InvalidSelection(f"❌ Please select exactly {n} players (you selected {len(names)}).")
            if any(not name for name in names):
                raise InvalidSelection("❌ One of the selected players has no name. Please select again.")
            if len(set(names)) != len(names):
                raise InvalidSelection("❌ Each player can only be selected once.")

            self.store.mutate(st.session_id, lambda s: setattr(s, "players", list(names)))

        logger.info(f"[EndGame] session {payload.session_id} players: {names}")
        buttons = [
            ChoiceButton(
                custom_id=encode(ChooseWinner(session_id=payload.session_id, winner_index=i)),
                label=f"🏆 {name}",
                style="success",
            )
            for i, name in enumerate(names)
        ]
        return Reply(
            content=f"🎲 **Players confirmed:** {', '.join(names)}\n\n🏆 **Who won this game?**",
            buttons=buttons,
        )

    # ---------------------------
    # S3: winner chosen
    # ---------------------------
    async def choose_winner(self, action: UserAction, payload: ChooseWinner) -> Reply:
        async with self.store.lock(payload.session_id):
            st = self.guard.validate(payload.session_id, action.actor_id)
            winner = self._winner_name(st, payload.winner_index)

        logger.info(f"[EndGame] session {payload.session_id} winner: {winner}")
        return Reply(
            form=Form(
                custom_id=encode(WinnerScoreForm(session_id=payload.session_id, winner_index=payload.winner_index)),
                title=_clip(f"🏆 {winner} Won!"),
                fields=[FormField(custom_id=WINNER_SCORE_FIELD, label=_clip(f"{winner}'s winning score"), placeholder="12")],
            )
        )

    # ---------------------------
    # S4: winner score submitted
    # ---------------------------
    async def winner_score(self, action: UserAction, payload: WinnerScoreForm) -> Reply:
        idx = payload.winner_index
        async with self.store.lock(payload.session_id):
            st = self.guard.validate(payload.session_id, action.actor_id)
            winner = self._winner_name(st, idx)
            score = self._parse_score(
                action.fields.get(WINNER_SCORE_FIELD),
                winner,
                f"Click **🏆 {winner}** again to re-enter it.",
            )

            def _record_winner(s: Session) -> None:
                s.winner_index = idx
                s.winner_score = score

            self.store.mutate(st.session_id, _record_winner)
            remaining = [st.players[i] for i in self._remaining_indices(st, idx)]

        logger.info(f"[EndGame] session {payload.session_id} {winner}: {score} points, still need {remaining}")
        return Reply(
            content=(
                f"🏆 **{winner}** won with **{score} points!**\n\n"
                f"Now let's collect scores for: {', '.join(remaining)}"
            ),
            buttons=[
                ChoiceButton(
                    custom_id=encode(ContinueScores(session_id=payload.session_id, winner_index=idx, winner_score=score)),
                    label="📝 Enter Other Scores",
                )
            ],
        )

    # ---------------------------
    # S5: open the remaining scores form
    # ---------------------------
    async def continue_scores(self, action: UserAction, payload: ContinueScores) -> Reply:
        async with self.store.lock(payload.session_id):
            st = self.guard.validate(payload.session_id, action.actor_id)
            self._winner_name(st, payload.winner_index)
            self._check_winner_echo(st, payload.winner_index, payload.winner_score)
            fields = [
                FormField(custom_id=score_field_id(i), label=_clip(f"{st.players[i]}'s score"), placeholder="8")
                for i in self._remaining_indices(st, payload.winner_index)
            ]

        return Reply(
            form=Form(
                custom_id=encode(
                    RemainingScoresForm(
                        session_id=payload.session_id,
                        winner_index=payload.winner_index,
                        winner_score=payload.winner_score,
                    )
                ),
                title="Enter Remaining Scores",
                fields=fields,
            )
        )

    # ---------------------------
    # S6: remaining scores submitted (terminal)
    # ---------------------------
    async def remaining_scores(self, action: UserAction, payload: RemainingScoresForm) -> Reply:
        retry = "Click **📝 Enter Other Scores** to try again."
        async with self.store.lock(payload.session_id):
            st = self.guard.validate(payload.session_id, action.actor_id)
            winner = self._winner_name(st, payload.winner_index)
            self._check_winner_echo(st, payload.winner_index, payload.winner_score)
            entries = [ScoreEntry(player=winner, score=self._check_score(payload.winner_score, winner, retry))]
            for i in self._remaining_indices(st, payload.winner_index):
                player = st.players[i]
                entries.append(
                    ScoreEntry(player=player, score=self._parse_score(action.fields.get(score_field_id(i)), player, retry))
                )
            ranked = rank_scores(entries)
            self.store.mutate(st.session_id, lambda s: setattr(s, "completed", True))

        logger.info(f"[EndGame] session {payload.session_id} final scores: {[(e.player, e.score) for e in ranked]}")

        async def _followup() -> Reply:
            return await self.record(ranked, payload.session_id, action.actor_name)

        return Reply(content="⏳ Recording game...", followup=_followup)

    async def record(self, ranked: Sequence[ScoreEntry], session_id: str, logged_by: str) -> Reply:
        """
        Persist, then publish. Runs after the acknowledgment; the session is
        already completed, so nothing here is retried or rolled back.
        """
        try:
            if self.persister is None:
                raise ConfigurationError("score sheet backend is not configured")
            await self.persister.add_game_scores(ranked, session_id=session_id, logged_by=logged_by)
        except ConfigurationError as e:
            logger.error(f"[EndGame] session {session_id} not saved: {e}")
            return Reply(content=e.user_message)
        except PersistenceError as e:
            logger.error(f"[EndGame] session {session_id} not saved: {e}")
            return Reply(content=f"❌ Game could not be saved: {e}")

        try:
            if self.publisher is None:
                raise PublicationError("summary publisher is not configured", "no leaderboard channel")
            await self.publisher.publish(ranked)
        except PublicationError as e:
            logger.error(f"[EndGame] session {session_id} summary not posted: {e}")
            return Reply(
                content=f"⚠️ Game saved to Google Sheets, but the summary could not be posted: {e.user_message}"
            )

        return Reply(content=RECORDED_MESSAGE)
