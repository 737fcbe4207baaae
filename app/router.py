"""
Interaction routing.

Slash commands are routed by name; components and modals by the step tag
embedded in their custom_id (see app/step_codec.py). Validation / session
errors become an ephemeral reply at this boundary; anything unexpected falls
back to a generic message through whichever response path is still open.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Dict, Optional, Protocol, Tuple, Type

import config
from app.errors import (
    BotError,
    ConfigurationError,
    MalformedStepId,
    SessionError,
    ValidationError,
)
from app.ranking import RankingCommands
from app.replies import ActionKind, Reply, UserAction
from app.step_codec import (
    ChooseCount,
    ChooseWinner,
    ContinueScores,
    RemainingScoresForm,
    SelectPlayers,
    WinnerScoreForm,
    decode,
    is_step_id,
)
from app.teasing import TeaseSelector
from app.workflow import GameEntryWorkflow
from logger import setup_logger


logger = setup_logger(__name__, config.LOG_FILE, config.LOG_LEVEL)

GENERIC_FAILURE = "Something went wrong!"


class Responder(Protocol):
    """
    One interaction's response channel. `send` may be used once (the primary
    response); `send_followup` delivers the deferred result; `send_late` is the
    "already responded" path for failures that arrive after the primary.
    """

    def is_done(self) -> bool:
        ...

    async def send(self, reply: Reply) -> None:
        ...

    async def send_followup(self, reply: Reply) -> None:
        ...

    async def send_late(self, reply: Reply) -> None:
        ...


Handler = Callable[..., Awaitable[Reply]]


class InteractionRouter:
    def __init__(
        self,
        workflow: GameEntryWorkflow,
        ranking: Optional[RankingCommands] = None,
        teasing: Optional[TeaseSelector] = None,
    ) -> None:
        self.workflow = workflow
        self._commands: Dict[str, Callable[[UserAction], Awaitable[Reply]]] = {"endgame": workflow.start}
        if ranking is not None:
            self._commands["myrank"] = ranking.my_rank
            self._commands["ladder"] = ranking.ladder
        if teasing is not None:
            self._commands["roast"] = teasing.roast

        self._steps: Dict[Type, Tuple[ActionKind, Handler]] = {
            ChooseCount: (ActionKind.CHOICE, workflow.choose_count),
            SelectPlayers: (ActionKind.MULTI_SELECT, workflow.select_players),
            ChooseWinner: (ActionKind.CHOICE, workflow.choose_winner),
            WinnerScoreForm: (ActionKind.FORM, workflow.winner_score),
            ContinueScores: (ActionKind.CHOICE, workflow.continue_scores),
            RemainingScoresForm: (ActionKind.FORM, workflow.remaining_scores),
        }

    @property
    def command_names(self):
        return list(self._commands.keys())

    def handles(self, action: UserAction) -> bool:
        if action.kind == ActionKind.COMMAND:
            return action.command in self._commands
        return is_step_id(action.custom_id)

    async def dispatch(self, action: UserAction) -> Optional[Reply]:
        """
        Resolve and run the handler. Returns None for actions this router does
        not own. BotErrors propagate.
        """
        if action.kind == ActionKind.COMMAND:
            handler = self._commands.get(action.command)
            if handler is None:
                return None
            return await handler(action)

        if not is_step_id(action.custom_id):
            logger.debug(f"[Router] ignoring foreign custom_id: {action.custom_id!r}")
            return None

        payload = decode(action.custom_id)
        expected_kind, step_handler = self._steps[type(payload)]
        if action.kind != expected_kind:
            raise MalformedStepId(f"{action.kind.value} action carried {action.custom_id!r}")
        return await step_handler(action, payload)

    async def resolve(self, action: UserAction) -> Optional[Reply]:
        """dispatch() with expected errors turned into user-facing replies."""
        try:
            return await self.dispatch(action)
        except ValidationError as e:
            logger.info(f"[Router] rejected {action.kind.value} from {action.actor_name}: {e}")
            return Reply(content=e.user_message)
        except SessionError as e:
            logger.warning(f"[Router] session rejected ({e.reason}) {action.actor_name}: {e.session_id}")
            return Reply(content=e.user_message)
        except ConfigurationError as e:
            logger.error(f"[Router] configuration error: {e}")
            return Reply(content=e.user_message)

    async def handle(self, action: UserAction, responder: Responder) -> None:
        try:
            reply = await self.resolve(action)
            if reply is None:
                return
            await responder.send(reply)

            if reply.followup is not None:
                try:
                    result = await reply.followup()
                except BotError as e:
                    logger.error(f"[Router] followup failed: {e}")
                    result = Reply(content=e.user_message, ephemeral=reply.ephemeral)
                await responder.send_followup(result)
        except Exception:
            logger.exception(f"[Router] interaction error ({action.kind.value} {action.command or action.custom_id})")
            await self._fallback(responder)

    async def _fallback(self, responder: Responder) -> None:
        failure = Reply(content=GENERIC_FAILURE)
        try:
            if not responder.is_done():
                await responder.send(failure)
            else:
                await responder.send_late(failure)
        except Exception as e:
            logger.error(f"[Router] could not deliver failure message: {e}")
