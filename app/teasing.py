"""
/roast: pick a random teasing template from the sheet and post it publicly.
"""

from __future__ import annotations

import random
from typing import List, Optional, Protocol

import config
from app.errors import BotError
from app.replies import Reply, UserAction
from logger import setup_logger
from storage.models import TeaseTemplate


logger = setup_logger(__name__, config.LOG_FILE, config.LOG_LEVEL)


class TeaseSource(Protocol):
    async def get_teasing_messages(self) -> List[TeaseTemplate]:
        ...


class TeaseSelector:
    def __init__(self, source: Optional[TeaseSource], rng: Optional[random.Random] = None) -> None:
        self.source = source
        self.rng = rng or random.Random()

    def compose(self, templates: List[TeaseTemplate], target_mention: str, sender_name: str) -> str:
        chosen = self.rng.choice(templates)
        return f"{chosen.render(target_mention)}\n\n*— {sender_name}*"

    async def roast(self, action: UserAction) -> Reply:
        """
        options: target_id, target_mention (filled by the Discord layer).
        """
        target_id = str(action.options.get("target_id") or "")
        target = str(action.options.get("target_mention") or "")

        if target_id == action.actor_id:
            return Reply(content="Tu ne peux pas te taquiner toi-même! Trouve quelqu'un d'autre à embêter 😄")

        async def _pick() -> Reply:
            if self.source is None:
                return Reply(content="Impossible de charger les messages de taquinerie!")
            try:
                templates = await self.source.get_teasing_messages()
            except BotError as e:
                logger.error(f"[Roast] loading templates failed: {e}")
                return Reply(content="Erreur lors du chargement des taquineries!")
            if not templates:
                return Reply(content=f"Désolé, je n'ai pas d'inspiration pour taquiner {target} aujourd'hui!")
            return Reply(content=self.compose(templates, target, action.actor_name), ephemeral=False, detach=True)

        return Reply(content="🎭 Préparation d'une bonne taquinerie...", followup=_pick)
