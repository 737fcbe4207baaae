"""
Platform-neutral interaction values.

The workflow never touches discord.py objects. It receives a `UserAction`
("receive response") and returns a `Reply` ("present choices"); app/discord_ui.py
translates both ways.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional


class ActionKind(str, Enum):
    COMMAND = "command"            # slash command invocation
    CHOICE = "choice"              # button click
    MULTI_SELECT = "multi_select"  # user select submission
    FORM = "form"                  # modal submission


@dataclass(frozen=True)
class UserAction:
    kind: ActionKind
    actor_id: str
    actor_name: str
    channel_id: Optional[int] = None
    command: str = ""              # COMMAND only
    custom_id: str = ""            # CHOICE / MULTI_SELECT / FORM
    # MULTI_SELECT: selected identities in submission order
    selections: List[str] = field(default_factory=list)
    # FORM: field custom_id -> raw text
    fields: Dict[str, str] = field(default_factory=dict)
    # COMMAND options (e.g. /roast target)
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ChoiceButton:
    custom_id: str
    label: str
    style: str = "primary"  # primary | success | secondary | danger


@dataclass(frozen=True)
class MemberSelect:
    custom_id: str
    placeholder: str
    count: int


@dataclass(frozen=True)
class FormField:
    custom_id: str
    label: str
    placeholder: str = ""


@dataclass(frozen=True)
class Form:
    custom_id: str
    title: str
    fields: List[FormField] = field(default_factory=list)


@dataclass
class Reply:
    """
    One response to one action.

    - `form` set: shown as a modal (content/buttons ignored).
    - `followup` set: sent after the primary reply; its result edits the
      original response (or, with `detach`, replaces it with a new message).
    """

    content: str = ""
    ephemeral: bool = True
    buttons: List[ChoiceButton] = field(default_factory=list)
    buttons_per_row: int = 5
    member_select: Optional[MemberSelect] = None
    form: Optional[Form] = None
    embed: Optional[Dict[str, Any]] = None
    detach: bool = False
    followup: Optional[Callable[[], Awaitable["Reply"]]] = None


def button_rows(buttons: List[ChoiceButton], per_row: int = 5) -> List[List[ChoiceButton]]:
    """Discord allows at most 5 buttons per action row."""
    return [buttons[i:i + per_row] for i in range(0, len(buttons), per_row)]
