"""
discord.py <-> app.replies translation.

- UserAction from a component / modal interaction (raw interaction.data)
- Reply -> View / Modal / Embed
- DiscordResponder: the Responder used by the router
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import discord

import config
from app.replies import ActionKind, Form, Reply, UserAction, button_rows
from logger import setup_logger


logger = setup_logger(__name__, config.LOG_FILE, config.LOG_LEVEL)

_STYLES = {
    "primary": discord.ButtonStyle.primary,
    "secondary": discord.ButtonStyle.secondary,
    "success": discord.ButtonStyle.success,
    "danger": discord.ButtonStyle.danger,
}


def _view_timeout() -> float:
    # Components outlive nothing: once the session expires they are dead anyway.
    return float(getattr(config, "SESSION_TTL_SECONDS", 1800))


# ---------------------------
# Inbound
# ---------------------------
def _selected_names(data: Dict[str, Any], guild: Optional[discord.Guild]) -> List[str]:
    users = ((data.get("resolved") or {}).get("users")) or {}
    names: List[str] = []
    for uid in data.get("values") or []:
        u = users.get(str(uid)) or {}
        name = str(u.get("username") or "").strip()
        if not name and guild is not None:
            member = guild.get_member(int(uid))
            name = member.name if member else ""
        names.append(name or str(uid))
    return names


def _form_fields(data: Dict[str, Any]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for row in data.get("components") or []:
        for comp in row.get("components") or []:
            cid = comp.get("custom_id")
            if cid:
                out[str(cid)] = str(comp.get("value") or "")
    return out


def action_from_interaction(interaction: discord.Interaction) -> Optional[UserAction]:
    data: Dict[str, Any] = dict(interaction.data or {})
    custom_id = str(data.get("custom_id") or "")
    base = dict(
        actor_id=str(interaction.user.id),
        actor_name=interaction.user.name,
        channel_id=interaction.channel_id,
        custom_id=custom_id,
    )

    if interaction.type == discord.InteractionType.modal_submit:
        return UserAction(kind=ActionKind.FORM, fields=_form_fields(data), **base)

    if interaction.type == discord.InteractionType.component:
        ctype = data.get("component_type")
        if ctype == discord.ComponentType.button.value:
            return UserAction(kind=ActionKind.CHOICE, **base)
        if ctype == discord.ComponentType.user_select.value:
            return UserAction(
                kind=ActionKind.MULTI_SELECT,
                selections=_selected_names(data, interaction.guild),
                **base,
            )
    return None


def command_action(interaction: discord.Interaction, command: str, **options: Any) -> UserAction:
    return UserAction(
        kind=ActionKind.COMMAND,
        actor_id=str(interaction.user.id),
        actor_name=interaction.user.name,
        channel_id=interaction.channel_id,
        command=command,
        options=options,
    )


# ---------------------------
# Outbound
# ---------------------------
def render_view(reply: Reply) -> Optional[discord.ui.View]:
    if not reply.buttons and reply.member_select is None:
        return None

    view = discord.ui.View(timeout=_view_timeout())
    row = 0
    for chunk in button_rows(reply.buttons, reply.buttons_per_row):
        for b in chunk:
            view.add_item(
                discord.ui.Button(
                    label=b.label,
                    style=_STYLES.get(b.style, discord.ButtonStyle.primary),
                    custom_id=b.custom_id,
                    row=row,
                )
            )
        row += 1

    if reply.member_select is not None:
        sel = reply.member_select
        view.add_item(
            discord.ui.UserSelect(
                custom_id=sel.custom_id,
                placeholder=sel.placeholder,
                min_values=sel.count,
                max_values=sel.count,
                row=row,
            )
        )
    return view


def render_modal(form: Form) -> discord.ui.Modal:
    modal = discord.ui.Modal(title=form.title, custom_id=form.custom_id, timeout=_view_timeout())
    for f in form.fields:
        modal.add_item(
            discord.ui.TextInput(
                label=f.label,
                custom_id=f.custom_id,
                placeholder=f.placeholder or None,
                style=discord.TextStyle.short,
                required=True,
            )
        )
    return modal


def message_kwargs(reply: Reply) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {"content": reply.content or None}
    if reply.embed:
        kwargs["embed"] = discord.Embed.from_dict(reply.embed)
    view = render_view(reply)
    if view is not None:
        kwargs["view"] = view
    return kwargs


class DiscordResponder:
    def __init__(self, interaction: discord.Interaction) -> None:
        self.interaction = interaction

    def is_done(self) -> bool:
        return self.interaction.response.is_done()

    async def send(self, reply: Reply) -> None:
        if reply.form is not None:
            await self.interaction.response.send_modal(render_modal(reply.form))
            return
        await self.interaction.response.send_message(ephemeral=reply.ephemeral, **message_kwargs(reply))

    async def send_followup(self, reply: Reply) -> None:
        if reply.detach:
            try:
                await self.interaction.delete_original_response()
            except discord.HTTPException as e:
                logger.warning(f"Could not delete placeholder response: {e}")
            await self.interaction.followup.send(ephemeral=reply.ephemeral, **message_kwargs(reply))
            return

        kwargs = message_kwargs(reply)
        kwargs.setdefault("view", None)
        if kwargs["content"] is None:
            kwargs["content"] = ""
        await self.interaction.edit_original_response(**kwargs)

    async def send_late(self, reply: Reply) -> None:
        await self.interaction.followup.send(content=reply.content, ephemeral=True)
