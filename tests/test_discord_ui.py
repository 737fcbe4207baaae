import asyncio
from types import SimpleNamespace

import discord

from app.discord_ui import action_from_interaction, render_modal, render_view
from app.replies import ActionKind, ChoiceButton, Form, FormField, MemberSelect, Reply


def _interaction(kind, data):
    return SimpleNamespace(
        type=kind,
        data=data,
        user=SimpleNamespace(id=42, name="alice"),
        channel_id=1001,
        guild=None,
    )


def test_user_select_becomes_ordered_usernames():
    interaction = _interaction(
        discord.InteractionType.component,
        {
            "custom_id": "sel|2|ab",
            "component_type": discord.ComponentType.user_select.value,
            "values": ["20", "10"],
            "resolved": {"users": {"10": {"username": "bob"}, "20": {"username": "carol"}}},
        },
    )
    action = action_from_interaction(interaction)
    assert action.kind == ActionKind.MULTI_SELECT
    assert action.selections == ["carol", "bob"]
    assert action.actor_id == "42"


def test_button_click_and_modal_fields():
    click = action_from_interaction(
        _interaction(
            discord.InteractionType.component,
            {"custom_id": "cnt|3|ab", "component_type": discord.ComponentType.button.value},
        )
    )
    assert click.kind == ActionKind.CHOICE and click.custom_id == "cnt|3|ab"

    form = action_from_interaction(
        _interaction(
            discord.InteractionType.modal_submit,
            {
                "custom_id": "rsc|0|10|ab",
                "components": [
                    {"type": 1, "components": [{"type": 4, "custom_id": "score_1", "value": "8"}]},
                    {"type": 1, "components": [{"type": 4, "custom_id": "score_2", "value": " 9 "}]},
                ],
            },
        )
    )
    assert form.kind == ActionKind.FORM
    assert form.fields == {"score_1": "8", "score_2": " 9 "}


def test_render_view_rows_and_select():
    async def build():
        buttons = [ChoiceButton(custom_id=f"cnt|{n}|ab", label=f"{n} Players") for n in range(2, 7)]
        view = render_view(Reply(content="x", buttons=buttons, buttons_per_row=3))
        select_view = render_view(
            Reply(content="y", member_select=MemberSelect(custom_id="sel|3|ab", placeholder="pick", count=3))
        )
        return view, select_view

    view, select_view = asyncio.run(build())
    assert [item.row for item in view.children] == [0, 0, 0, 1, 1]
    sel = select_view.children[0]
    assert sel.min_values == 3 and sel.max_values == 3
    assert render_view(Reply(content="plain")) is None


def test_render_modal_fields():
    async def build():
        return render_modal(
            Form(custom_id="wsc|1|ab", title="🏆 Bob Won!", fields=[FormField("winner_score", "Bob's winning score", "12")])
        )

    modal = asyncio.run(build())
    assert modal.title == "🏆 Bob Won!"
    assert modal.custom_id == "wsc|1|ab"
    assert [c.custom_id for c in modal.children] == ["winner_score"]
