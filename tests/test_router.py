import asyncio

from app.errors import PersistenceError
from app.replies import Reply
from app.router import GENERIC_FAILURE, InteractionRouter

from helpers import FakeResponder, button, click, command, submit


class ExplodingWorkflow:
    """Stand-in whose /endgame handler fails in configurable ways."""

    def __init__(self, exc=None, followup_exc=None):
        self.exc = exc
        self.followup_exc = followup_exc

    async def start(self, action):
        if self.exc is not None:
            raise self.exc

        async def _followup():
            if self.followup_exc is not None:
                raise self.followup_exc
            return Reply(content="done")

        return Reply(content="working", followup=_followup)

    async def _unused(self, action, payload):
        raise AssertionError("not expected")

    choose_count = select_players = choose_winner = _unused
    winner_score = continue_scores = remaining_scores = _unused


def test_primary_reply_then_followup():
    router = InteractionRouter(ExplodingWorkflow())
    responder = FakeResponder()
    asyncio.run(router.handle(command("endgame"), responder))
    assert [r.content for r in responder.sent] == ["working"]
    assert [r.content for r in responder.followups] == ["done"]
    assert responder.late == []


def test_unexpected_error_before_response_uses_primary_path():
    router = InteractionRouter(ExplodingWorkflow(exc=KeyError("boom")))
    responder = FakeResponder()
    asyncio.run(router.handle(command("endgame"), responder))
    assert [r.content for r in responder.sent] == [GENERIC_FAILURE]
    assert responder.late == []


def test_failure_after_response_uses_late_path():
    router = InteractionRouter(ExplodingWorkflow(followup_exc=ZeroDivisionError()))
    responder = FakeResponder()
    asyncio.run(router.handle(command("endgame"), responder))
    assert [r.content for r in responder.sent] == ["working"]
    assert [r.content for r in responder.late] == [GENERIC_FAILURE]


def test_bot_error_in_followup_becomes_followup_reply():
    router = InteractionRouter(ExplodingWorkflow(followup_exc=PersistenceError("down")))
    responder = FakeResponder()
    asyncio.run(router.handle(command("endgame"), responder))
    assert [r.content for r in responder.followups] == [PersistenceError.user_message]


def test_send_failure_falls_back_to_late_path():
    router = InteractionRouter(ExplodingWorkflow())
    responder = FakeResponder(fail_send=RuntimeError("discord said no"))
    asyncio.run(router.handle(command("endgame"), responder))
    assert [r.content for r in responder.late] == [GENERIC_FAILURE]


def test_foreign_custom_ids_are_ignored(router):
    responder = FakeResponder()
    asyncio.run(router.handle(click("players_3"), responder))
    assert responder.sent == []
    assert not router.handles(click("players_3"))


def test_kind_mismatch_is_rejected(router):
    async def scenario():
        r0 = await router.dispatch(command("endgame"))
        # a button id submitted as a form
        return await router.resolve(submit(button(r0, "2 Players").custom_id, {}))

    reply = asyncio.run(scenario())
    assert "no longer valid" in reply.content


def test_unknown_command_is_not_handled(router):
    assert asyncio.run(router.dispatch(command("myrank"))) is None
    assert router.command_names == ["endgame"]


def test_missing_scoring_channel_reports_unavailable(store, persister, publisher):
    from app.workflow import GameEntryWorkflow

    wf = GameEntryWorkflow(store, persister, publisher, scoring_channel_id=0)
    reply = asyncio.run(InteractionRouter(wf).resolve(command("endgame")))
    assert "unavailable" in reply.content
    assert len(store) == 0
