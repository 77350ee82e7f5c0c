"""BDD tests for chat unread counters."""

from pytest_bdd import given, parsers, scenarios, then, when

from engagement.chat.message import Sender
from engagement.chat.session import Reader, SessionClosedError

scenarios("features/chat_unread.feature")


def _send(run, manager, clock, session, sender, count):
    for i in range(count):
        clock.advance()
        run(manager.send_message(session.id, f"{sender.value} message {i + 1}", sender))


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('"{name}" has an open chat session'), target_fixture="session")
def _(run, manager, name):
    return run(manager.create_or_get_session("u1", name))


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse("the customer sends {count:d} messages"))
@given(parsers.cfparse("the customer sends {count:d} message"))
@when(parsers.cfparse("the customer sends {count:d} messages"))
def _(run, manager, clock, session, count):
    _send(run, manager, clock, session, Sender.USER, count)


@given(parsers.cfparse("the agent sends {count:d} message"))
def _(run, manager, clock, session, count):
    _send(run, manager, clock, session, Sender.AGENT, count)


@when("a system message is posted")
def _(run, manager, clock, session):
    _send(run, manager, clock, session, Sender.SYSTEM, 1)


@when("the agent marks the session read")
def _(run, manager, session):
    run(manager.mark_session_read(session.id, Reader.AGENT))


@when("the session is closed")
def _(run, manager, session):
    run(manager.close_session(session.id))


@when("the customer tries to send a message")
def _(run, manager, session, error):
    try:
        run(manager.send_message(session.id, "Are you still there?"))
    except SessionClosedError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the agent has {count:d} unread messages"))
def _(run, manager, session, count):
    assert run(manager.get_session(session.id)).unread_count == count


@then(parsers.cfparse("the customer has {count:d} unread messages"))
@then(parsers.cfparse("the customer has {count:d} unread message"))
def _(run, manager, session, count):
    assert run(manager.get_session(session.id)).customer_unread_count == count


@then("the message is rejected because the session is closed")
def _(error):
    assert isinstance(error["exc"], SessionClosedError)


@then(parsers.cfparse("the session has {count:d} message"))
def _(run, manager, session, count):
    assert len(run(manager.get_messages(session.id))) == count
