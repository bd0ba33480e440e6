from datetime import datetime, timedelta, timezone

import pytest

from dashboard_service.assistant import (
    ASSISTANT_SENDER_ID,
    DASHBOARD_POLICY,
    MESSAGING_POLICY,
    build_auto_reply,
    get_policy,
    reply_offset,
)
from dashboard_service.models.models import Message

SENT_AT = datetime(2026, 10, 7, 10, 33, tzinfo=timezone.utc)


def message(content, is_bot=False):
    return Message(id=7, sender_id=1, content=content, timestamp=SENT_AT, is_bot=is_bot)


def test_dashboard_policy_keywords():
    oxygen = DASHBOARD_POLICY.rules[0].reply
    medication = DASHBOARD_POLICY.rules[1].reply
    vitals = DASHBOARD_POLICY.rules[2].reply
    appointment = DASHBOARD_POLICY.rules[3].reply

    assert DASHBOARD_POLICY.reply_for("What are Robert's OXYGEN levels?") == oxygen
    assert DASHBOARD_POLICY.reply_for("Is his O2 ok") == oxygen
    assert DASHBOARD_POLICY.reply_for("Any meds due?") == medication
    assert DASHBOARD_POLICY.reply_for("Check BP please") == vitals
    assert DASHBOARD_POLICY.reply_for("Schedule a follow-up") == appointment
    assert DASHBOARD_POLICY.reply_for("Good morning") == DASHBOARD_POLICY.fallback


def test_first_matching_rule_wins():
    # oxygen is checked before medication
    assert DASHBOARD_POLICY.reply_for("medication and oxygen") == DASHBOARD_POLICY.rules[0].reply


def test_messaging_policy_replies():
    assert MESSAGING_POLICY.reply_for("hello there") == "Hello! How can I assist you today?"
    assert MESSAGING_POLICY.reply_for("Can you help") == (
        "I'm here to help. You can ask me about patient information, reminders, or health data."
    )
    assert MESSAGING_POLICY.reply_for("thanks") == "You're welcome! Is there anything else you need?"
    assert MESSAGING_POLICY.reply_for("Good morning") == (
        "I understand. Is there anything specific you would like to know about your patients "
        "or reminders?"
    )


def test_messaging_policy_puts_greetings_first():
    assert MESSAGING_POLICY.reply_for("hi, how is the oxygen?") == "Hello! How can I assist you today?"
    # topic words have no rule of their own here
    assert MESSAGING_POLICY.reply_for("what is the oxygen level") == MESSAGING_POLICY.fallback


def test_policies_differ_on_greetings():
    assert DASHBOARD_POLICY.reply_for("hello there") == DASHBOARD_POLICY.fallback
    assert DASHBOARD_POLICY.reply_for("hi, how is the oxygen?") == DASHBOARD_POLICY.rules[0].reply


def test_get_policy():
    assert get_policy("dashboard") is DASHBOARD_POLICY
    assert get_policy("messaging") is MESSAGING_POLICY
    with pytest.raises(ValueError):
        get_policy("pirate")


def test_auto_reply_follows_trigger():
    reply = build_auto_reply(message("oxygen?"), DASHBOARD_POLICY)

    assert reply.is_bot is True
    assert reply.sender_id == ASSISTANT_SENDER_ID
    assert reply.content == DASHBOARD_POLICY.rules[0].reply
    assert reply.timestamp == SENT_AT + timedelta(seconds=1)


def test_auto_reply_custom_offset():
    reply = build_auto_reply(message("hi"), DASHBOARD_POLICY, offset=timedelta(milliseconds=5))
    assert reply.timestamp > SENT_AT


def test_bot_messages_get_no_reply():
    assert build_auto_reply(message("oxygen?", is_bot=True), DASHBOARD_POLICY) is None


def test_offset_must_be_positive():
    with pytest.raises(ValueError):
        build_auto_reply(message("hi"), DASHBOARD_POLICY, offset=timedelta(0))


def test_reply_offset_from_seconds():
    assert reply_offset(1) == timedelta(seconds=1)
    assert reply_offset(0.25) == timedelta(milliseconds=250)
    for bad in (0, -1.5):
        with pytest.raises(ValueError):
            reply_offset(bad)
