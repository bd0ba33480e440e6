"""Scripted virtual nursing assistant.

Replies are fixed strings picked by case-insensitive substring match against
an ordered rule list; the first matching rule wins. Two rule tables exist and
they are kept apart because their keyword priorities and wording differ:

- ``dashboard``: the short list the dashboard chat widget was built around.
- ``messaging``: greeting, help and thanks only. Greetings win over any
  topic word, so "hi, how is the oxygen?" is answered with a greeting.
"""

from datetime import timedelta
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from .models.models import Message
from .models.schemas import MessageCreate

ASSISTANT_SENDER_ID = 0


class ReplyRule(BaseModel):
    keywords: Tuple[str, ...]
    reply: str
    model_config = ConfigDict(frozen=True)

    def matches(self, text: str) -> bool:
        return any(keyword in text for keyword in self.keywords)


class ReplyPolicy(BaseModel):
    name: str
    rules: Tuple[ReplyRule, ...]
    fallback: str
    model_config = ConfigDict(frozen=True)

    def reply_for(self, content: str) -> str:
        text = content.lower()
        for rule in self.rules:
            if rule.matches(text):
                return rule.reply
        return self.fallback


OXYGEN_KEYWORDS = ("oxygen", "o2")
MEDICATION_KEYWORDS = ("medication", "medicine", "med")
VITALS_KEYWORDS = ("vital", "bp", "blood pressure")
APPOINTMENT_KEYWORDS = ("appointment", "schedule")

DASHBOARD_POLICY = ReplyPolicy(
    name="dashboard",
    rules=(
        ReplyRule(
            keywords=OXYGEN_KEYWORDS,
            reply="The latest oxygen saturation readings for this patient are within normal range (95-98%).",
        ),
        ReplyRule(
            keywords=MEDICATION_KEYWORDS,
            reply="The patient's medication adherence is at 92%. Their next dosage is scheduled in 2 hours.",
        ),
        ReplyRule(
            keywords=VITALS_KEYWORDS,
            reply=(
                "The patient's vitals are stable. Blood pressure: 128/85, "
                "Heart rate: 72 bpm, Temperature: 37.1°C."
            ),
        ),
        ReplyRule(
            keywords=APPOINTMENT_KEYWORDS,
            reply="The patient has an upcoming appointment on Friday at 2:30 PM with Dr. Roberts.",
        ),
    ),
    fallback=(
        "I'm here to help! Is there anything specific about the patient's care "
        "that you would like to know?"
    ),
)

MESSAGING_POLICY = ReplyPolicy(
    name="messaging",
    rules=(
        ReplyRule(keywords=("hello", "hi"), reply="Hello! How can I assist you today?"),
        ReplyRule(
            keywords=("help",),
            reply=(
                "I'm here to help. You can ask me about patient information, "
                "reminders, or health data."
            ),
        ),
        ReplyRule(keywords=("thank",), reply="You're welcome! Is there anything else you need?"),
    ),
    fallback=(
        "I understand. Is there anything specific you would like to know about "
        "your patients or reminders?"
    ),
)

POLICIES: Dict[str, ReplyPolicy] = {
    DASHBOARD_POLICY.name: DASHBOARD_POLICY,
    MESSAGING_POLICY.name: MESSAGING_POLICY,
}


def get_policy(name: str) -> ReplyPolicy:
    try:
        return POLICIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown chat reply policy '{name}', expected one of {sorted(POLICIES)}"
        ) from None


def reply_offset(seconds: float) -> timedelta:
    offset = timedelta(seconds=seconds)
    if offset <= timedelta(0):
        raise ValueError(f"Reply offset must be positive, got {seconds}s")
    return offset


def build_auto_reply(
    trigger: Message, policy: ReplyPolicy, offset: timedelta = timedelta(seconds=1)
) -> Optional[MessageCreate]:
    """
    The assistant's answer to a human message, or None for bot messages so a
    reply can never trigger another reply.

    The reply is stamped `offset` after the trigger rather than with the wall
    clock, which keeps it strictly after the trigger in conversation order.
    """
    if trigger.is_bot:
        return None
    if offset <= timedelta(0):
        raise ValueError("Reply offset must be positive")
    return MessageCreate(
        sender_id=ASSISTANT_SENDER_ID,
        content=policy.reply_for(trigger.content),
        timestamp=trigger.timestamp + offset,
        is_bot=True,
    )
