"""ChatSession aggregate.

State Machine:
    (none) → active → closed

A user has at most one active session. ``closed`` is terminal: a closed
session accepts no messages.

Two unread counters are kept, one per reading party. ``unread_count`` is
the agent inbox count (messages from the user since the agent last read)
and ``customer_unread_count`` is the widget count (messages from the agent
since the customer last read). Each is reset only by its reader. System
messages count for nobody.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from engagement.chat.message import ChatMessage, Sender
from engagement.domain import engagement

SESSION_STARTED = "Session started"


class SessionStatus(Enum):
    ACTIVE = "active"
    CLOSED = "closed"


class Reader(Enum):
    AGENT = "agent"
    CUSTOMER = "customer"


class SessionClosedError(InvalidOperationError):
    """Raised for operations a closed chat session no longer accepts."""


@engagement.aggregate
class ChatSession:
    user_id = Identifier(required=True)
    user_name = String(max_length=150)
    status = String(choices=SessionStatus, default=SessionStatus.ACTIVE.value)
    last_message = Text(default=SESSION_STARTED)
    last_active = DateTime(default=lambda: datetime.now(UTC))
    unread_count = Integer(default=0, min_value=0)
    customer_unread_count = Integer(default=0, min_value=0)
    is_ai_handled = Boolean(default=True)
    message_count = Integer(default=0, min_value=0)
    feedback_rating = Integer(min_value=1, max_value=5)
    created_at = DateTime(default=lambda: datetime.now(UTC))
    closed_at = DateTime()

    @property
    def is_closed(self) -> bool:
        return self.status == SessionStatus.CLOSED.value

    def _assert_open(self):
        if self.is_closed:
            raise SessionClosedError({"session": [f"Chat session {self.id} is closed"]})

    def next_timestamp(self, now: datetime) -> datetime:
        """Timestamp for the next message: never earlier than the last one."""
        if self.last_active and now < self.last_active:
            return self.last_active
        return now

    def record_message(self, message: ChatMessage) -> None:
        self._assert_open()

        self.last_message = message.text
        self.last_active = message.timestamp
        self.message_count = message.sequence
        if message.sender == Sender.USER.value:
            self.unread_count = self.unread_count + 1
        elif message.sender == Sender.AGENT.value:
            self.customer_unread_count = self.customer_unread_count + 1

    def mark_read(self, reader) -> bool:
        """Reset the reader's own counter. Returns True when it changed."""
        reader = Reader(reader)
        if reader == Reader.AGENT:
            changed = self.unread_count != 0
            self.unread_count = 0
        else:
            changed = self.customer_unread_count != 0
            self.customer_unread_count = 0
        return changed

    def close(self, now: datetime) -> bool:
        if self.is_closed:
            return False
        self.status = SessionStatus.CLOSED.value
        self.closed_at = now
        return True

    def hand_over_to_agent(self) -> bool:
        self._assert_open()
        if not self.is_ai_handled:
            return False
        self.is_ai_handled = False
        return True

    def submit_feedback(self, rating: int) -> None:
        if not 1 <= rating <= 5:
            raise ValidationError({"feedback_rating": ["Rating must be between 1 and 5"]})
        self.feedback_rating = rating
