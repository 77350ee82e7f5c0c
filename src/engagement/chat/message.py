"""ChatMessage aggregate. Append-only; ordered by (timestamp, sequence)."""

from enum import Enum

from protean.fields import DateTime, Identifier, Integer, String, Text

from engagement.domain import engagement


class Sender(Enum):
    USER = "user"
    AGENT = "agent"
    SYSTEM = "system"


@engagement.aggregate
class ChatMessage:
    session_id = Identifier(required=True)
    sender = String(required=True, choices=Sender)
    text = Text(required=True)
    timestamp = DateTime(required=True)
    sequence = Integer(required=True, min_value=1)

    @property
    def sort_key(self):
        return (self.timestamp, self.sequence)
