"""Chat session manager: owns ``chat-sessions`` and ``chat-messages``.

Every state change publishes ``chat-session-update`` with no payload. The
notification is level-triggered: views re-read whatever they show instead
of applying a diff. Writes to both collections always take the sessions
lock first, then the messages lock.
"""

from datetime import UTC, datetime

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError

from engagement.chat.message import ChatMessage, Sender
from engagement.chat.session import ChatSession, Reader, SessionClosedError, SessionStatus
from shared.events import topics
from shared.records import load
from shared.store import CHAT_MESSAGES, CHAT_SESSIONS, Store

logger = structlog.get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class ChatSessionManager:
    def __init__(self, store: Store, bus, clock=_utc_now):
        self.store = store
        self.bus = bus
        self.clock = clock

    def _notify(self) -> None:
        self.bus.publish(topics.CHAT_SESSION_UPDATE)

    async def _load(self, session_id) -> ChatSession:
        record = await self.store.get(CHAT_SESSIONS, session_id)
        if record is None:
            raise ObjectNotFoundError({"_entity": f"Chat session {session_id} not found."})
        return load(ChatSession, record)

    async def _save(self, session: ChatSession) -> None:
        await self.store.upsert(CHAT_SESSIONS, session.to_dict())

    async def get_session(self, session_id) -> ChatSession:
        return await self._load(session_id)

    async def get_sessions(self, status=None) -> list[ChatSession]:
        """All sessions, most recently active first."""
        sessions = [load(ChatSession, record) for record in await self.store.get_collection(CHAT_SESSIONS)]
        if status is not None:
            sessions = [session for session in sessions if session.status == SessionStatus(status).value]
        return sorted(sessions, key=lambda session: session.last_active, reverse=True)

    async def get_active_session(self, user_id) -> ChatSession | None:
        for session in await self.get_sessions(SessionStatus.ACTIVE):
            if str(session.user_id) == str(user_id):
                return session
        return None

    async def get_messages(self, session_id) -> list[ChatMessage]:
        await self._load(session_id)
        messages = [
            load(ChatMessage, record)
            for record in await self.store.get_collection(CHAT_MESSAGES)
            if str(record.get("session_id")) == str(session_id)
        ]
        return sorted(messages, key=lambda message: message.sort_key)

    async def create_or_get_session(self, user_id, user_name) -> ChatSession:
        async with self.store.lock(CHAT_SESSIONS):
            session = await self.get_active_session(user_id)
            if session is not None:
                return session

            now = self.clock()
            session = ChatSession(user_id=str(user_id), user_name=user_name, last_active=now, created_at=now)
            await self._save(session)

        logger.info("Chat session started", session_id=str(session.id), user_id=str(user_id))
        self._notify()
        return session

    async def send_message(self, session_id, text: str, sender=Sender.USER) -> ChatMessage:
        sender = Sender(sender)
        if not text or not text.strip():
            raise ValidationError({"text": ["Message cannot be empty"]})

        async with self.store.lock(CHAT_SESSIONS):
            session = await self._load(session_id)
            if session.is_closed:
                logger.warning("Message rejected, session closed", session_id=str(session_id), sender=sender.value)
                raise SessionClosedError({"session": [f"Chat session {session_id} is closed"]})

            message = ChatMessage(
                session_id=str(session.id),
                sender=sender.value,
                text=text,
                timestamp=session.next_timestamp(self.clock()),
                sequence=session.message_count + 1,
            )
            async with self.store.lock(CHAT_MESSAGES):
                await self.store.upsert(CHAT_MESSAGES, message.to_dict())

            session.record_message(message)
            await self._save(session)

        logger.debug("Chat message sent", session_id=str(session_id), sender=sender.value, sequence=message.sequence)
        self._notify()
        return message

    async def mark_session_read(self, session_id, reader=Reader.AGENT) -> ChatSession:
        """Reset ``reader``'s unread counter. Publishes only when it was non-zero."""
        async with self.store.lock(CHAT_SESSIONS):
            session = await self._load(session_id)
            changed = session.mark_read(reader)
            if changed:
                await self._save(session)

        if changed:
            self._notify()
        return session

    async def close_session(self, session_id) -> ChatSession:
        """Close the session. Closing it again changes nothing and publishes nothing."""
        async with self.store.lock(CHAT_SESSIONS):
            session = await self._load(session_id)
            changed = session.close(self.clock())
            if changed:
                await self._save(session)

        if changed:
            logger.info("Chat session closed", session_id=str(session_id))
            self._notify()
        return session

    async def hand_over_to_agent(self, session_id) -> ChatSession:
        """Stop automatic answers; a human agent handles the session from now on."""
        async with self.store.lock(CHAT_SESSIONS):
            session = await self._load(session_id)
            changed = session.hand_over_to_agent()
            if changed:
                await self._save(session)

        if changed:
            logger.info("Chat session handed over to agent", session_id=str(session_id))
            self._notify()
        return session

    async def submit_feedback(self, session_id, rating: int) -> ChatSession:
        async with self.store.lock(CHAT_SESSIONS):
            session = await self._load(session_id)
            session.submit_feedback(rating)
            await self._save(session)

        logger.info("Chat feedback received", session_id=str(session_id), rating=rating)
        self._notify()
        return session
