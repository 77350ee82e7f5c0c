"""Agent-side inbox: every session, plus the transcript of the selected one.

State is re-derived from the session manager on every update notification
and on every poll tick. Viewing a session marks it read for the agent, but
only when its agent counter is non-zero, so a refresh caused by marking it
read does not mark it again.
"""

from engagement.chat.manager import ChatSessionManager
from engagement.chat.message import Sender
from engagement.chat.session import Reader
from engagement.views.polling import DEFAULT_POLL_INTERVAL, Poller
from shared.events import topics


class AgentInbox:
    def __init__(self, manager: ChatSessionManager, bus, poll_interval: float = DEFAULT_POLL_INTERVAL):
        self.manager = manager
        self.bus = bus
        self.poller = Poller(self.refresh, poll_interval)
        self.sessions = []
        self.messages = []
        self.active_session_id = None
        self.refresh_count = 0
        self._subscription = None

    @property
    def total_unread(self) -> int:
        return sum(session.unread_count for session in self.sessions)

    @property
    def active_session(self):
        for session in self.sessions:
            if str(session.id) == str(self.active_session_id):
                return session
        return None

    async def open(self) -> "AgentInbox":
        self._subscription = self.bus.subscribe(topics.CHAT_SESSION_UPDATE, self.on_update)
        self.poller.start()
        await self.refresh()
        return self

    async def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        await self.poller.stop()

    def on_update(self, _payload=None):
        return self.refresh()

    async def refresh(self) -> None:
        self.sessions = await self.manager.get_sessions()
        self.refresh_count += 1

        if self.active_session_id is None:
            return
        self.messages = await self.manager.get_messages(self.active_session_id)
        active = self.active_session
        if active is not None and active.unread_count > 0:
            await self.manager.mark_session_read(self.active_session_id, Reader.AGENT)

    async def select_session(self, session_id) -> None:
        self.active_session_id = str(session_id)
        await self.refresh()

    async def reply(self, text: str):
        if self.active_session_id is None:
            raise ValueError("No chat session selected")
        return await self.manager.send_message(self.active_session_id, text, Sender.AGENT)

    async def take_over(self):
        if self.active_session_id is None:
            raise ValueError("No chat session selected")
        return await self.manager.hand_over_to_agent(self.active_session_id)
