"""Customer-side chat widget: the customer's own session and its transcript."""

from engagement.chat.manager import ChatSessionManager
from engagement.chat.message import Sender
from engagement.chat.session import Reader
from engagement.views.polling import DEFAULT_POLL_INTERVAL, Poller
from shared.events import topics


class CustomerChatWidget:
    def __init__(
        self,
        manager: ChatSessionManager,
        bus,
        user_id,
        user_name,
        assistant=None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ):
        self.manager = manager
        self.bus = bus
        self.user_id = str(user_id)
        self.user_name = user_name
        self.assistant = assistant
        self.poller = Poller(self.refresh, poll_interval)
        self.session = None
        self.messages = []
        self.refresh_count = 0
        self._subscription = None

    async def open(self) -> "CustomerChatWidget":
        self.session = await self.manager.create_or_get_session(self.user_id, self.user_name)
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
        if self.session is None:
            return

        self.session = await self.manager.get_session(self.session.id)
        self.messages = await self.manager.get_messages(self.session.id)
        self.refresh_count += 1

        if self.session.customer_unread_count > 0:
            self.session = await self.manager.mark_session_read(self.session.id, Reader.CUSTOMER)

    async def send(self, text: str):
        """Send a customer message; an AI-handled session also gets an automatic answer."""
        message = await self.manager.send_message(self.session.id, text, Sender.USER)
        if self.assistant is not None:
            await self.assistant.reply(self.session.id, text)
        return message

    async def end_session(self) -> None:
        self.session = await self.manager.close_session(self.session.id)

    async def submit_feedback(self, rating: int) -> None:
        self.session = await self.manager.submit_feedback(self.session.id, rating)
