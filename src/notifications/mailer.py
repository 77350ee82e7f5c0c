"""Renders notification templates and hands them to the e-mail channel."""

import structlog

from notifications.channel.email_port import EmailPort
from notifications.templates import get_template

logger = structlog.get_logger(__name__)


class Mailer:
    def __init__(self, adapter: EmailPort, store_name: str = "our store", currency: str = "INR"):
        self.adapter = adapter
        self.store_name = store_name
        self.currency = currency

    def send(self, notification_type: str, to: str, context: dict) -> dict:
        """Render ``notification_type`` for ``context`` and send it to ``to``.

        Delivery failures are reported in the returned dict and logged; they
        are not raised.
        """
        template = get_template(notification_type)
        content = template.render({"store_name": self.store_name, "currency": self.currency, **context})
        result = self.adapter.send(to, content["subject"], content["body"])

        if result.get("status") == "sent":
            logger.info("Email sent", notification_type=notification_type, to=to, message_id=result["message_id"])
        else:
            logger.warning(
                "Email delivery failed",
                notification_type=notification_type,
                to=to,
                error=result.get("error"),
            )
        return result
