"""E-mail channel port: abstract interface for outbound mail."""

from abc import ABC, abstractmethod


class EmailPort(ABC):
    """Abstract interface for e-mail dispatch adapters."""

    @abstractmethod
    def send(self, to: str, subject: str, body: str) -> dict:
        """Send one message.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
