"""Status notifier port — abstract interface for customer status notifications."""

from abc import ABC, abstractmethod


class StatusNotifierPort(ABC):
    """Delivers "your order changed status" messages to a customer."""

    @abstractmethod
    def notify(self, to: str, subject: str, body: str, context: dict) -> dict:
        """Send one status notification.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
