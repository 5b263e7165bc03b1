"""Fake status notifier — records notifications in memory for testing."""

from uuid import uuid4

from tracking.notification.port import StatusNotifierPort


class FakeStatusNotifier(StatusNotifierPort):
    def __init__(self):
        self.sent: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Notification delivery failed"):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def notify(self, to: str, subject: str, body: str, context: dict) -> dict:
        if not self.should_succeed:
            return {"message_id": None, "status": "failed", "error": self.failure_reason}

        message_id = f"ntf-{uuid4().hex[:12]}"
        self.sent.append(
            {
                "message_id": message_id,
                "to": to,
                "subject": subject,
                "body": body,
                "context": dict(context),
            }
        )
        return {"message_id": message_id, "status": "sent"}

    def reset(self):
        """Clear recorded notifications and restore success mode."""
        self.sent.clear()
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"
