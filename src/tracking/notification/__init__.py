"""Status notifier abstraction — pluggable customer notification channel."""

import os

_notifier_instance = None


def get_notifier():
    """Return the configured status notifier (singleton).

    Uses FakeStatusNotifier by default. In production, configure via
    STATUS_NOTIFIER environment variable.
    """
    global _notifier_instance
    if _notifier_instance is None:
        adapter = os.environ.get("STATUS_NOTIFIER", "fake")
        if adapter == "fake":
            from tracking.notification.fake_adapter import FakeStatusNotifier

            _notifier_instance = FakeStatusNotifier()
        else:
            raise ValueError(f"Unknown status notifier: {adapter}")
    return _notifier_instance


def reset_notifier():
    """Reset the notifier singleton (useful for testing)."""
    global _notifier_instance
    _notifier_instance = None
