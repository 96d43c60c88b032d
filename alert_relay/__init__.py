"""Alert relay: turns Alertmanager webhooks into chat messages."""

__version__ = "0.1.0"
