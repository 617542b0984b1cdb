"""Monitoring exports."""

from replay_backtester.monitoring.audit import AuditLog
from replay_backtester.monitoring.log_setup import setup_logging
from replay_backtester.monitoring.notifier import LogNotifier, Notifier
from replay_backtester.monitoring.subscribers import AuditSubscriber, NotifierSubscriber

__all__ = [
    "AuditLog",
    "AuditSubscriber",
    "LogNotifier",
    "Notifier",
    "NotifierSubscriber",
    "setup_logging",
]
