"""并发原语：通道、后台任务组、指数退避"""

from event_horizon.concurrency.backoff import Backoff
from event_horizon.concurrency.channel import Channel
from event_horizon.concurrency.group import ContextGroup

__all__ = [
    "Backoff",
    "Channel",
    "ContextGroup",
]
