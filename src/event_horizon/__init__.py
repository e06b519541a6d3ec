"""
Event Horizon Python SDK

Event Horizon 服务的异步 API 客户端、可续传日志流与批量日志上传器。
"""

__version__ = "0.1.0"

from event_horizon.client import Client
from event_horizon.errors import (
    ApiError,
    ChannelClosedError,
    ConflictError,
    DecodingError,
    EventHorizonError,
    NotFoundError,
    ShutdownTimeoutError,
    TransportError,
)
from event_horizon.logs import LogStream, LogUploader
from event_horizon.transport import BearerAuth, DelegatedAuth, update_with

__all__ = [
    "__version__",
    "ApiError",
    "BearerAuth",
    "ChannelClosedError",
    "Client",
    "ConflictError",
    "DecodingError",
    "DelegatedAuth",
    "EventHorizonError",
    "LogStream",
    "LogUploader",
    "NotFoundError",
    "ShutdownTimeoutError",
    "TransportError",
    "update_with",
]
