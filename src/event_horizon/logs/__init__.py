"""轮次日志：SSE 日志流消费与批量上传"""

from event_horizon.logs.sse import SSEEvent, SSEParser, iter_log_events
from event_horizon.logs.stream import LogStream
from event_horizon.logs.uploader import LogUploader, LogUploaderClient

__all__ = [
    "LogStream",
    "LogUploader",
    "LogUploaderClient",
    "SSEEvent",
    "SSEParser",
    "iter_log_events",
]
