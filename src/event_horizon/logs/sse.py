"""
SSE 事件解析

按行组装 Server-Sent Events。只识别 event / data / id / retry 四个字段，
空行结束一个事件；只有类型为 log 且 data 非空的事件会被产出。
"""

from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass, field

LOG_EVENT = "log"


@dataclass
class SSEEvent:
    """一个完整的 SSE 事件"""
    event_type: str = ""
    data_lines: list[str] = field(default_factory=list)
    id: int | None = None
    retry: int | None = None

    @property
    def data(self) -> str:
        return "\n".join(self.data_lines)


def _parse_int(value: str) -> int | None:
    try:
        return int(value)
    except ValueError:
        return None


class SSEParser:
    """逐行喂入，空行时返回已完成的事件"""

    def __init__(self):
        self._event = SSEEvent()

    def reset(self) -> None:
        self._event = SSEEvent()

    def feed(self, line: str) -> SSEEvent | None:
        line = line.rstrip("\r\n")

        if not line:
            event = self._event
            self.reset()
            if event.event_type != LOG_EVENT or not event.data:
                return None
            return event

        # 注释
        if line.startswith(":"):
            return None

        name, sep, value = line.partition(":")
        if not sep:
            return None

        name = name.strip()
        value = value.strip()

        if name == "event":
            self._event.event_type = value
        elif name == "data":
            self._event.data_lines.append(value)
        elif name == "id":
            parsed = _parse_int(value)
            if parsed is not None:
                self._event.id = parsed
        elif name == "retry":
            parsed = _parse_int(value)
            if parsed is not None:
                self._event.retry = parsed
        return None


async def iter_log_events(lines: AsyncIterable[str]) -> AsyncIterator[SSEEvent]:
    """从行迭代器中产出 log 事件；输入结束时未以空行结束的事件被丢弃"""
    parser = SSEParser()
    async for line in lines:
        event = parser.feed(line)
        if event is not None:
            yield event
