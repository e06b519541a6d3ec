"""
轮次日志流测试

测试续传、重连、204 结束、服务端错误终止与关闭语义。
"""

import asyncio

import httpx
import pytest

from event_horizon.errors import DecodingError, NotFoundError
from event_horizon.logs import LogStream

LOGS_PATH = "/v1/tenants/t1/tasks/task1/turns/1/logs"


def sse(*events: tuple[int, str], retry: int | None = None) -> bytes:
    lines = []
    for event_id, message in events:
        lines.append("event: log")
        lines.append(f"id: {event_id}")
        if retry is not None:
            lines.append(f"retry: {retry}")
        lines.append(f'data: {{"Message":"{message}"}}')
        lines.append("")
    return ("\n".join(lines) + "\n").encode()


def event_stream(body: bytes) -> httpx.Response:
    return httpx.Response(200, content=body, headers={"Content-Type": "text/event-stream"})


class ScriptedServer:
    """按顺序返回预设响应，并记录每次请求"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            return httpx.Response(204)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def last_event_ids(self) -> list[str | None]:
        return [r.headers.get("Last-Event-ID") for r in self.requests]


async def collect(stream: LogStream, timeout: float = 2.0) -> list[str]:
    async def run():
        return [log.message async for log in stream.logs()]

    return await asyncio.wait_for(run(), timeout)


class TestLogStream:
    """日志流测试"""

    @pytest.mark.asyncio
    async def test_basic_streaming(self, make_client):
        """测试逐次重连续传直到 204"""
        server = ScriptedServer(
            event_stream(sse((1, "one"))),
            event_stream(sse((2, "two"))),
            httpx.Response(204),
        )
        async with make_client(server) as client:
            stream = LogStream(client, "t1", "task1", 1)
            assert await collect(stream) == ["one", "two"]
            await stream.shutdown_timeout(2.0)

        assert server.last_event_ids() == [None, "1", "2"]
        assert all(r.url.path == LOGS_PATH for r in server.requests)
        assert all(r.headers["Accept"] == "text/event-stream" for r in server.requests)

    @pytest.mark.asyncio
    async def test_resume_from_last_id(self, make_client):
        """测试从初始 last_id 续传"""
        server = ScriptedServer(event_stream(sse((100, "resumed"))), httpx.Response(204))
        async with make_client(server) as client:
            stream = LogStream(client, "t1", "task1", 1, last_id=42)
            assert await collect(stream) == ["resumed"]
            assert stream.last_id == 100

        assert server.last_event_ids()[0] == "42"
        assert server.last_event_ids()[1] == "100"

    @pytest.mark.asyncio
    async def test_reconnect_after_transport_error(self, make_client):
        """测试传输错误后退避重连"""
        server = ScriptedServer(
            event_stream(sse((1, "one"))),
            httpx.ConnectError("connection refused"),
            event_stream(sse((2, "two"))),
            httpx.Response(204),
        )
        async with make_client(server) as client:
            stream = LogStream(client, "t1", "task1", 1)
            assert await collect(stream, timeout=5.0) == ["one", "two"]
            assert stream.error is None

        assert server.last_event_ids() == [None, "1", "1", "2"]

    @pytest.mark.asyncio
    async def test_service_error_terminates(self, make_client):
        """测试服务端错误（404）终止日志流"""
        server = ScriptedServer(
            event_stream(sse((1, "one"))),
            httpx.Response(404, json={"ResponseCode": 404, "Message": "turn not found"}),
        )
        async with make_client(server) as client:
            stream = LogStream(client, "t1", "task1", 1)
            assert await collect(stream) == ["one"]
            await stream.shutdown_timeout(1.0)

        assert isinstance(stream.error, NotFoundError)
        assert stream.error.message == "turn not found"
        assert len(server.requests) == 2

    @pytest.mark.asyncio
    async def test_decoding_error_terminates(self, make_client):
        """测试无法解析的错误响应终止日志流并记录错误"""
        server = ScriptedServer(
            event_stream(sse((1, "one"))),
            httpx.Response(409, json={"ResponseCode": 409, "CurrentType": "Bogus", "Current": {}}),
        )
        async with make_client(server) as client:
            stream = LogStream(client, "t1", "task1", 1)
            assert await collect(stream) == ["one"]
            await stream.shutdown_timeout(1.0)

        assert isinstance(stream.error, DecodingError)
        assert len(server.requests) == 2

    @pytest.mark.asyncio
    async def test_retry_hint_recorded(self, make_client):
        """测试记录服务端 retry 提示"""
        server = ScriptedServer(event_stream(sse((1, "one"), retry=20)), httpx.Response(204))
        async with make_client(server) as client:
            stream = LogStream(client, "t1", "task1", 1)
            await collect(stream)
            assert stream.retry_hint == pytest.approx(0.02)

    @pytest.mark.asyncio
    async def test_invalid_payload_skipped(self, make_client):
        """测试无法解析的日志被跳过"""
        body = b'event: log\nid: 1\ndata: not-json\n\n' + sse((2, "two"))
        server = ScriptedServer(event_stream(body), httpx.Response(204))
        async with make_client(server) as client:
            stream = LogStream(client, "t1", "task1", 1)
            assert await collect(stream) == ["two"]

    @pytest.mark.asyncio
    async def test_event_id_fills_index(self, make_client):
        """测试日志缺少 Index 时使用事件 ID"""
        server = ScriptedServer(event_stream(sse((5, "five"))), httpx.Response(204))
        async with make_client(server) as client:
            stream = LogStream(client, "t1", "task1", 1)
            logs = [log async for log in stream.logs()]
        assert logs[0].index == 5

    @pytest.mark.asyncio
    async def test_replayed_entries_delivered_by_default(self, make_client):
        """测试默认不去重重放的日志"""
        server = ScriptedServer(
            event_stream(sse((1, "one"), (2, "two"))),
            event_stream(sse((2, "two"), (3, "three"))),
            httpx.Response(204),
        )
        async with make_client(server) as client:
            stream = LogStream(client, "t1", "task1", 1)
            assert await collect(stream) == ["one", "two", "two", "three"]

    @pytest.mark.asyncio
    async def test_skip_replayed(self, make_client):
        """测试开启 skip_replayed 后丢弃重放的日志"""
        server = ScriptedServer(
            event_stream(sse((1, "one"), (2, "two"))),
            event_stream(sse((2, "two"), (3, "three"))),
            httpx.Response(204),
        )
        async with make_client(server) as client:
            stream = LogStream(client, "t1", "task1", 1, skip_replayed=True)
            assert await collect(stream) == ["one", "two", "three"]

    @pytest.mark.asyncio
    async def test_request_options(self, make_client):
        """测试 include_deleted、功能开关与委托鉴权随请求发送"""
        from event_horizon.transport.request import DelegatedAuth

        server = ScriptedServer(httpx.Response(204))
        async with make_client(server) as client:
            stream = LogStream(
                client,
                "t1",
                "task1",
                1,
                include_deleted=True,
                feature_flags={"b": False, "a": True},
                delegated_auth=DelegatedAuth(auth_type="AgentToken", jwt="jwt-value"),
            )
            await stream.shutdown_timeout(2.0)

        request = server.requests[0]
        assert request.url.params["includeDeleted"] == "true"
        assert request.headers["X-EventHorizon-FeatureFlags"] == '{"a":true,"b":false}'
        assert request.headers["X-Event-Horizon-Delegating-Authorization"] == "AgentToken jwt-value"

    @pytest.mark.asyncio
    async def test_close_closes_channel(self, make_client):
        """测试 close 后输出通道关闭且可重复调用"""
        server = ScriptedServer(*[httpx.ConnectError("down") for _ in range(100)])
        async with make_client(server) as client:
            stream = LogStream(client, "t1", "task1", 1)
            await asyncio.sleep(0.05)
            await asyncio.wait_for(stream.close(), 1.0)
            assert stream.logs().closed
            await stream.close()

    @pytest.mark.asyncio
    async def test_close_unblocks_full_channel(self, make_client):
        """测试消费者不读取时 close 仍能结束后台任务"""
        server = ScriptedServer(event_stream(sse(*[(i, str(i)) for i in range(1, 10)])))
        async with make_client(server) as client:
            stream = LogStream(client, "t1", "task1", 1, buffer=1)
            await asyncio.sleep(0.05)
            await asyncio.wait_for(stream.close(), 1.0)
            assert stream.logs().closed

    @pytest.mark.asyncio
    async def test_context_manager(self, make_client):
        """测试异步上下文管理器退出时关闭"""
        server = ScriptedServer(httpx.Response(204))
        async with make_client(server) as client:
            async with LogStream(client, "t1", "task1", 1) as stream:
                pass
            assert stream.logs().closed
