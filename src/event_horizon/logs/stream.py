"""
轮次日志流

后台任务持续消费日志 SSE 端点，把 TurnLog 写入通道：
- 连接断开后按指数退避重连，并以 Last-Event-ID 续传
- 服务端 retry 提示作为下一次等待的下限
- 服务端返回 204 时视为正常结束
- 服务端错误（含 404）和解码错误终止日志流，传输错误重试
"""

import asyncio

import httpx
from loguru import logger
from pydantic import ValidationError

from event_horizon.api.turns import StreamTurnLogsRequest, TurnsAPI
from event_horizon.concurrency import Backoff, Channel, ContextGroup
from event_horizon.domain.models import TurnLog
from event_horizon.errors import ApiError, ChannelClosedError, EventHorizonError, TransportError
from event_horizon.logs.sse import SSEEvent, iter_log_events
from event_horizon.transport.request import DelegatedAuth

DEFAULT_BUFFER = 1000
MIN_RECONNECT_DELAY = 0.1
MAX_RECONNECT_DELAY = 2.0


class LogStream:
    """
    可续传的轮次日志流

    构造时即启动后台任务（需要运行中的事件循环）。

    用法::

        stream = LogStream(client, tenant_id, task_id, turn_index)
        async for log in stream.logs():
            ...
        await stream.close()
    """

    def __init__(
        self,
        client: TurnsAPI,
        tenant_id: str,
        task_id: str,
        turn_index: int,
        buffer: int = DEFAULT_BUFFER,
        *,
        include_deleted: bool | None = None,
        feature_flags: dict[str, bool] | None = None,
        delegated_auth: DelegatedAuth | None = None,
        last_id: int = 0,
        skip_replayed: bool = False,
    ):
        self._client = client
        self._tenant_id = tenant_id
        self._task_id = task_id
        self._turn_index = turn_index
        self._include_deleted = include_deleted
        self._feature_flags = feature_flags
        self._delegated_auth = delegated_auth
        self._skip_replayed = skip_replayed

        self._last_id = last_id
        self._highest_delivered = last_id
        self._retry_hint = 0.0
        self._error: EventHorizonError | None = None

        self._logs: Channel[TurnLog] = Channel(buffer)
        self._backoff = Backoff(MIN_RECONNECT_DELAY, MAX_RECONNECT_DELAY)
        self._name = f"log-stream:{task_id}/{turn_index}"
        self._group = ContextGroup(self._name)
        self._group.spawn(self._run(), name=self._name)

    @property
    def last_id(self) -> int:
        """最近一次收到的事件 ID，重连时作为 Last-Event-ID 发送"""
        return self._last_id

    @property
    def retry_hint(self) -> float:
        return self._retry_hint

    @property
    def error(self) -> EventHorizonError | None:
        """导致日志流终止的错误（服务端错误或解码错误）"""
        return self._error

    def logs(self) -> Channel[TurnLog]:
        return self._logs

    async def close(self) -> None:
        """取消后台任务并等待其退出，可重复调用"""
        await self._group.close()
        # 任务在开始执行前被取消时不会走到 finally
        self._logs.close()

    async def shutdown_timeout(self, timeout: float) -> None:
        await self._group.wait_timeout(timeout)

    async def shutdown_context(self, deadline: asyncio.Event) -> None:
        await self._group.wait_context(deadline)

    async def __aenter__(self) -> "LogStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _run(self) -> None:
        try:
            while True:
                await self._backoff.wait_at_least(self._retry_hint, self._group.context)

                try:
                    finished = await self._connect_and_stream()
                except ApiError as e:
                    self._error = e
                    logger.error("[{}] 日志流被服务端拒绝，停止: {}", self._name, e)
                    return
                except (TransportError, httpx.HTTPError) as e:
                    self._backoff.backoff()
                    logger.warning(
                        "[{}] 日志流中断，{:.1f}s 内重连: {}", self._name, self._backoff.current, e
                    )
                    continue
                except ChannelClosedError:
                    logger.debug("[{}] 输出通道已关闭，停止", self._name)
                    return
                except EventHorizonError as e:
                    self._error = e
                    logger.error("[{}] 日志流响应无法解析，停止: {}", self._name, e)
                    return

                if finished:
                    logger.info("[{}] 日志流已结束 (last_id={})", self._name, self._last_id)
                    return
                self._backoff.recover()
        finally:
            self._logs.close()

    async def _connect_and_stream(self) -> bool:
        """消费一次连接；返回 True 表示服务端声明日志已结束"""
        req = StreamTurnLogsRequest(
            tenant_id=self._tenant_id,
            task_id=self._task_id,
            turn_index=self._turn_index,
            include_deleted=self._include_deleted,
            last_event_id=self._last_id,
            feature_flags=self._feature_flags,
            delegated_auth=self._delegated_auth,
        )

        logger.debug("[{}] 连接日志流 (last_id={})", self._name, self._last_id)
        async with self._client.stream_turn_logs(req) as lines:
            if lines is None:
                return True
            async for event in iter_log_events(lines):
                await self._deliver(event)
        return False

    async def _deliver(self, event: SSEEvent) -> None:
        try:
            log = TurnLog.model_validate_json(event.data)
        except ValidationError as e:
            logger.warning("[{}] 跳过无法解析的日志事件 (id={}): {}", self._name, event.id, e)
            return

        if log.index is None and event.id is not None:
            log.index = event.id

        replayed = (
            self._skip_replayed
            and event.id is not None
            and event.id <= self._highest_delivered
        )
        if replayed:
            logger.debug("[{}] 跳过重放的日志事件 (id={})", self._name, event.id)
        else:
            await self._logs.send(log)
            if event.id is not None:
                self._highest_delivered = max(self._highest_delivered, event.id)

        if event.id is not None:
            self._last_id = event.id
        if event.retry is not None:
            self._retry_hint = event.retry / 1000
