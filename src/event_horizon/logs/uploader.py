"""
批量日志上传器

从输入通道读取 TurnLog，按条数、编码后字节数、批次时长三个条件组批上传。
每批携带首条日志的序号和当前版本号（If-Match），成功后采用服务端返回的新版本号；
批次之间序号严格相邻。

失败策略：
- 传输错误按指数退避重试同一批（序号不变），超过次数后终止
- 服务端错误（含版本冲突）和解码错误立即终止，其他异常包装为 TransportError 后终止
终止时关闭输入通道，阻塞中的生产者会收到 ChannelClosedError。
"""

import asyncio
from datetime import datetime, timezone
from typing import Protocol

from loguru import logger

from event_horizon.api.turns import UploadTurnLogsRequest
from event_horizon.concurrency import Backoff, Channel, ContextGroup
from event_horizon.domain.models import TurnLog, UploadTurnLogsResponse
from event_horizon.errors import ChannelClosedError, EventHorizonError, TransportError
from event_horizon.transport.request import DelegatedAuth, dumps_compact

DEFAULT_MAX_BATCH_LEN = 500
DEFAULT_MAX_BATCH_AGE = 1.0
DEFAULT_MAX_BATCH_BYTES = 1_048_576
DEFAULT_MAX_UPLOAD_ATTEMPTS = 3

# Logs 数组的方括号
_ARRAY_OVERHEAD = 2


class LogUploaderClient(Protocol):
    """上传器依赖的客户端接口"""

    async def upload_turn_logs(self, req: UploadTurnLogsRequest) -> UploadTurnLogsResponse:
        ...


def encoded_size(entry: TurnLog) -> int:
    """单条日志在请求体 Logs 数组中的字节数"""
    return len(dumps_compact(entry.to_wire()))


class LogUploader:
    """
    批量日志上传器

    构造时即启动后台任务。调用方关闭输入通道后用 shutdown_timeout 等待
    剩余批次上传完成；close() 直接取消，未上传的批次会被丢弃。
    """

    def __init__(
        self,
        client: LogUploaderClient,
        tenant_id: str,
        task_id: str,
        turn_index: int,
        version: int,
        start_index: int,
        logs: Channel[TurnLog],
        *,
        feature_flags: dict[str, bool] | None = None,
        delegated_auth: DelegatedAuth | None = None,
        max_batch_len: int = DEFAULT_MAX_BATCH_LEN,
        max_batch_age: float = DEFAULT_MAX_BATCH_AGE,
        max_batch_bytes: int = DEFAULT_MAX_BATCH_BYTES,
        max_upload_attempts: int = DEFAULT_MAX_UPLOAD_ATTEMPTS,
    ):
        if max_batch_len < 1:
            raise ValueError("max_batch_len must be >= 1")
        if max_batch_age <= 0:
            raise ValueError("max_batch_age must be positive")
        if max_batch_bytes < 1:
            raise ValueError("max_batch_bytes must be >= 1")
        if max_upload_attempts < 1:
            raise ValueError("max_upload_attempts must be >= 1")

        self._client = client
        self._tenant_id = tenant_id
        self._task_id = task_id
        self._turn_index = turn_index
        self._version = version
        self._next_index = start_index
        self._logs = logs
        self._feature_flags = feature_flags
        self._delegated_auth = delegated_auth

        self._max_batch_len = max_batch_len
        self._max_batch_age = max_batch_age
        self._max_batch_bytes = max_batch_bytes
        self._max_upload_attempts = max_upload_attempts

        self._batch: list[TurnLog] = []
        self._batch_bytes = _ARRAY_OVERHEAD
        self._opened_at: float | None = None
        self._error: EventHorizonError | None = None
        self._uploaded = 0

        self._backoff = Backoff(0.1, 2.0)
        self._name = f"log-uploader:{task_id}/{turn_index}"
        self._group = ContextGroup(self._name)
        self._group.spawn(self._run(), name=self._name)

    @property
    def version(self) -> int:
        """最近一次成功上传后服务端返回的版本号"""
        return self._version

    @property
    def next_index(self) -> int:
        return self._next_index

    @property
    def uploaded(self) -> int:
        return self._uploaded

    @property
    def error(self) -> EventHorizonError | None:
        return self._error

    async def close(self) -> None:
        """取消后台任务并等待其退出，可重复调用"""
        await self._group.close()
        self._logs.close()

    async def shutdown_timeout(self, timeout: float) -> None:
        """等待上传完成；超时抛出 ShutdownTimeoutError，上传失败时抛出对应错误"""
        await self._group.wait_timeout(timeout)
        self._raise_error()

    async def shutdown_context(self, deadline: asyncio.Event) -> None:
        await self._group.wait_context(deadline)
        self._raise_error()

    def _raise_error(self) -> None:
        if self._error is not None:
            raise self._error

    async def _run(self) -> None:
        logger.info("[{}] 日志上传器已启动 (version={}, start_index={})",
                    self._name, self._version, self._next_index)
        try:
            while True:
                timeout = self._remaining_age()
                if timeout is not None and timeout <= 0:
                    await self._flush()
                    continue

                try:
                    if timeout is None:
                        entry = await self._logs.receive()
                    else:
                        entry = await asyncio.wait_for(self._logs.receive(), timeout)
                except asyncio.TimeoutError:
                    await self._flush()
                    continue
                except ChannelClosedError:
                    await self._flush()
                    logger.info("[{}] 输入已结束，共上传 {} 条日志", self._name, self._uploaded)
                    return

                await self._add(entry)
        except EventHorizonError as e:
            self._error = e
            logger.error("[{}] 日志上传失败，停止: {}", self._name, e)
        except Exception as e:
            error = TransportError(f"upload turn logs: {e!r}", operation="upload")
            error.__cause__ = e
            self._error = error
            logger.opt(exception=e).error("[{}] 日志上传异常，停止: {}", self._name, e)
        finally:
            self._logs.close()

    def _remaining_age(self) -> float | None:
        if self._opened_at is None:
            return None
        elapsed = asyncio.get_running_loop().time() - self._opened_at
        return self._max_batch_age - elapsed

    async def _add(self, entry: TurnLog) -> None:
        update = {"index": self._next_index}
        if entry.timestamp is None:
            update["timestamp"] = datetime.now(timezone.utc)
        entry = entry.model_copy(update=update)
        self._next_index += 1

        size = encoded_size(entry)
        if self._batch:
            full = len(self._batch) >= self._max_batch_len
            overflow = self._batch_bytes + 1 + size > self._max_batch_bytes
            if full or overflow:
                await self._flush()

        if not self._batch:
            self._opened_at = asyncio.get_running_loop().time()
            self._batch_bytes = _ARRAY_OVERHEAD + size
        else:
            self._batch_bytes += 1 + size
        self._batch.append(entry)

        if len(self._batch) >= self._max_batch_len or self._batch_bytes >= self._max_batch_bytes:
            await self._flush()

    async def _flush(self) -> None:
        if not self._batch:
            self._opened_at = None
            return

        req = UploadTurnLogsRequest(
            tenant_id=self._tenant_id,
            task_id=self._task_id,
            turn_index=self._turn_index,
            version=self._version,
            index=self._batch[0].index,
            logs=self._batch,
            feature_flags=self._feature_flags,
            delegated_auth=self._delegated_auth,
        )

        attempt = 0
        while True:
            attempt += 1
            try:
                resp = await self._client.upload_turn_logs(req)
                break
            except TransportError as e:
                if attempt >= self._max_upload_attempts:
                    raise
                self._backoff.backoff()
                logger.warning(
                    "[{}] 上传失败，重试 ({}/{}): {}",
                    self._name, attempt, self._max_upload_attempts, e,
                )
                await self._backoff.wait(self._group.context)

        self._backoff.recover()
        logger.debug(
            "[{}] 已上传 {} 条日志 (index={}, {} bytes, version {} -> {})",
            self._name, len(self._batch), req.index, self._batch_bytes, self._version, resp.version,
        )
        self._version = resp.version
        self._uploaded += len(self._batch)
        self._batch = []
        self._batch_bytes = _ARRAY_OVERHEAD
        self._opened_at = None
