"""
后台任务组

持有一个可取消的上下文信号和一组 asyncio 任务，
提供取消、等待退出以及带超时的关闭。
"""

import asyncio
from collections.abc import Coroutine
from typing import Any

from loguru import logger

from event_horizon.errors import ShutdownTimeoutError


class ContextGroup:
    """可取消的后台任务组"""

    def __init__(self, name: str = "group"):
        self._name = name
        self._context = asyncio.Event()
        self._tasks: set[asyncio.Task] = set()
        self._outstanding = 0
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def context(self) -> asyncio.Event:
        """取消信号，cancel() 后被置位"""
        return self._context

    @property
    def cancelled(self) -> bool:
        return self._context.is_set()

    @property
    def outstanding(self) -> int:
        return self._outstanding

    def add(self, n: int = 1) -> None:
        self._outstanding += n
        if self._outstanding < 0:
            raise ValueError("negative outstanding worker count")
        if self._outstanding == 0:
            self._idle.set()
        else:
            self._idle.clear()

    def done(self) -> None:
        self.add(-1)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task:
        """启动一个后台任务并纳入组管理"""
        self.add(1)
        task = asyncio.create_task(coro, name=name or self._name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        self.done()
        if task.cancelled():
            logger.debug("[{}] 后台任务已取消", self._name)
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error("[{}] 后台任务异常退出: {}", self._name, exc)

    def cancel(self) -> None:
        if not self._context.is_set():
            self._context.set()
        for task in list(self._tasks):
            task.cancel()

    async def wait(self) -> None:
        await self._idle.wait()

    async def close(self) -> None:
        """取消并等待全部任务退出"""
        self.cancel()
        await self.wait()

    async def wait_timeout(self, timeout: float) -> None:
        """等待任务退出，超过 timeout 秒抛出 ShutdownTimeoutError"""
        try:
            await asyncio.wait_for(self._idle.wait(), timeout)
        except asyncio.TimeoutError:
            raise ShutdownTimeoutError(
                f"[{self._name}] 等待后台任务退出超时 ({timeout}s)"
            ) from None

    async def wait_context(self, deadline: asyncio.Event) -> None:
        """等待任务退出，外部 deadline 先触发时抛出 ShutdownTimeoutError"""
        if self._idle.is_set():
            return
        idle = asyncio.ensure_future(self._idle.wait())
        expired = asyncio.ensure_future(deadline.wait())
        try:
            await asyncio.wait({idle, expired}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            idle.cancel()
            expired.cancel()
        if not self._idle.is_set():
            raise ShutdownTimeoutError(f"[{self._name}] 等待后台任务退出被外部截止信号中断")
