"""
指数退避

带随机抖动的重连延迟控制器：失败时翻倍，恢复时减半，
低于下限后归零。等待可被上下文信号打断。
"""

import asyncio
import random

from loguru import logger


class Backoff:
    """指数退避（抖动 + 减半恢复）"""

    def __init__(self, min_delay: float, max_delay: float):
        if min_delay <= 0:
            raise ValueError("min_delay must be positive")
        if max_delay < min_delay:
            raise ValueError("max_delay must be >= min_delay")
        self._min = min_delay
        self._max = max_delay
        self._current = 0.0

    @property
    def current(self) -> float:
        return self._current

    @property
    def min_delay(self) -> float:
        return self._min

    @property
    def max_delay(self) -> float:
        return self._max

    def jitter(self) -> float:
        """[0, current) 内的随机延迟"""
        if self._current <= 0:
            return 0.0
        return random.random() * self._current

    def backoff(self) -> None:
        if self._current == 0:
            self._current = self._min
        else:
            self._current = min(self._current * 2, self._max)

    def recover(self) -> None:
        half = self._current / 2
        self._current = 0.0 if half < self._min else half

    async def wait(self, context: asyncio.Event | None = None) -> None:
        await self._sleep(self.jitter(), context)

    async def wait_at_least(self, floor: float, context: asyncio.Event | None = None) -> None:
        await self._sleep(max(self.jitter(), floor), context)

    async def _sleep(self, delay: float, context: asyncio.Event | None) -> None:
        if delay <= 0:
            return
        if context is not None and context.is_set():
            raise asyncio.CancelledError()

        logger.debug("退避等待 {:.3f}s (current={:.3f}s)", delay, self._current)
        if context is None:
            await asyncio.sleep(delay)
            return

        try:
            await asyncio.wait_for(context.wait(), delay)
        except asyncio.TimeoutError:
            return
        raise asyncio.CancelledError()
