"""
可关闭的异步通道

有界 FIFO 队列，支持显式关闭：关闭后发送方立即失败，
接收方先取完剩余元素再收到关闭信号。
"""

import asyncio
from collections import deque
from typing import Generic, TypeVar

from event_horizon.errors import ChannelClosedError

T = TypeVar("T")


class Channel(Generic[T]):
    """可关闭的有界通道"""

    def __init__(self, maxsize: int = 0):
        self._maxsize = maxsize
        self._items: deque[T] = deque()
        self._closed = False
        self._readable = asyncio.Event()
        self._writable = asyncio.Event()
        self._writable.set()

    @property
    def maxsize(self) -> int:
        return self._maxsize

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._items)

    def full(self) -> bool:
        return self._maxsize > 0 and len(self._items) >= self._maxsize

    def _refresh(self) -> None:
        if self._items or self._closed:
            self._readable.set()
        else:
            self._readable.clear()

        if self._closed or not self.full():
            self._writable.set()
        else:
            self._writable.clear()

    def send_nowait(self, item: T) -> None:
        if self._closed:
            raise ChannelClosedError()
        if self.full():
            raise asyncio.QueueFull()
        self._items.append(item)
        self._refresh()

    async def send(self, item: T) -> None:
        """发送元素，通道满时阻塞（背压）"""
        while True:
            if self._closed:
                raise ChannelClosedError()
            if not self.full():
                self._items.append(item)
                self._refresh()
                return
            await self._writable.wait()

    async def receive(self) -> T:
        """接收元素，通道关闭且已取空时抛出 ChannelClosedError"""
        while True:
            if self._items:
                item = self._items.popleft()
                self._refresh()
                return item
            if self._closed:
                raise ChannelClosedError()
            await self._readable.wait()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._refresh()

    def __aiter__(self) -> "Channel[T]":
        return self

    async def __anext__(self) -> T:
        try:
            return await self.receive()
        except ChannelClosedError:
            raise StopAsyncIteration from None
