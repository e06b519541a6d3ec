"""
乐观并发与分页辅助

update_with 把“读取当前版本 -> 基于当前值写入”封装为一次调用，
在版本冲突时按次数重试；paginate 按 NextToken 逐页迭代。
"""

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import TypeVar

from loguru import logger

from event_horizon.domain.models import Page
from event_horizon.errors import ConflictError
from event_horizon.transport.request import ListRequest

R = TypeVar("R")
W = TypeVar("W")
T = TypeVar("T")
L = TypeVar("L", bound=ListRequest)


async def update_with(
    get: Callable[[], Awaitable[R]],
    update: Callable[[R], Awaitable[W]],
    *,
    max_attempts: int = 1,
) -> W:
    """读取当前资源并写入，冲突时重新读取后重试

    Args:
        get: 读取当前资源（通常带 include_deleted=True）
        update: 基于当前资源（含 version）发出写请求
        max_attempts: 最多尝试次数，默认 1 次即不重试

    Raises:
        ConflictError: 超过尝试次数仍冲突
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    attempt = 0
    while True:
        attempt += 1
        current = await get()
        try:
            return await update(current)
        except ConflictError as e:
            if attempt >= max_attempts:
                raise
            logger.warning(
                "版本冲突，重新读取后重试 ({}/{}): {}", attempt, max_attempts, e
            )


async def paginate(
    fetch: Callable[[L], Awaitable[Page[T]]],
    request: L,
) -> AsyncIterator[T]:
    """逐页拉取直到 NextToken 为空"""
    token = request.token
    while True:
        page = await fetch(request.model_copy(update={"token": token}))
        for item in page.items:
            yield item
        if not page.next_token:
            return
        token = page.next_token
