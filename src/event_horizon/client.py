"""
Event Horizon 客户端

按资源拆分的接口类共享同一个 httpx.AsyncClient 连接池，
Client 把它们组合为一个入口。

用法::

    async with Client(auth=BearerAuth(token)) as client:
        task = await client.get_task(GetTaskRequest(tenant_id=t, task_id=task_id))
"""

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import TypeVar

from event_horizon.api.environments import EnvironmentsAPI
from event_horizon.api.feature_flags import FeatureFlagsAPI
from event_horizon.api.github import GithubAPI
from event_horizon.api.runners import RunnersAPI
from event_horizon.api.tasks import TasksAPI
from event_horizon.api.tenants import TenantsAPI
from event_horizon.api.turns import TurnsAPI
from event_horizon.api.workstreams import WorkstreamsAPI
from event_horizon.domain.models import Page
from event_horizon.transport.request import ListRequest
from event_horizon.transport.versioned import paginate

T = TypeVar("T")
L = TypeVar("L", bound=ListRequest)


class Client(
    TenantsAPI,
    EnvironmentsAPI,
    TasksAPI,
    TurnsAPI,
    WorkstreamsAPI,
    RunnersAPI,
    GithubAPI,
    FeatureFlagsAPI,
):
    """Event Horizon API 客户端"""

    def paginate(
        self,
        fetch: Callable[[L], Awaitable[Page[T]]],
        request: L,
    ) -> AsyncIterator[T]:
        """按 NextToken 逐页迭代某个列表接口

        例如 ``async for task in client.paginate(client.list_tasks, req)``
        """
        return paginate(fetch, request)
