"""
轮次与轮次日志接口

日志上传走 POST（带 If-Match），日志流走同一路径的 SSE 长连接，
last 端点返回已接受的最高序号，404 表示该轮次尚无日志。
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from pydantic import Field

from event_horizon.domain.models import LastTurnLog, Page, Turn, TurnLog, UploadTurnLogsResponse
from event_horizon.transport.client import BaseClient, escape_path
from event_horizon.transport.request import (
    ApiRequest,
    ListRequest,
    dumps_compact,
    include_deleted_query,
)

LAST_EVENT_ID_HEADER = "Last-Event-ID"


class CreateTurnRequest(ApiRequest):
    tenant_id: str = Field(default="", exclude=True)
    task_id: str = Field(default="", exclude=True)
    turn_index: int = Field(default=0, exclude=True)
    task_version: int = Field(default=0, exclude=True)
    prompt: str = Field(alias="Prompt")


class GetTurnRequest(ApiRequest):
    tenant_id: str = Field(exclude=True)
    task_id: str = Field(exclude=True)
    turn_index: int = Field(exclude=True)
    include_deleted: bool | None = Field(default=None, exclude=True)


class GetLastTurnRequest(ApiRequest):
    tenant_id: str = Field(exclude=True)
    task_id: str = Field(exclude=True)
    include_deleted: bool | None = Field(default=None, exclude=True)


class UpdateTurnRequest(ApiRequest):
    tenant_id: str = Field(default="", exclude=True)
    task_id: str = Field(default="", exclude=True)
    turn_index: int = Field(default=0, exclude=True)
    version: int = Field(default=0, exclude=True)
    status: str | None = Field(default=None, alias="Status")
    output_message: str | None = Field(default=None, alias="OutputMessage")
    error_message: str | None = Field(default=None, alias="ErrorMessage")
    last_commit_hash: str | None = Field(default=None, alias="LastCommitHash")
    baseline_commit_hash: str | None = Field(default=None, alias="BaselineCommitHash")
    previous_response_id: str | None = Field(default=None, alias="PreviousResponseID")


class ListTurnsRequest(ListRequest):
    tenant_id: str = Field(exclude=True)
    task_id: str = Field(exclude=True)


class UploadTurnLogsRequest(ApiRequest):
    """上传一批日志；index 为本批第一条日志的序号"""

    tenant_id: str = Field(exclude=True)
    task_id: str = Field(exclude=True)
    turn_index: int = Field(exclude=True)
    version: int = Field(exclude=True)
    index: int = Field(alias="Index")
    logs: list[TurnLog] = Field(default_factory=list, alias="Logs")

    def body(self) -> bytes:
        return dumps_compact({"Index": self.index, "Logs": [log.to_wire() for log in self.logs]})


class StreamTurnLogsRequest(ApiRequest):
    tenant_id: str = Field(exclude=True)
    task_id: str = Field(exclude=True)
    turn_index: int = Field(exclude=True)
    include_deleted: bool | None = Field(default=None, exclude=True)
    last_event_id: int = Field(default=0, exclude=True)


class GetLastTurnLogRequest(ApiRequest):
    tenant_id: str = Field(exclude=True)
    task_id: str = Field(exclude=True)
    turn_index: int = Field(exclude=True)
    include_deleted: bool | None = Field(default=None, exclude=True)


class TurnsAPI(BaseClient):
    """轮次与日志相关接口"""

    @staticmethod
    def _turns_path(tenant_id: str, task_id: str, *rest: str | int) -> str:
        return escape_path("v1", "tenants", tenant_id, "tasks", task_id, "turns", *rest)

    async def create_turn(self, req: CreateTurnRequest) -> Turn:
        return await self._call(
            "PUT",
            self._turns_path(req.tenant_id, req.task_id, req.turn_index),
            req,
            Turn,
            version=req.task_version,
            body=req.body(),
            expected=(201,),
        )

    async def get_turn(self, req: GetTurnRequest) -> Turn:
        return await self._call(
            "GET",
            self._turns_path(req.tenant_id, req.task_id, req.turn_index),
            req,
            Turn,
            params=include_deleted_query(req.include_deleted),
        )

    async def get_last_turn(self, req: GetLastTurnRequest) -> Turn:
        return await self._call(
            "GET",
            self._turns_path(req.tenant_id, req.task_id, "last"),
            req,
            Turn,
            params=include_deleted_query(req.include_deleted),
        )

    async def update_turn(self, req: UpdateTurnRequest) -> Turn:
        return await self._call(
            "PATCH",
            self._turns_path(req.tenant_id, req.task_id, req.turn_index),
            req,
            Turn,
            version=req.version,
            body=req.body(),
        )

    async def list_turns(self, req: ListTurnsRequest) -> Page[Turn]:
        return await self._list(
            self._turns_path(req.tenant_id, req.task_id),
            req,
            Turn,
            "Turns",
            params=req.query(),
        )

    async def upload_turn_logs(self, req: UploadTurnLogsRequest) -> UploadTurnLogsResponse:
        return await self._call(
            "POST",
            self._turns_path(req.tenant_id, req.task_id, req.turn_index, "logs"),
            req,
            UploadTurnLogsResponse,
            version=req.version,
            body=req.body(),
        )

    async def get_last_turn_log(self, req: GetLastTurnLogRequest) -> LastTurnLog:
        """返回最后一条日志；轮次尚无日志时抛出 NotFoundError"""
        return await self._call(
            "GET",
            self._turns_path(req.tenant_id, req.task_id, req.turn_index, "logs", "last"),
            req,
            LastTurnLog,
            params=include_deleted_query(req.include_deleted),
        )

    @asynccontextmanager
    async def stream_turn_logs(self, req: StreamTurnLogsRequest) -> AsyncIterator[AsyncIterator[str] | None]:
        """打开日志 SSE 流，产出逐行迭代器；服务端返回 204 时产出 None

        用法::

            async with client.stream_turn_logs(req) as lines:
                if lines is not None:
                    async for line in lines:
                        ...
        """
        headers: dict[str, str] = {}
        if req.last_event_id != 0:
            headers[LAST_EVENT_ID_HEADER] = str(req.last_event_id)

        async with self._stream(
            self._turns_path(req.tenant_id, req.task_id, req.turn_index, "logs"),
            req,
            params=include_deleted_query(req.include_deleted),
            headers=headers,
        ) as response:
            yield None if response is None else response.aiter_lines()
