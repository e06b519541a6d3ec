"""任务接口"""

from pydantic import Field

from event_horizon.domain.enums import ModelType, TaskState
from event_horizon.domain.models import Page, RepoInfo, Task
from event_horizon.transport.client import BaseClient, escape_path
from event_horizon.transport.request import ApiRequest, ListRequest, include_deleted_query


class CreateTaskRequest(ApiRequest):
    tenant_id: str = Field(default="", exclude=True)
    task_id: str = Field(default="", exclude=True)
    title: str = Field(alias="Title")
    environment_id: str = Field(default="", alias="EnvironmentId")
    prompt: str = Field(default="", alias="Prompt")
    parallel: bool | None = Field(default=None, alias="Parallel")
    model: ModelType | str | None = Field(default=None, alias="Model")
    assigned_to_tenant_id: str | None = Field(default=None, alias="AssignedToTenantId")
    assigned_to_ai: bool | None = Field(default=None, alias="AssignedToAI")
    repo_info: dict[str, RepoInfo | None] | None = Field(default=None, alias="RepoInfo")
    state: TaskState | str | None = Field(default=None, alias="State")


class GetTaskRequest(ApiRequest):
    tenant_id: str = Field(exclude=True)
    task_id: str = Field(exclude=True)
    include_deleted: bool | None = Field(default=None, exclude=True)


class UpdateTaskRequest(ApiRequest):
    tenant_id: str = Field(default="", exclude=True)
    task_id: str = Field(default="", exclude=True)
    version: int = Field(default=0, exclude=True)
    title: str | None = Field(default=None, alias="Title")
    environment_id: str | None = Field(default=None, alias="EnvironmentId")
    prompt: str | None = Field(default=None, alias="Prompt")
    after_task_id: str | None = Field(default=None, alias="AfterTaskId")
    before_task_id: str | None = Field(default=None, alias="BeforeTaskId")
    parallel: bool | None = Field(default=None, alias="Parallel")
    model: ModelType | str | None = Field(default=None, alias="Model")
    assigned_to_tenant_id: str | None = Field(default=None, alias="AssignedToTenantId")
    assigned_to_ai: bool | None = Field(default=None, alias="AssignedToAI")
    repo_info: dict[str, RepoInfo | None] | None = Field(default=None, alias="RepoInfo")
    state: TaskState | str | None = Field(default=None, alias="State")
    deleted: bool | None = Field(default=None, alias="Deleted")


class DeleteTaskRequest(ApiRequest):
    tenant_id: str = Field(exclude=True)
    task_id: str = Field(exclude=True)
    version: int = Field(exclude=True)


class ListTasksRequest(ListRequest):
    tenant_id: str = Field(exclude=True)


class TasksAPI(BaseClient):
    """任务相关接口"""

    @staticmethod
    def _task_path(tenant_id: str, task_id: str) -> str:
        return escape_path("v1", "tenants", tenant_id, "tasks", task_id)

    async def create_task(self, req: CreateTaskRequest) -> Task:
        return await self._call(
            "PUT",
            self._task_path(req.tenant_id, req.task_id),
            req,
            Task,
            body=req.body(),
            expected=(201,),
        )

    async def get_task(self, req: GetTaskRequest) -> Task:
        return await self._call(
            "GET",
            self._task_path(req.tenant_id, req.task_id),
            req,
            Task,
            params=include_deleted_query(req.include_deleted),
        )

    async def update_task(self, req: UpdateTaskRequest) -> Task:
        return await self._call(
            "PATCH",
            self._task_path(req.tenant_id, req.task_id),
            req,
            Task,
            version=req.version,
            body=req.body(),
        )

    async def delete_task(self, req: DeleteTaskRequest) -> None:
        await self._call_no_content(
            "DELETE",
            self._task_path(req.tenant_id, req.task_id),
            req,
            version=req.version,
        )

    async def list_tasks(self, req: ListTasksRequest) -> Page[Task]:
        return await self._list(
            escape_path("v1", "tenants", req.tenant_id, "tasks"),
            req,
            Task,
            "Tasks",
            params=req.query(),
        )
