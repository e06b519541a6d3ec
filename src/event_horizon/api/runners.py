"""Runner 与 Runner 令牌接口"""

from pydantic import Field

from event_horizon.domain.models import (
    GenerateRunnerTokenResponse,
    Page,
    Runner,
    RunnerTokenMetadata,
)
from event_horizon.transport.client import BaseClient, escape_path
from event_horizon.transport.request import ApiRequest, ListRequest, include_deleted_query


def _bool_query(value: bool) -> str:
    return "true" if value else "false"


class CreateRunnerRequest(ApiRequest):
    tenant_id: str = Field(default="", exclude=True)
    runner_id: str = Field(default="", exclude=True)
    name: str = Field(alias="Name")
    description: str | None = Field(default=None, alias="Description")
    is_cloud: bool = Field(default=False, alias="IsCloud")
    runs_tasks: bool = Field(default=False, alias="RunsTasks")
    proxies_github: bool = Field(default=False, alias="ProxiesGithub")


class GetRunnerRequest(ApiRequest):
    tenant_id: str = Field(exclude=True)
    runner_id: str = Field(exclude=True)
    include_deleted: bool | None = Field(default=None, exclude=True)


class UpdateRunnerRequest(ApiRequest):
    tenant_id: str = Field(default="", exclude=True)
    runner_id: str = Field(default="", exclude=True)
    version: int = Field(default=0, exclude=True)
    name: str | None = Field(default=None, alias="Name")
    description: str | None = Field(default=None, alias="Description")
    is_cloud: bool | None = Field(default=None, alias="IsCloud")
    runs_tasks: bool | None = Field(default=None, alias="RunsTasks")
    proxies_github: bool | None = Field(default=None, alias="ProxiesGithub")
    deleted: bool | None = Field(default=None, alias="Deleted")


class DeleteRunnerRequest(ApiRequest):
    tenant_id: str = Field(exclude=True)
    runner_id: str = Field(exclude=True)
    version: int = Field(exclude=True)


class ListRunnersRequest(ListRequest):
    tenant_id: str = Field(exclude=True)
    runs_tasks: bool | None = Field(default=None, exclude=True)
    proxies_github: bool | None = Field(default=None, exclude=True)

    def query(self) -> dict[str, str]:
        params = super().query()
        if self.runs_tasks is not None:
            params["runsTasks"] = _bool_query(self.runs_tasks)
        if self.proxies_github is not None:
            params["proxiesGithub"] = _bool_query(self.proxies_github)
        return params


class GenerateRunnerTokenRequest(ApiRequest):
    tenant_id: str = Field(exclude=True)
    runner_id: str = Field(exclude=True)
    token_id: str = Field(exclude=True)
    ttl_days: int | None = Field(default=None, alias="TTLDays", ge=1, le=365)


class GetRunnerTokenRequest(ApiRequest):
    tenant_id: str = Field(exclude=True)
    runner_id: str = Field(exclude=True)
    token_id: str = Field(exclude=True)
    include_deleted: bool | None = Field(default=None, exclude=True)


class RevokeRunnerTokenRequest(ApiRequest):
    tenant_id: str = Field(exclude=True)
    runner_id: str = Field(exclude=True)
    token_id: str = Field(exclude=True)
    version: int = Field(exclude=True)


class ListRunnerTokensRequest(ListRequest):
    """令牌列表的分页参数名为 nextPageToken，并支持 includeRevoked"""

    tenant_id: str = Field(exclude=True)
    runner_id: str = Field(exclude=True)
    include_revoked: bool | None = Field(default=None, exclude=True)

    def query(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.max_results is not None:
            params["maxResults"] = str(self.max_results)
        if self.token is not None:
            params["nextPageToken"] = self.token
        if self.include_revoked is not None:
            params["includeRevoked"] = _bool_query(self.include_revoked)
        return params


class RunnersAPI(BaseClient):
    """Runner 相关接口"""

    @staticmethod
    def _runner_path(tenant_id: str, runner_id: str, *rest: str) -> str:
        return escape_path("v1", "tenants", tenant_id, "runners", runner_id, *rest)

    async def create_runner(self, req: CreateRunnerRequest) -> Runner:
        return await self._call(
            "PUT",
            self._runner_path(req.tenant_id, req.runner_id),
            req,
            Runner,
            body=req.body(),
            expected=(201,),
        )

    async def get_runner(self, req: GetRunnerRequest) -> Runner:
        return await self._call(
            "GET",
            self._runner_path(req.tenant_id, req.runner_id),
            req,
            Runner,
            params=include_deleted_query(req.include_deleted),
        )

    async def update_runner(self, req: UpdateRunnerRequest) -> Runner:
        return await self._call(
            "PATCH",
            self._runner_path(req.tenant_id, req.runner_id),
            req,
            Runner,
            version=req.version,
            body=req.body(),
        )

    async def delete_runner(self, req: DeleteRunnerRequest) -> None:
        await self._call_no_content(
            "DELETE",
            self._runner_path(req.tenant_id, req.runner_id),
            req,
            version=req.version,
        )

    async def list_runners(self, req: ListRunnersRequest) -> Page[Runner]:
        return await self._list(
            escape_path("v1", "tenants", req.tenant_id, "runners"),
            req,
            Runner,
            "Items",
            params=req.query(),
        )

    async def generate_runner_token(self, req: GenerateRunnerTokenRequest) -> GenerateRunnerTokenResponse:
        """生成 Runner 令牌；明文令牌只在本次响应中返回"""
        return await self._call(
            "PUT",
            self._runner_path(req.tenant_id, req.runner_id, "tokens", req.token_id),
            req,
            GenerateRunnerTokenResponse,
            body=req.body(),
            expected=(201,),
        )

    async def get_runner_token(self, req: GetRunnerTokenRequest) -> RunnerTokenMetadata:
        return await self._call(
            "GET",
            self._runner_path(req.tenant_id, req.runner_id, "tokens", req.token_id),
            req,
            RunnerTokenMetadata,
            params=include_deleted_query(req.include_deleted),
        )

    async def revoke_runner_token(self, req: RevokeRunnerTokenRequest) -> None:
        await self._call_no_content(
            "POST",
            self._runner_path(req.tenant_id, req.runner_id, "tokens", req.token_id, "revoke"),
            req,
            version=req.version,
        )

    async def list_runner_tokens(self, req: ListRunnerTokensRequest) -> Page[RunnerTokenMetadata]:
        return await self._list(
            self._runner_path(req.tenant_id, req.runner_id, "tokens"),
            req,
            RunnerTokenMetadata,
            "Items",
            params=req.query(),
        )
