"""环境接口"""

from pydantic import Field

from event_horizon.domain.models import Environment, EnvVar, Page
from event_horizon.transport.client import BaseClient, escape_path
from event_horizon.transport.request import ApiRequest, ListRequest, include_deleted_query


class CreateEnvironmentRequest(ApiRequest):
    tenant_id: str = Field(default="", exclude=True)
    environment_id: str = Field(default="", exclude=True)
    name: str = Field(alias="Name")
    description: str = Field(default="", alias="Description")
    context: str = Field(default="", alias="Context")
    repos: list[str] = Field(default_factory=list, alias="Repos")
    setup_script: str = Field(default="", alias="SetupScript")
    docker_image: str = Field(default="", alias="DockerImage")
    allowed_hosts: list[str] = Field(default_factory=list, alias="AllowedHosts")
    env_vars: list[EnvVar] = Field(default_factory=list, alias="EnvVars")
    runner_id: str | None = Field(default=None, alias="RunnerId")
    github_connection_id: str | None = Field(default=None, alias="GithubConnectionId")


class GetEnvironmentRequest(ApiRequest):
    tenant_id: str = Field(exclude=True)
    environment_id: str = Field(exclude=True)
    include_deleted: bool | None = Field(default=None, exclude=True)


class UpdateEnvironmentRequest(ApiRequest):
    tenant_id: str = Field(default="", exclude=True)
    environment_id: str = Field(default="", exclude=True)
    version: int = Field(default=0, exclude=True)
    name: str | None = Field(default=None, alias="Name")
    description: str | None = Field(default=None, alias="Description")
    context: str | None = Field(default=None, alias="Context")
    repos: list[str] | None = Field(default=None, alias="Repos")
    setup_script: str | None = Field(default=None, alias="SetupScript")
    docker_image: str | None = Field(default=None, alias="DockerImage")
    allowed_hosts: list[str] | None = Field(default=None, alias="AllowedHosts")
    env_vars: list[EnvVar] | None = Field(default=None, alias="EnvVars")
    deleted: bool | None = Field(default=None, alias="Deleted")
    runner_id: str | None = Field(default=None, alias="RunnerId")
    github_connection_id: str | None = Field(default=None, alias="GithubConnectionId")


class DeleteEnvironmentRequest(ApiRequest):
    tenant_id: str = Field(exclude=True)
    environment_id: str = Field(exclude=True)
    version: int = Field(exclude=True)


class ListEnvironmentsRequest(ListRequest):
    tenant_id: str = Field(exclude=True)


class EnvironmentsAPI(BaseClient):
    """环境相关接口"""

    @staticmethod
    def _environment_path(tenant_id: str, environment_id: str) -> str:
        return escape_path("v1", "tenants", tenant_id, "environments", environment_id)

    async def create_environment(self, req: CreateEnvironmentRequest) -> Environment:
        return await self._call(
            "PUT",
            self._environment_path(req.tenant_id, req.environment_id),
            req,
            Environment,
            body=req.body(),
            expected=(201,),
        )

    async def get_environment(self, req: GetEnvironmentRequest) -> Environment:
        return await self._call(
            "GET",
            self._environment_path(req.tenant_id, req.environment_id),
            req,
            Environment,
            params=include_deleted_query(req.include_deleted),
        )

    async def update_environment(self, req: UpdateEnvironmentRequest) -> Environment:
        return await self._call(
            "PATCH",
            self._environment_path(req.tenant_id, req.environment_id),
            req,
            Environment,
            version=req.version,
            body=req.body(),
        )

    async def delete_environment(self, req: DeleteEnvironmentRequest) -> None:
        await self._call_no_content(
            "DELETE",
            self._environment_path(req.tenant_id, req.environment_id),
            req,
            version=req.version,
        )

    async def list_environments(self, req: ListEnvironmentsRequest) -> Page[Environment]:
        return await self._list(
            escape_path("v1", "tenants", req.tenant_id, "environments"),
            req,
            Environment,
            "Items",
            params=req.query(),
        )
