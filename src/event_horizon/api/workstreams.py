"""工作流与短名称接口"""

from pydantic import Field

from event_horizon.domain.models import Page, Workstream, WorkstreamShortName
from event_horizon.transport.client import BaseClient, escape_path
from event_horizon.transport.request import ApiRequest, ListRequest, include_deleted_query


class CreateWorkstreamRequest(ApiRequest):
    tenant_id: str = Field(default="", exclude=True)
    workstream_id: str = Field(default="", exclude=True)
    name: str = Field(alias="Name")
    description: str = Field(default="", alias="Description")
    default_short_name: str | None = Field(default=None, alias="DefaultShortName")


class GetWorkstreamRequest(ApiRequest):
    tenant_id: str = Field(exclude=True)
    workstream_id: str = Field(exclude=True)
    include_deleted: bool | None = Field(default=None, exclude=True)


class UpdateWorkstreamRequest(ApiRequest):
    tenant_id: str = Field(default="", exclude=True)
    workstream_id: str = Field(default="", exclude=True)
    version: int = Field(default=0, exclude=True)
    name: str | None = Field(default=None, alias="Name")
    description: str | None = Field(default=None, alias="Description")
    paused: bool | None = Field(default=None, alias="Paused")
    deleted: bool | None = Field(default=None, alias="Deleted")
    default_short_name: str | None = Field(default=None, alias="DefaultShortName")


class DeleteWorkstreamRequest(ApiRequest):
    tenant_id: str = Field(exclude=True)
    workstream_id: str = Field(exclude=True)
    version: int = Field(exclude=True)


class ListWorkstreamsRequest(ListRequest):
    tenant_id: str = Field(exclude=True)
    short_name: str | None = Field(default=None, exclude=True)

    def query(self) -> dict[str, str]:
        params = super().query()
        if self.short_name is not None:
            params["shortName"] = self.short_name
        return params


class AddWorkstreamShortNameRequest(ApiRequest):
    tenant_id: str = Field(exclude=True)
    workstream_id: str = Field(exclude=True)
    name: str = Field(exclude=True)
    workstream_version: int = Field(exclude=True)


class DeleteWorkstreamShortNameRequest(ApiRequest):
    tenant_id: str = Field(exclude=True)
    workstream_id: str = Field(exclude=True)
    name: str = Field(exclude=True)
    version: int = Field(exclude=True)


class ListWorkstreamShortNamesRequest(ListRequest):
    tenant_id: str = Field(exclude=True)
    workstream_id: str | None = Field(default=None, exclude=True)

    def query(self) -> dict[str, str]:
        params = super().query()
        if self.workstream_id is not None:
            params["workstreamID"] = self.workstream_id
        return params


class WorkstreamsAPI(BaseClient):
    """工作流相关接口"""

    @staticmethod
    def _workstream_path(tenant_id: str, workstream_id: str, *rest: str) -> str:
        return escape_path("v1", "tenants", tenant_id, "workstreams", workstream_id, *rest)

    async def create_workstream(self, req: CreateWorkstreamRequest) -> Workstream:
        return await self._call(
            "PUT",
            self._workstream_path(req.tenant_id, req.workstream_id),
            req,
            Workstream,
            body=req.body(),
            expected=(201,),
        )

    async def get_workstream(self, req: GetWorkstreamRequest) -> Workstream:
        return await self._call(
            "GET",
            self._workstream_path(req.tenant_id, req.workstream_id),
            req,
            Workstream,
            params=include_deleted_query(req.include_deleted),
        )

    async def update_workstream(self, req: UpdateWorkstreamRequest) -> Workstream:
        return await self._call(
            "PATCH",
            self._workstream_path(req.tenant_id, req.workstream_id),
            req,
            Workstream,
            version=req.version,
            body=req.body(),
        )

    async def delete_workstream(self, req: DeleteWorkstreamRequest) -> None:
        await self._call_no_content(
            "DELETE",
            self._workstream_path(req.tenant_id, req.workstream_id),
            req,
            version=req.version,
        )

    async def list_workstreams(self, req: ListWorkstreamsRequest) -> Page[Workstream]:
        return await self._list(
            escape_path("v1", "tenants", req.tenant_id, "workstreams"),
            req,
            Workstream,
            "Items",
            params=req.query(),
        )

    async def add_workstream_short_name(self, req: AddWorkstreamShortNameRequest) -> None:
        """为工作流添加短名称，If-Match 为工作流版本"""
        await self._call_no_content(
            "PUT",
            self._workstream_path(req.tenant_id, req.workstream_id, "shortnames", req.name),
            req,
            version=req.workstream_version,
        )

    async def delete_workstream_short_name(self, req: DeleteWorkstreamShortNameRequest) -> None:
        await self._call_no_content(
            "DELETE",
            self._workstream_path(req.tenant_id, req.workstream_id, "shortnames", req.name),
            req,
            version=req.version,
        )

    async def list_workstream_short_names(
        self, req: ListWorkstreamShortNamesRequest
    ) -> Page[WorkstreamShortName]:
        return await self._list(
            escape_path("v1", "tenants", req.tenant_id, "shortnames"),
            req,
            WorkstreamShortName,
            "Items",
            params=req.query(),
        )
