"""GitHub 组织接口"""

from pydantic import Field

from event_horizon.domain.models import GithubOrg, Page
from event_horizon.transport.client import BaseClient, escape_path
from event_horizon.transport.request import ApiRequest, ListRequest, include_deleted_query


class AddGithubOrgRequest(ApiRequest):
    org_id: str = Field(default="", exclude=True)
    org_name: str = Field(alias="OrgName")
    external_org_id: int = Field(alias="ExternalOrgID")
    installation_id: int = Field(alias="InstallationID")


class GetGithubOrgRequest(ApiRequest):
    org_id: str = Field(exclude=True)
    include_deleted: bool | None = Field(default=None, exclude=True)


class UpdateGithubOrgRequest(ApiRequest):
    org_id: str = Field(default="", exclude=True)
    version: int = Field(default=0, exclude=True)
    org_name: str | None = Field(default=None, alias="OrgName")
    installation_id: int | None = Field(default=None, alias="InstallationID")
    deleted: bool | None = Field(default=None, alias="Deleted")


class DeleteGithubOrgRequest(ApiRequest):
    org_id: str = Field(exclude=True)
    version: int = Field(exclude=True)


class ListGithubOrgsRequest(ListRequest):
    name: str | None = Field(default=None, exclude=True)

    def query(self) -> dict[str, str]:
        params = super().query()
        if self.name is not None:
            params["name"] = self.name
        return params


class GithubAPI(BaseClient):
    """GitHub 组织相关接口"""

    @staticmethod
    def _org_path(org_id: str) -> str:
        return escape_path("v1", "github", "orgs", org_id)

    async def add_github_org(self, req: AddGithubOrgRequest) -> GithubOrg:
        return await self._call(
            "PUT",
            self._org_path(req.org_id),
            req,
            GithubOrg,
            body=req.body(),
            expected=(201,),
        )

    async def get_github_org(self, req: GetGithubOrgRequest) -> GithubOrg:
        return await self._call(
            "GET",
            self._org_path(req.org_id),
            req,
            GithubOrg,
            params=include_deleted_query(req.include_deleted),
        )

    async def update_github_org(self, req: UpdateGithubOrgRequest) -> GithubOrg:
        return await self._call(
            "PATCH",
            self._org_path(req.org_id),
            req,
            GithubOrg,
            version=req.version,
            body=req.body(),
        )

    async def delete_github_org(self, req: DeleteGithubOrgRequest) -> None:
        await self._call_no_content("DELETE", self._org_path(req.org_id), req, version=req.version)

    async def list_github_orgs(self, req: ListGithubOrgsRequest | None = None) -> Page[GithubOrg]:
        req = req or ListGithubOrgsRequest()
        return await self._list(
            escape_path("v1", "github", "orgs"),
            req,
            GithubOrg,
            "Orgs",
            params=req.query(),
        )
