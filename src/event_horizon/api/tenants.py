"""租户、当前用户与 Web UI 令牌"""

from pydantic import Field

from event_horizon.domain.enums import TenantType
from event_horizon.domain.models import GenerateWebUITokenResponse, Page, Tenant
from event_horizon.domain.policy import Policy
from event_horizon.transport.client import BaseClient, escape_path
from event_horizon.transport.request import ApiRequest, ListRequest


class CreateTenantRequest(ApiRequest):
    tenant_id: str = Field(exclude=True)
    type: TenantType = Field(alias="Type")
    full_name: str | None = Field(default=None, alias="FullName")
    org_name: str | None = Field(default=None, alias="OrgName")
    enterprise_name: str | None = Field(default=None, alias="EnterpriseName")
    email: str | None = Field(default=None, alias="Email")
    first_name: str | None = Field(default=None, alias="FirstName")
    last_name: str | None = Field(default=None, alias="LastName")
    initial_owner: str | None = Field(default=None, alias="InitialOwner")
    picture_url: str | None = Field(default=None, alias="PictureUrl")


class GetTenantRequest(ApiRequest):
    tenant_id: str = Field(exclude=True)


class GetCurrentUserRequest(ApiRequest):
    pass


class GenerateWebUITokenRequest(ApiRequest):
    tenant_id: str = Field(exclude=True)
    token_id: str = Field(exclude=True)


class ListPoliciesRequest(ListRequest):
    tenant_id: str = Field(exclude=True)


class TenantsAPI(BaseClient):
    """租户相关接口"""

    async def create_tenant(self, req: CreateTenantRequest) -> Tenant:
        return await self._call(
            "PUT",
            escape_path("v1", "tenants", req.tenant_id),
            req,
            Tenant,
            body=req.body(),
            expected=(201,),
        )

    async def get_tenant(self, req: GetTenantRequest) -> Tenant:
        return await self._call("GET", escape_path("v1", "tenants", req.tenant_id), req, Tenant)

    async def get_current_user(self, req: GetCurrentUserRequest | None = None) -> Tenant:
        req = req or GetCurrentUserRequest()
        return await self._call("GET", escape_path("v1", "current-user"), req, Tenant)

    async def generate_web_ui_token(self, req: GenerateWebUITokenRequest) -> GenerateWebUITokenResponse:
        return await self._call(
            "PUT",
            escape_path("v1", "tenants", req.tenant_id, "ui-tokens", req.token_id),
            req,
            GenerateWebUITokenResponse,
            expected=(201,),
        )

    async def list_policies(self, req: ListPoliciesRequest) -> Page[Policy]:
        return await self._list(
            escape_path("v1", "tenants", req.tenant_id, "policies"),
            req,
            Policy,
            "Policies",
            params=req.query(),
        )
