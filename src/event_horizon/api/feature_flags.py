"""功能开关与租户级覆盖"""

from pydantic import Field

from event_horizon.domain.models import FeatureFlag, FeatureFlagOverride, Page
from event_horizon.transport.client import BaseClient, escape_path
from event_horizon.transport.request import ApiRequest, ListRequest, include_deleted_query


class CreateFeatureFlagRequest(ApiRequest):
    flag_name: str = Field(default="", exclude=True)
    description: str = Field(default="", alias="Description")
    default_pct: float = Field(default=0.0, alias="DefaultPct")


class GetFeatureFlagRequest(ApiRequest):
    flag_name: str = Field(exclude=True)
    include_deleted: bool | None = Field(default=None, exclude=True)


class ListFeatureFlagsRequest(ListRequest):
    pass


class CreateFeatureFlagOverrideRequest(ApiRequest):
    tenant_id: str = Field(default="", exclude=True)
    flag_name: str = Field(default="", exclude=True)
    enabled: bool = Field(alias="Enabled")


class FeatureFlagsAPI(BaseClient):
    """功能开关相关接口"""

    async def create_feature_flag(self, req: CreateFeatureFlagRequest) -> FeatureFlag:
        return await self._call(
            "PUT",
            escape_path("v1", "featureflags", req.flag_name),
            req,
            FeatureFlag,
            body=req.body(),
            expected=(201,),
        )

    async def get_feature_flag(self, req: GetFeatureFlagRequest) -> FeatureFlag:
        return await self._call(
            "GET",
            escape_path("v1", "featureflags", req.flag_name),
            req,
            FeatureFlag,
            params=include_deleted_query(req.include_deleted),
        )

    async def list_feature_flags(self, req: ListFeatureFlagsRequest | None = None) -> Page[FeatureFlag]:
        req = req or ListFeatureFlagsRequest()
        return await self._list(
            escape_path("v1", "featureflags"),
            req,
            FeatureFlag,
            "FeatureFlags",
            params=req.query(),
        )

    async def create_feature_flag_override(
        self, req: CreateFeatureFlagOverrideRequest
    ) -> FeatureFlagOverride:
        return await self._call(
            "PUT",
            escape_path("v1", "tenants", req.tenant_id, "featureFlagOverrides", req.flag_name),
            req,
            FeatureFlagOverride,
            body=req.body(),
            expected=(201,),
        )
