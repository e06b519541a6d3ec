"""
请求模型基类

路径参数、版本号、功能开关和委托鉴权只进入 URL 或请求头；
其余字段按 exclude_unset 序列化为请求体，从而区分“未设置”与“显式置空”。
"""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from event_horizon.domain.enums import AuthorizationType

FEATURE_FLAGS_HEADER = "X-EventHorizon-FeatureFlags"
DELEGATED_AUTH_HEADER = "X-Event-Horizon-Delegating-Authorization"


def dumps_compact(payload: Any) -> bytes:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def encode_feature_flags(flags: dict[str, bool]) -> str:
    return json.dumps(flags, sort_keys=True, separators=(",", ":"))


class DelegatedAuth(BaseModel):
    """委托鉴权信息（代表其他主体发起请求）"""

    auth_type: AuthorizationType | str
    jwt: str

    def header_value(self) -> str:
        auth_type = self.auth_type.value if isinstance(self.auth_type, AuthorizationType) else self.auth_type
        return f"{auth_type} {self.jwt}"


class ApiRequest(BaseModel):
    """请求基类"""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    feature_flags: dict[str, bool] | None = Field(default=None, exclude=True)
    delegated_auth: DelegatedAuth | None = Field(default=None, exclude=True)

    def body(self) -> bytes:
        return dumps_compact(self.model_dump(mode="json", by_alias=True, exclude_unset=True))

    def headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.feature_flags:
            headers[FEATURE_FLAGS_HEADER] = encode_feature_flags(self.feature_flags)
        if self.delegated_auth is not None:
            headers[DELEGATED_AUTH_HEADER] = self.delegated_auth.header_value()
        return headers


class ListRequest(ApiRequest):
    """分页列表请求"""

    max_results: int | None = Field(default=None, exclude=True)
    token: str | None = Field(default=None, exclude=True)
    include_deleted: bool | None = Field(default=None, exclude=True)

    def query(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.max_results is not None:
            params["maxResults"] = str(self.max_results)
        if self.token is not None:
            params["token"] = self.token
        if self.include_deleted is not None:
            params["includeDeleted"] = "true" if self.include_deleted else "false"
        return params


def include_deleted_query(include_deleted: bool | None) -> dict[str, str]:
    if include_deleted is None:
        return {}
    return {"includeDeleted": "true" if include_deleted else "false"}
