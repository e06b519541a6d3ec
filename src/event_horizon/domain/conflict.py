"""
冲突响应编解码

409 响应体携带 CurrentType 标签和当前资源状态，按标签分派到具体模型。
未知标签视为解码错误，不静默丢弃。
"""

from typing import Any, Union

from pydantic import ValidationError

from event_horizon.domain.enums import ObjectType
from event_horizon.domain.models import (
    ApiModel,
    Environment,
    FeatureFlag,
    FeatureFlagOverride,
    GithubOrg,
    Runner,
    Task,
    Tenant,
    TenantGithubOrg,
    Turn,
    WebUITokenThumbprint,
    Workstream,
    WorkstreamShortName,
)
from event_horizon.errors import ConflictError, DecodingError, parse_response_code

ConflictObject = Union[
    Tenant,
    Environment,
    WebUITokenThumbprint,
    Task,
    Turn,
    Workstream,
    WorkstreamShortName,
    Runner,
    GithubOrg,
    TenantGithubOrg,
    FeatureFlag,
    FeatureFlagOverride,
]

CONFLICT_TYPES: dict[ObjectType, type[ApiModel]] = {
    ObjectType.TENANT: Tenant,
    ObjectType.ENVIRONMENT: Environment,
    ObjectType.WEB_UI_TOKEN_THUMBPRINT: WebUITokenThumbprint,
    ObjectType.TASK: Task,
    ObjectType.TURN: Turn,
    ObjectType.WORKSTREAM: Workstream,
    ObjectType.WORKSTREAM_SHORT_NAME: WorkstreamShortName,
    ObjectType.RUNNER: Runner,
    ObjectType.GITHUB_ORG: GithubOrg,
    ObjectType.TENANT_GITHUB_ORG: TenantGithubOrg,
    ObjectType.FEATURE_FLAG: FeatureFlag,
    ObjectType.FEATURE_FLAG_OVERRIDE: FeatureFlagOverride,
}

_TAGS: dict[type[ApiModel], ObjectType] = {model: tag for tag, model in CONFLICT_TYPES.items()}


def object_type_of(current: ApiModel) -> ObjectType:
    try:
        return _TAGS[type(current)]
    except KeyError:
        raise DecodingError(f"unsupported conflict object: {type(current).__name__}") from None


def decode_current(tag: str | None, payload: Any) -> ConflictObject | None:
    if tag is None or tag == "":
        if payload is not None:
            raise DecodingError("conflict payload without CurrentType")
        return None

    try:
        model = CONFLICT_TYPES[ObjectType(tag)]
    except ValueError:
        raise DecodingError(f"unknown conflict object type: {tag}", details={"CurrentType": tag}) from None

    if payload is None:
        return None
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise DecodingError(f"invalid {tag} conflict payload: {e}") from e


def decode_conflict(payload: dict[str, Any], status_code: int = 409) -> ConflictError:
    """从 409 响应体构造 ConflictError"""
    if not isinstance(payload, dict):
        raise DecodingError("conflict envelope is not a JSON object")
    current = decode_current(payload.get("CurrentType"), payload.get("Current"))
    return ConflictError(
        message=str(payload.get("Message") or ""),
        response_code=parse_response_code(payload, status_code),
        error_type=str(payload.get("ErrorType") or ""),
        current=current,
    )


def encode_conflict(error: ConflictError) -> dict[str, Any]:
    payload = error.to_payload()
    if error.current is not None:
        payload["CurrentType"] = object_type_of(error.current).value
        payload["Current"] = error.current.to_payload()
    return payload
