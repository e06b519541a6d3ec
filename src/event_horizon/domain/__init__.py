"""领域模型：资源、枚举、冲突编解码、策略位向量"""

from event_horizon.domain.conflict import (
    CONFLICT_TYPES,
    ConflictObject,
    decode_conflict,
    encode_conflict,
)
from event_horizon.domain.enums import (
    Action,
    AuthorizationType,
    EffectType,
    MemberRole,
    ModelType,
    ObjectType,
    PrincipalType,
    TaskState,
    TenantType,
    TokenType,
)
from event_horizon.domain.models import (
    ApiModel,
    Environment,
    EnvVar,
    FeatureFlag,
    FeatureFlagOverride,
    GenerateRunnerTokenResponse,
    GenerateWebUITokenResponse,
    GithubOrg,
    LastTurnLog,
    Page,
    RepoInfo,
    Runner,
    RunnerTokenMetadata,
    Task,
    Tenant,
    TenantGithubOrg,
    Turn,
    TurnLog,
    UploadTurnLogsResponse,
    WebUITokenThumbprint,
    Workstream,
    WorkstreamShortName,
)
from event_horizon.domain.policy import (
    ACTION_CODEC,
    TOKEN_TYPE_CODEC,
    WILDCARD,
    BitVectorCodec,
    Policy,
    PolicyPrincipal,
)

__all__ = [
    "ACTION_CODEC",
    "CONFLICT_TYPES",
    "TOKEN_TYPE_CODEC",
    "WILDCARD",
    "Action",
    "ApiModel",
    "AuthorizationType",
    "BitVectorCodec",
    "ConflictObject",
    "EffectType",
    "EnvVar",
    "Environment",
    "FeatureFlag",
    "FeatureFlagOverride",
    "GenerateRunnerTokenResponse",
    "GenerateWebUITokenResponse",
    "GithubOrg",
    "LastTurnLog",
    "MemberRole",
    "ModelType",
    "ObjectType",
    "Page",
    "Policy",
    "PolicyPrincipal",
    "PrincipalType",
    "RepoInfo",
    "Runner",
    "RunnerTokenMetadata",
    "Task",
    "TaskState",
    "Tenant",
    "TenantGithubOrg",
    "TenantType",
    "TokenType",
    "Turn",
    "TurnLog",
    "UploadTurnLogsResponse",
    "WebUITokenThumbprint",
    "Workstream",
    "WorkstreamShortName",
    "decode_conflict",
    "encode_conflict",
]
