"""
枚举定义

服务端使用的字符串枚举。未知取值在需要前向兼容的字段上按普通字符串接收。
"""

from enum import Enum


class TenantType(str, Enum):
    """租户类型"""
    USER = "User"
    ORGANIZATION = "Organization"
    ENTERPRISE = "Enterprise"


class TaskState(str, Enum):
    """任务状态"""
    PENDING = "Pending"
    EXECUTING = "Executing"
    AWAITING_CODE_REVIEW = "Awaiting Code Review"
    COMPLETED = "Completed"
    FAILED = "Failed"


class ModelType(str, Enum):
    """执行模型"""
    CODEX_MINI = "Codex Mini"
    O3 = "O3"
    O3_PRO = "O3 Pro"
    CLAUDE_4_OPUS = "Claude 4 Opus"
    CLAUDE_4_SONNET = "Claude 4 Sonnet"


class ObjectType(str, Enum):
    """冲突响应中 CurrentType 的取值"""
    TENANT = "Tenant"
    ENVIRONMENT = "Environment"
    WEB_UI_TOKEN_THUMBPRINT = "WebUITokenThumbprint"
    TASK = "Task"
    TURN = "Turn"
    WORKSTREAM = "Workstream"
    WORKSTREAM_SHORT_NAME = "WorkstreamShortName"
    RUNNER = "Runner"
    GITHUB_ORG = "GithubOrg"
    TENANT_GITHUB_ORG = "TenantGithubOrg"
    FEATURE_FLAG = "FeatureFlag"
    FEATURE_FLAG_OVERRIDE = "FeatureFlagOverride"


class AuthorizationType(str, Enum):
    """委托鉴权令牌类型"""
    WEB_UI_TOKEN = "WebUIToken"
    AUTH_PROVIDER_TOKEN = "AuthProviderToken"
    SERVICE_ACCOUNT_TOKEN = "ServiceAccountToken"
    AGENT_TOKEN = "AgentToken"


class EffectType(str, Enum):
    ALLOW = "Allow"
    DENY = "Deny"


class PrincipalType(str, Enum):
    USER = "User"
    IAM_ROLE = "IAMRole"
    SERVICE = "Service"
    SERVICE_ACCOUNT = "ServiceAccount"
    AGENT = "Agent"


class MemberRole(str, Enum):
    OWNER = "Owner"
    MEMBER = "Member"


class TokenType(str, Enum):
    """策略主体可匹配的令牌类型（顺序即位编码顺序）"""
    WEB_UI = "WebUIToken"
    AUTH_PROVIDER = "AuthProviderToken"
    SERVICE_ACCOUNT = "ServiceAccountToken"
    AGENT = "AgentToken"


class Action(str, Enum):
    """策略动作（顺序即位编码顺序，只能追加）"""
    PERFORM_DELEGATED_ACTION = "PerformDelegatedAction"
    CREATE_TENANT = "CreateTenant"
    GET_TENANT = "GetTenant"
    GENERATE_WEB_UI_TOKEN = "GenerateWebUIToken"
    LIST_POLICIES = "ListPolicies"
    UPDATE_TURN = "UpdateTurn"
    UPDATE_TASK = "UpdateTask"
    GET_TASK = "GetTask"
    LIST_TASKS = "ListTasks"
    GET_TURN = "GetTurn"
    UPLOAD_TURN_LOGS = "UploadTurnLogs"
    GET_CURRENT_USER = "GetCurrentUser"
    CREATE_ENVIRONMENT = "CreateEnvironment"
    GET_ENVIRONMENT = "GetEnvironment"
    LIST_ENVIRONMENTS = "ListEnvironments"
    UPDATE_ENVIRONMENT = "UpdateEnvironment"
    DELETE_ENVIRONMENT = "DeleteEnvironment"
    GET_LAST_TURN = "GetLastTurn"
    CREATE_TASK = "CreateTask"
    GET_LAST_TURN_LOG = "GetLastTurnLog"
    STREAM_LOGS = "StreamLogs"
    LIST_TURNS = "ListTurns"
    ADD_GITHUB_ORG = "AddGithubOrg"
    UPDATE_GITHUB_ORG = "UpdateGithubOrg"
    DELETE_GITHUB_ORG = "DeleteGithubOrg"
    LIST_GITHUB_ORGS = "ListGithubOrgs"
    GET_GITHUB_ORG = "GetGithubOrg"
    CREATE_FEATURE_FLAG = "CreateFeatureFlag"
    GET_TENANT_FEATURE_FLAGS = "GetTenantFeatureFlags"
    CREATE_FEATURE_FLAG_OVERRIDE = "CreateFeatureFlagOverride"
    LIST_FEATURE_FLAGS = "ListFeatureFlags"
    GET_FEATURE_FLAG = "GetFeatureFlag"
    UPDATE_FEATURE_FLAG = "UpdateFeatureFlag"
    DELETE_FEATURE_FLAG = "DeleteFeatureFlag"
    DELETE_FEATURE_FLAG_OVERRIDE = "DeleteFeatureFlagOverride"
    GET_FEATURE_FLAG_OVERRIDE = "GetFeatureFlagOverride"
    UPDATE_FEATURE_FLAG_OVERRIDE = "UpdateFeatureFlagOverride"
    LIST_FEATURE_FLAG_OVERRIDES = "ListFeatureFlagOverrides"
    GET_TENANT_GITHUB_CREDS = "GetTenantGithubCreds"
    UPDATE_TENANT_GITHUB_CREDS = "UpdateTenantGithubCreds"
    FIND_GITHUB_USER = "FindGithubUser"
    CREATE_WORKSTREAM = "CreateWorkstream"
    GET_WORKSTREAM = "GetWorkstream"
    UPDATE_WORKSTREAM = "UpdateWorkstream"
    LIST_WORKSTREAMS = "ListWorkstreams"
    DELETE_WORKSTREAM = "DeleteWorkstream"
    ADD_WORKSTREAM_SHORT_NAME = "AddWorkstreamShortName"
    LIST_WORKSTREAM_SHORT_NAMES = "ListWorkstreamShortNames"
    DELETE_WORKSTREAM_SHORT_NAME = "DeleteWorkstreamShortName"
    MOVE_TASK = "MoveTask"
    MOVE_SHORT_NAME = "MoveShortName"
    LIST_TENANTS = "ListTenants"
    CREATE_WORKSTREAM_TASK = "CreateWorkstreamTask"
    LIST_WORKSTREAM_TASKS = "ListWorkstreamTasks"
    DELETE_WORKSTREAM_TASK = "DeleteWorkstreamTask"
    UPDATE_WORKSTREAM_TASK = "UpdateWorkstreamTask"
    GET_WORKSTREAM_TASK = "GetWorkstreamTask"
    SEARCH_TASKS = "SearchTasks"
    CREATE_RUNNER = "CreateRunner"
    CREATE_GITHUB_CONNECTION = "CreateGithubConnection"
    LIST_RUNNERS = "ListRunners"
    DELETE_RUNNER = "DeleteRunner"
    LIST_GITHUB_CONNECTIONS = "ListGithubConnections"
    GET_RUNNER = "GetRunner"
    UPDATE_RUNNER = "UpdateRunner"
    DELETE_GITHUB_CONNECTION = "DeleteGithubConnection"
    GENERATE_RUNNER_TOKEN = "GenerateRunnerToken"
    GET_GITHUB_CONNECTION = "GetGithubConnection"
    REVOKE_RUNNER_TOKEN = "RevokeRunnerToken"
    UPDATE_GITHUB_CONNECTION = "UpdateGithubConnection"
    LIST_RUNNER_TOKENS = "ListRunnerTokens"
    GET_MESSAGES_BATCH = "GetMessagesBatch"
    REGISTER_RUNNER_INSTANCE = "RegisterRunnerInstance"
    WRITE_RESPONSE = "WriteResponse"
