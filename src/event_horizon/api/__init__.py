"""按资源划分的接口与请求模型"""

from event_horizon.api.environments import (
    CreateEnvironmentRequest,
    DeleteEnvironmentRequest,
    EnvironmentsAPI,
    GetEnvironmentRequest,
    ListEnvironmentsRequest,
    UpdateEnvironmentRequest,
)
from event_horizon.api.feature_flags import (
    CreateFeatureFlagOverrideRequest,
    CreateFeatureFlagRequest,
    FeatureFlagsAPI,
    GetFeatureFlagRequest,
    ListFeatureFlagsRequest,
)
from event_horizon.api.github import (
    AddGithubOrgRequest,
    DeleteGithubOrgRequest,
    GetGithubOrgRequest,
    GithubAPI,
    ListGithubOrgsRequest,
    UpdateGithubOrgRequest,
)
from event_horizon.api.runners import (
    CreateRunnerRequest,
    DeleteRunnerRequest,
    GenerateRunnerTokenRequest,
    GetRunnerRequest,
    GetRunnerTokenRequest,
    ListRunnersRequest,
    ListRunnerTokensRequest,
    RevokeRunnerTokenRequest,
    RunnersAPI,
    UpdateRunnerRequest,
)
from event_horizon.api.tasks import (
    CreateTaskRequest,
    DeleteTaskRequest,
    GetTaskRequest,
    ListTasksRequest,
    TasksAPI,
    UpdateTaskRequest,
)
from event_horizon.api.tenants import (
    CreateTenantRequest,
    GenerateWebUITokenRequest,
    GetCurrentUserRequest,
    GetTenantRequest,
    ListPoliciesRequest,
    TenantsAPI,
)
from event_horizon.api.turns import (
    CreateTurnRequest,
    GetLastTurnLogRequest,
    GetLastTurnRequest,
    GetTurnRequest,
    ListTurnsRequest,
    StreamTurnLogsRequest,
    TurnsAPI,
    UpdateTurnRequest,
    UploadTurnLogsRequest,
)
from event_horizon.api.workstreams import (
    AddWorkstreamShortNameRequest,
    CreateWorkstreamRequest,
    DeleteWorkstreamRequest,
    DeleteWorkstreamShortNameRequest,
    GetWorkstreamRequest,
    ListWorkstreamShortNamesRequest,
    ListWorkstreamsRequest,
    UpdateWorkstreamRequest,
    WorkstreamsAPI,
)

__all__ = [
    # 租户
    "TenantsAPI",
    "CreateTenantRequest",
    "GetTenantRequest",
    "GetCurrentUserRequest",
    "GenerateWebUITokenRequest",
    "ListPoliciesRequest",
    # 环境
    "EnvironmentsAPI",
    "CreateEnvironmentRequest",
    "GetEnvironmentRequest",
    "UpdateEnvironmentRequest",
    "DeleteEnvironmentRequest",
    "ListEnvironmentsRequest",
    # 任务
    "TasksAPI",
    "CreateTaskRequest",
    "GetTaskRequest",
    "UpdateTaskRequest",
    "DeleteTaskRequest",
    "ListTasksRequest",
    # 轮次与日志
    "TurnsAPI",
    "CreateTurnRequest",
    "GetTurnRequest",
    "GetLastTurnRequest",
    "UpdateTurnRequest",
    "ListTurnsRequest",
    "UploadTurnLogsRequest",
    "StreamTurnLogsRequest",
    "GetLastTurnLogRequest",
    # 工作流
    "WorkstreamsAPI",
    "CreateWorkstreamRequest",
    "GetWorkstreamRequest",
    "UpdateWorkstreamRequest",
    "DeleteWorkstreamRequest",
    "ListWorkstreamsRequest",
    "AddWorkstreamShortNameRequest",
    "DeleteWorkstreamShortNameRequest",
    "ListWorkstreamShortNamesRequest",
    # Runner
    "RunnersAPI",
    "CreateRunnerRequest",
    "GetRunnerRequest",
    "UpdateRunnerRequest",
    "DeleteRunnerRequest",
    "ListRunnersRequest",
    "GenerateRunnerTokenRequest",
    "GetRunnerTokenRequest",
    "RevokeRunnerTokenRequest",
    "ListRunnerTokensRequest",
    # GitHub
    "GithubAPI",
    "AddGithubOrgRequest",
    "GetGithubOrgRequest",
    "UpdateGithubOrgRequest",
    "DeleteGithubOrgRequest",
    "ListGithubOrgsRequest",
    # 功能开关
    "FeatureFlagsAPI",
    "CreateFeatureFlagRequest",
    "GetFeatureFlagRequest",
    "ListFeatureFlagsRequest",
    "CreateFeatureFlagOverrideRequest",
]
