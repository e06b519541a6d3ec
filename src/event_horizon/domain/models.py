"""
资源模型

服务端资源的 pydantic 表示。字段名使用 snake_case，序列化别名与服务端
JSON 字段一致；未知字段原样保留，保证冲突响应中的当前状态可以无损往返。
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from event_horizon.domain.enums import ModelType, TaskState, TenantType

T = TypeVar("T")


class ApiModel(BaseModel):
    """服务端资源基类"""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


@dataclass
class Page(Generic[T]):
    """分页结果"""
    items: list[T] = field(default_factory=list)
    next_token: str | None = None


# ==================== 租户 ====================


class Tenant(ApiModel):
    tenant_id: str = Field(alias="TenantId")
    type: TenantType | str = Field(default=TenantType.USER, alias="Type")
    version: int = Field(default=0, alias="Version")
    deleted: bool = Field(default=False, alias="Deleted")
    created_at: datetime | None = Field(default=None, alias="CreatedAt")
    updated_at: datetime | None = Field(default=None, alias="UpdatedAt")
    full_name: str | None = Field(default=None, alias="FullName")
    org_name: str | None = Field(default=None, alias="OrgName")
    enterprise_name: str | None = Field(default=None, alias="EnterpriseName")
    email: str | None = Field(default=None, alias="Email")
    first_name: str | None = Field(default=None, alias="FirstName")
    last_name: str | None = Field(default=None, alias="LastName")
    picture_url: str | None = Field(default=None, alias="PictureUrl")


class WebUITokenThumbprint(ApiModel):
    tenant_id: str = Field(alias="TenantID")
    token_id: str = Field(alias="TokenID")
    created_at: datetime | None = Field(default=None, alias="CreatedAt")
    expires_at: datetime | None = Field(default=None, alias="ExpiresAt")
    revoked: bool = Field(default=False, alias="Revoked")
    signature_hash_base64: str = Field(default="", alias="SignatureHashBase64")


class GenerateWebUITokenResponse(ApiModel):
    jwt: str = Field(alias="JWT")


# ==================== 环境 ====================


class EnvVar(ApiModel):
    name: str = Field(alias="Name")
    value: str = Field(default="", alias="Value")
    is_secret: bool = Field(default=False, alias="IsSecret")


class Environment(ApiModel):
    tenant_id: str = Field(alias="TenantId")
    environment_id: str = Field(alias="EnvironmentId")
    name: str = Field(default="", alias="Name")
    description: str = Field(default="", alias="Description")
    context: str = Field(default="", alias="Context")
    repos: list[str] | None = Field(default=None, alias="Repos")
    setup_script: str = Field(default="", alias="SetupScript")
    docker_image: str = Field(default="", alias="DockerImage")
    allowed_hosts: list[str] | None = Field(default=None, alias="AllowedHosts")
    env_vars: list[EnvVar] | None = Field(default=None, alias="EnvVars")
    created_at: datetime | None = Field(default=None, alias="CreatedAt")
    updated_at: datetime | None = Field(default=None, alias="UpdatedAt")
    deleted: bool = Field(default=False, alias="Deleted")
    version: int = Field(default=0, alias="Version")
    runner_id: str | None = Field(default=None, alias="RunnerId")
    github_connection_id: str | None = Field(default=None, alias="GithubConnectionId")


# ==================== 任务与轮次 ====================


class RepoInfo(ApiModel):
    pr_link: str | None = Field(default=None, alias="PRLink")
    pr_id: str | None = Field(default=None, alias="PRID")
    pr_number: int | None = Field(default=None, alias="PRNumber")
    feature_branch: str = Field(default="", alias="FeatureBranch")
    target_branch: str = Field(default="", alias="TargetBranch")


class Task(ApiModel):
    tenant_id: str = Field(alias="TenantId")
    workstream_id: str | None = Field(default=None, alias="WorkstreamId")
    task_id: str = Field(alias="TaskId")
    title: str = Field(default="", alias="Title")
    environment_id: str = Field(default="", alias="EnvironmentId")
    prompt: str = Field(default="", alias="Prompt")
    after_task_id: str | None = Field(default=None, alias="AfterTaskId")
    parallel: bool = Field(default=False, alias="Parallel")
    model: ModelType | str = Field(default=ModelType.CODEX_MINI, alias="Model")
    assigned_to_tenant_id: str | None = Field(default=None, alias="AssignedToTenantId")
    assigned_to_ai: bool = Field(default=False, alias="AssignedToAI")
    repo_info: dict[str, RepoInfo | None] | None = Field(default=None, alias="RepoInfo")
    state: TaskState | str = Field(default=TaskState.PENDING, alias="State")
    created_at: datetime | None = Field(default=None, alias="CreatedAt")
    updated_at: datetime | None = Field(default=None, alias="UpdatedAt")
    deleted: bool = Field(default=False, alias="Deleted")
    version: int = Field(default=0, alias="Version")


class Turn(ApiModel):
    tenant_id: str = Field(alias="TenantId")
    task_id: str = Field(alias="TaskId")
    turn_index: int = Field(alias="TurnIndex")
    prompt: str = Field(default="", alias="Prompt")
    previous_response_id: str | None = Field(default=None, alias="PreviousResponseID")
    baseline_commit_hash: str | None = Field(default=None, alias="BaselineCommitHash")
    last_commit_hash: str | None = Field(default=None, alias="LastCommitHash")
    status: str = Field(default="", alias="Status")
    output_message: str | None = Field(default=None, alias="OutputMessage")
    error_message: str | None = Field(default=None, alias="ErrorMessage")
    created_at: datetime | None = Field(default=None, alias="CreatedAt")
    updated_at: datetime | None = Field(default=None, alias="UpdatedAt")
    version: int = Field(default=0, alias="Version")


class TurnLog(ApiModel):
    """轮次日志条目；index 由服务端分配，上传时不随条目发送"""

    index: int | None = Field(default=None, alias="Index")
    timestamp: datetime | None = Field(default=None, alias="Timestamp")
    message: str = Field(default="", alias="Message")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude={"index"}, exclude_none=True)


class LastTurnLog(TurnLog):
    index: int = Field(alias="Index")


class UploadTurnLogsResponse(ApiModel):
    version: int = Field(alias="Version")


# ==================== 工作流 ====================


class Workstream(ApiModel):
    workstream_id: str = Field(alias="WorkstreamId")
    tenant_id: str = Field(alias="TenantId")
    name: str = Field(default="", alias="Name")
    description: str = Field(default="", alias="Description")
    created_at: datetime | None = Field(default=None, alias="CreatedAt")
    updated_at: datetime | None = Field(default=None, alias="UpdatedAt")
    version: int = Field(default=0, alias="Version")
    paused: bool = Field(default=False, alias="Paused")
    deleted: bool = Field(default=False, alias="Deleted")
    default_short_name: str = Field(default="", alias="DefaultShortName")
    task_counter: int = Field(default=0, alias="TaskCounter")


class WorkstreamShortName(ApiModel):
    name: str = Field(alias="Name")
    workstream_id: str = Field(alias="WorkstreamID")
    workstream_version: int = Field(default=0, alias="WorkstreamVersion")


# ==================== Runner ====================


class Runner(ApiModel):
    tenant_id: str = Field(alias="TenantId")
    runner_id: str = Field(alias="RunnerId")
    name: str = Field(default="", alias="Name")
    description: str | None = Field(default=None, alias="Description")
    is_cloud: bool = Field(default=False, alias="IsCloud")
    runs_tasks: bool = Field(default=False, alias="RunsTasks")
    proxies_github: bool = Field(default=False, alias="ProxiesGithub")
    created_at: datetime | None = Field(default=None, alias="CreatedAt")
    updated_at: datetime | None = Field(default=None, alias="UpdatedAt")
    deleted: bool = Field(default=False, alias="Deleted")
    version: int = Field(default=0, alias="Version")


class RunnerTokenMetadata(ApiModel):
    tenant_id: str = Field(alias="TenantID")
    runner_id: str = Field(alias="RunnerID")
    token_id: str = Field(alias="TokenID")
    created_at: datetime | None = Field(default=None, alias="CreatedAt")
    expires_at: datetime | None = Field(default=None, alias="ExpiresAt")
    revoked_at: datetime | None = Field(default=None, alias="RevokedAt")
    revoked: bool = Field(default=False, alias="Revoked")
    version: int = Field(default=0, alias="Version")
    signature_hash: str = Field(default="", alias="SignatureHash")


class GenerateRunnerTokenResponse(RunnerTokenMetadata):
    token: str = Field(alias="Token")


# ==================== GitHub ====================


class GithubOrg(ApiModel):
    org_id: str = Field(alias="OrgID")
    org_name: str = Field(default="", alias="OrgName")
    external_org_id: int = Field(default=0, alias="ExternalOrgID")
    installation_id: int = Field(default=0, alias="InstallationID")
    created_at: datetime | None = Field(default=None, alias="CreatedAt")
    updated_at: datetime | None = Field(default=None, alias="UpdatedAt")
    version: int = Field(default=0, alias="Version")
    deleted: bool = Field(default=False, alias="Deleted")


class TenantGithubOrg(ApiModel):
    tenant_id: str = Field(alias="TenantID")
    org_id: str = Field(alias="OrgID")
    github_user_id: int = Field(default=0, alias="GithubUserID")
    github_username: str = Field(default="", alias="GithubUsername")
    oauth_token: str | None = Field(default=None, alias="OAuthToken")
    oauth_refresh_token: str | None = Field(default=None, alias="OAuthRefreshToken")
    expires_at: datetime | None = Field(default=None, alias="ExpiresAt")
    created_at: datetime | None = Field(default=None, alias="CreatedAt")
    updated_at: datetime | None = Field(default=None, alias="UpdatedAt")
    version: int = Field(default=0, alias="Version")
    deleted: bool = Field(default=False, alias="Deleted")


# ==================== 功能开关 ====================


class FeatureFlag(ApiModel):
    name: str = Field(alias="Name")
    description: str = Field(default="", alias="Description")
    default_pct: float = Field(default=0.0, alias="DefaultPct")
    created_at: datetime | None = Field(default=None, alias="CreatedAt")
    updated_at: datetime | None = Field(default=None, alias="UpdatedAt")
    version: int = Field(default=0, alias="Version")
    deleted: bool = Field(default=False, alias="Deleted")


class FeatureFlagOverride(ApiModel):
    flag_name: str = Field(alias="FlagName")
    tenant_id: str = Field(alias="TenantID")
    enabled: bool = Field(default=False, alias="Enabled")
    created_at: datetime | None = Field(default=None, alias="CreatedAt")
    updated_at: datetime | None = Field(default=None, alias="UpdatedAt")
    version: int = Field(default=0, alias="Version")
    deleted: bool = Field(default=False, alias="Deleted")
