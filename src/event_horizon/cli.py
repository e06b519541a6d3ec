"""命令行入口 eh-ctl

资源管理命令与日志流/日志上传命令。变更类命令从 --json 指定的文件
（默认 - 即标准输入）读取请求体，--help-json 打印请求体的 JSON Schema。
出错时向标准错误输出 ``ERROR: <信息>`` 并以退出码 1 结束。
"""

import argparse
import asyncio
import json
import sys
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, TextIO

from loguru import logger
from pydantic import BaseModel, ValidationError

from event_horizon import __version__
from event_horizon.api.environments import (
    CreateEnvironmentRequest,
    DeleteEnvironmentRequest,
    GetEnvironmentRequest,
    ListEnvironmentsRequest,
    UpdateEnvironmentRequest,
)
from event_horizon.api.feature_flags import (
    CreateFeatureFlagOverrideRequest,
    CreateFeatureFlagRequest,
    GetFeatureFlagRequest,
    ListFeatureFlagsRequest,
)
from event_horizon.api.github import (
    AddGithubOrgRequest,
    DeleteGithubOrgRequest,
    GetGithubOrgRequest,
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
    RevokeRunnerTokenRequest,
    UpdateRunnerRequest,
)
from event_horizon.api.tasks import (
    CreateTaskRequest,
    DeleteTaskRequest,
    GetTaskRequest,
    ListTasksRequest,
    UpdateTaskRequest,
)
from event_horizon.api.tenants import (
    CreateTenantRequest,
    GenerateWebUITokenRequest,
    GetCurrentUserRequest,
    GetTenantRequest,
    ListPoliciesRequest,
)
from event_horizon.api.turns import (
    CreateTurnRequest,
    GetLastTurnLogRequest,
    GetLastTurnRequest,
    GetTurnRequest,
    ListTurnsRequest,
    UpdateTurnRequest,
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
)
from event_horizon.client import Client
from event_horizon.concurrency import Channel
from event_horizon.config import ClientSettings, get_settings
from event_horizon.domain.enums import AuthorizationType, TenantType
from event_horizon.domain.models import ApiModel, TurnLog
from event_horizon.errors import (
    ChannelClosedError,
    ConflictError,
    EventHorizonError,
    NotFoundError,
)
from event_horizon.logging import setup_logging
from event_horizon.logs import LogStream, LogUploader
from event_horizon.transport.request import DelegatedAuth
from event_horizon.transport.versioned import update_with

UPLOAD_SHUTDOWN_TIMEOUT = 10.0
STREAM_SHUTDOWN_TIMEOUT = 2.0

Handler = Callable[[Client, argparse.Namespace, dict[str, Any]], Awaitable[Any]]


class CommandError(EventHorizonError):
    """命令行参数或输入错误"""

    def __init__(self, message: str):
        super().__init__(message, code="COMMAND_ERROR")


# ==================== 输入输出 ====================


def body_schema(model: type[BaseModel]) -> dict[str, Any]:
    """请求体的 JSON Schema（去掉路径、版本与请求头字段）"""
    schema = model.model_json_schema(by_alias=True)
    hidden = {
        info.alias or name for name, info in model.model_fields.items() if info.exclude
    }
    properties = schema.get("properties", {})
    for key in hidden:
        properties.pop(key, None)
    if "required" in schema:
        schema["required"] = [key for key in schema["required"] if key not in hidden]
        if not schema["required"]:
            del schema["required"]

    defs = schema.get("$defs", {})
    for name in ("DelegatedAuth", "AuthorizationType"):
        defs.pop(name, None)
    if "$defs" in schema and not defs:
        del schema["$defs"]
    return schema


class HelpJsonAction(argparse.Action):
    """打印请求体 JSON Schema 后退出"""

    def __init__(self, option_strings, dest, model: type[BaseModel], **kwargs):
        super().__init__(option_strings, dest, nargs=0, default=argparse.SUPPRESS, **kwargs)
        self.model = model

    def __call__(self, parser, namespace, values, option_string=None):
        print(json.dumps(body_schema(self.model), indent=2, ensure_ascii=False))
        parser.exit()


def read_json(path: str) -> dict[str, Any]:
    if path == "-":
        text = sys.stdin.read()
    else:
        with open(path, encoding="utf-8") as f:
            text = f.read()

    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise CommandError(f"invalid JSON input: {e}") from e
    if not isinstance(doc, dict):
        raise CommandError("JSON input must be an object")
    return doc


def print_json(value: Any) -> None:
    if isinstance(value, ApiModel):
        value = value.to_payload()
    elif isinstance(value, BaseModel):
        value = value.model_dump(mode="json", by_alias=True)
    print(json.dumps(value, indent=2, ensure_ascii=False))


async def print_all(items: AsyncIterator[Any]) -> None:
    async for item in items:
        print_json(item)


def print_error(error: BaseException) -> None:
    print(f"ERROR: {error}", file=sys.stderr)
    if isinstance(error, ConflictError) and error.current is not None:
        print(json.dumps(error.current.to_payload(), indent=2, ensure_ascii=False), file=sys.stderr)


def feature_flag(value: str) -> tuple[str, bool]:
    """解析 NAME=true|false"""
    name, sep, raw = value.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=true|false, got {value!r}")
    lowered = raw.strip().lower()
    if lowered not in ("true", "false"):
        raise argparse.ArgumentTypeError(f"feature flag {name} must be true or false")
    return name.strip(), lowered == "true"


def build(model: type[BaseModel], doc: dict[str, Any], **fields: Any) -> Any:
    """JSON 请求体与命令行上的路径参数合并为请求模型"""
    return model.model_validate({**doc, **fields})


# ==================== 租户 ====================


async def cmd_tenant_create_user(client: Client, args, opts) -> Any:
    req = CreateTenantRequest(
        tenant_id=str(uuid.uuid4()),
        type=TenantType.USER,
        full_name=args.full_name,
        first_name=args.first_name,
        last_name=args.last_name,
        email=args.email,
        picture_url=args.picture_url,
        **opts,
    )
    return await client.create_tenant(req)


async def cmd_tenant_get(client: Client, args, opts) -> Any:
    return await client.get_tenant(GetTenantRequest(tenant_id=args.tenant_id, **opts))


async def cmd_tenant_current_user(client: Client, args, opts) -> Any:
    return await client.get_current_user(GetCurrentUserRequest(**opts))


async def cmd_policies_list(client: Client, args, opts) -> None:
    req = ListPoliciesRequest(tenant_id=args.tenant_id, **opts)
    await print_all(client.paginate(client.list_policies, req))


async def cmd_ui_token_generate(client: Client, args, opts) -> Any:
    req = GenerateWebUITokenRequest(tenant_id=args.tenant_id, token_id=str(uuid.uuid4()), **opts)
    return await client.generate_web_ui_token(req)


# ==================== GitHub ====================


async def cmd_github_add_org(client: Client, args, opts) -> Any:
    req = AddGithubOrgRequest(
        org_id=str(uuid.uuid4()),
        org_name=args.org_name,
        external_org_id=args.external_org_id,
        installation_id=args.installation_id,
        **opts,
    )
    return await client.add_github_org(req)


async def cmd_github_list_orgs(client: Client, args, opts) -> None:
    req = ListGithubOrgsRequest(name=args.name, include_deleted=args.include_deleted, **opts)
    await print_all(client.paginate(client.list_github_orgs, req))


async def cmd_github_get_org(client: Client, args, opts) -> Any:
    req = GetGithubOrgRequest(org_id=args.org_id, include_deleted=args.include_deleted, **opts)
    return await client.get_github_org(req)


async def cmd_github_update_org(client: Client, args, opts) -> Any:
    doc = read_json(args.json)
    return await update_with(
        lambda: client.get_github_org(GetGithubOrgRequest(org_id=args.org_id, include_deleted=True, **opts)),
        lambda current: client.update_github_org(
            build(UpdateGithubOrgRequest, doc, org_id=args.org_id, version=current.version, **opts)
        ),
    )


async def cmd_github_delete_org(client: Client, args, opts) -> None:
    await update_with(
        lambda: client.get_github_org(GetGithubOrgRequest(org_id=args.org_id, include_deleted=True, **opts)),
        lambda current: client.delete_github_org(
            DeleteGithubOrgRequest(org_id=args.org_id, version=current.version, **opts)
        ),
    )


# ==================== 环境 ====================


async def cmd_environment_create(client: Client, args, opts) -> Any:
    req = build(
        CreateEnvironmentRequest,
        read_json(args.json),
        tenant_id=args.tenant_id,
        environment_id=str(uuid.uuid4()),
        **opts,
    )
    return await client.create_environment(req)


async def cmd_environment_get(client: Client, args, opts) -> Any:
    req = GetEnvironmentRequest(
        tenant_id=args.tenant_id,
        environment_id=args.environment_id,
        include_deleted=args.include_deleted,
        **opts,
    )
    return await client.get_environment(req)


def _get_environment(client: Client, args, opts) -> Callable[[], Awaitable[Any]]:
    return lambda: client.get_environment(
        GetEnvironmentRequest(
            tenant_id=args.tenant_id, environment_id=args.environment_id, include_deleted=True, **opts
        )
    )


async def cmd_environment_update(client: Client, args, opts) -> Any:
    doc = read_json(args.json)
    return await update_with(
        _get_environment(client, args, opts),
        lambda current: client.update_environment(
            build(
                UpdateEnvironmentRequest,
                doc,
                tenant_id=args.tenant_id,
                environment_id=args.environment_id,
                version=current.version,
                **opts,
            )
        ),
    )


async def cmd_environment_delete(client: Client, args, opts) -> None:
    await update_with(
        _get_environment(client, args, opts),
        lambda current: client.delete_environment(
            DeleteEnvironmentRequest(
                tenant_id=args.tenant_id,
                environment_id=args.environment_id,
                version=current.version,
                **opts,
            )
        ),
    )


async def cmd_environment_list(client: Client, args, opts) -> None:
    req = ListEnvironmentsRequest(tenant_id=args.tenant_id, include_deleted=args.include_deleted, **opts)
    await print_all(client.paginate(client.list_environments, req))


# ==================== 任务 ====================


async def cmd_task_create(client: Client, args, opts) -> Any:
    req = build(
        CreateTaskRequest,
        read_json(args.json),
        tenant_id=args.tenant_id,
        task_id=str(uuid.uuid4()),
        **opts,
    )
    return await client.create_task(req)


async def cmd_task_get(client: Client, args, opts) -> Any:
    req = GetTaskRequest(
        tenant_id=args.tenant_id, task_id=args.task_id, include_deleted=args.include_deleted, **opts
    )
    return await client.get_task(req)


def _get_task(client: Client, args, opts) -> Callable[[], Awaitable[Any]]:
    return lambda: client.get_task(
        GetTaskRequest(tenant_id=args.tenant_id, task_id=args.task_id, include_deleted=True, **opts)
    )


async def cmd_task_update(client: Client, args, opts) -> Any:
    doc = read_json(args.json)
    return await update_with(
        _get_task(client, args, opts),
        lambda current: client.update_task(
            build(
                UpdateTaskRequest,
                doc,
                tenant_id=args.tenant_id,
                task_id=args.task_id,
                version=current.version,
                **opts,
            )
        ),
    )


async def cmd_task_delete(client: Client, args, opts) -> None:
    await update_with(
        _get_task(client, args, opts),
        lambda current: client.delete_task(
            DeleteTaskRequest(
                tenant_id=args.tenant_id, task_id=args.task_id, version=current.version, **opts
            )
        ),
    )


async def cmd_task_list(client: Client, args, opts) -> None:
    req = ListTasksRequest(tenant_id=args.tenant_id, include_deleted=args.include_deleted, **opts)
    await print_all(client.paginate(client.list_tasks, req))


# ==================== 轮次 ====================


async def cmd_turn_create(client: Client, args, opts) -> Any:
    """新轮次的序号为最后一轮 + 1，前置条件为任务版本"""
    doc = read_json(args.json)
    task = await client.get_task(GetTaskRequest(tenant_id=args.tenant_id, task_id=args.task_id, **opts))
    last = await client.get_last_turn(
        GetLastTurnRequest(tenant_id=args.tenant_id, task_id=args.task_id, **opts)
    )
    req = build(
        CreateTurnRequest,
        doc,
        tenant_id=args.tenant_id,
        task_id=args.task_id,
        turn_index=last.turn_index + 1,
        task_version=task.version,
        **opts,
    )
    return await client.create_turn(req)


async def cmd_turn_get(client: Client, args, opts) -> Any:
    req = GetTurnRequest(
        tenant_id=args.tenant_id,
        task_id=args.task_id,
        turn_index=args.turn_index,
        include_deleted=args.include_deleted,
        **opts,
    )
    return await client.get_turn(req)


async def cmd_turn_get_last(client: Client, args, opts) -> Any:
    req = GetLastTurnRequest(
        tenant_id=args.tenant_id, task_id=args.task_id, include_deleted=args.include_deleted, **opts
    )
    return await client.get_last_turn(req)


async def cmd_turn_update(client: Client, args, opts) -> Any:
    doc = read_json(args.json)
    return await update_with(
        lambda: client.get_turn(
            GetTurnRequest(
                tenant_id=args.tenant_id,
                task_id=args.task_id,
                turn_index=args.turn_index,
                include_deleted=True,
                **opts,
            )
        ),
        lambda current: client.update_turn(
            build(
                UpdateTurnRequest,
                doc,
                tenant_id=args.tenant_id,
                task_id=args.task_id,
                turn_index=args.turn_index,
                version=current.version,
                **opts,
            )
        ),
    )


async def cmd_turn_list(client: Client, args, opts) -> None:
    req = ListTurnsRequest(
        tenant_id=args.tenant_id, task_id=args.task_id, include_deleted=args.include_deleted, **opts
    )
    await print_all(client.paginate(client.list_turns, req))


# ==================== 工作流 ====================


async def cmd_workstream_create(client: Client, args, opts) -> Any:
    req = build(
        CreateWorkstreamRequest,
        read_json(args.json),
        tenant_id=args.tenant_id,
        workstream_id=str(uuid.uuid4()),
        **opts,
    )
    return await client.create_workstream(req)


async def cmd_workstream_get(client: Client, args, opts) -> Any:
    req = GetWorkstreamRequest(
        tenant_id=args.tenant_id,
        workstream_id=args.workstream_id,
        include_deleted=args.include_deleted,
        **opts,
    )
    return await client.get_workstream(req)


def _get_workstream(client: Client, args, opts) -> Callable[[], Awaitable[Any]]:
    return lambda: client.get_workstream(
        GetWorkstreamRequest(
            tenant_id=args.tenant_id, workstream_id=args.workstream_id, include_deleted=True, **opts
        )
    )


async def cmd_workstream_update(client: Client, args, opts) -> Any:
    doc = read_json(args.json)
    return await update_with(
        _get_workstream(client, args, opts),
        lambda current: client.update_workstream(
            build(
                UpdateWorkstreamRequest,
                doc,
                tenant_id=args.tenant_id,
                workstream_id=args.workstream_id,
                version=current.version,
                **opts,
            )
        ),
    )


async def cmd_workstream_delete(client: Client, args, opts) -> None:
    await update_with(
        _get_workstream(client, args, opts),
        lambda current: client.delete_workstream(
            DeleteWorkstreamRequest(
                tenant_id=args.tenant_id,
                workstream_id=args.workstream_id,
                version=current.version,
                **opts,
            )
        ),
    )


async def cmd_workstream_list(client: Client, args, opts) -> None:
    req = ListWorkstreamsRequest(
        tenant_id=args.tenant_id,
        short_name=args.short_name,
        include_deleted=args.include_deleted,
        **opts,
    )
    await print_all(client.paginate(client.list_workstreams, req))


async def cmd_workstream_add_short_name(client: Client, args, opts) -> None:
    await update_with(
        _get_workstream(client, args, opts),
        lambda current: client.add_workstream_short_name(
            AddWorkstreamShortNameRequest(
                tenant_id=args.tenant_id,
                workstream_id=args.workstream_id,
                name=args.name,
                workstream_version=current.version,
                **opts,
            )
        ),
    )


async def cmd_workstream_delete_short_name(client: Client, args, opts) -> None:
    await update_with(
        _get_workstream(client, args, opts),
        lambda current: client.delete_workstream_short_name(
            DeleteWorkstreamShortNameRequest(
                tenant_id=args.tenant_id,
                workstream_id=args.workstream_id,
                name=args.name,
                version=current.version,
                **opts,
            )
        ),
    )


async def cmd_workstream_list_short_names(client: Client, args, opts) -> None:
    req = ListWorkstreamShortNamesRequest(
        tenant_id=args.tenant_id, workstream_id=args.workstream_id, **opts
    )
    await print_all(client.paginate(client.list_workstream_short_names, req))


# ==================== Runner ====================


async def cmd_runner_create(client: Client, args, opts) -> Any:
    req = build(
        CreateRunnerRequest,
        read_json(args.json),
        tenant_id=args.tenant_id,
        runner_id=str(uuid.uuid4()),
        **opts,
    )
    return await client.create_runner(req)


async def cmd_runner_get(client: Client, args, opts) -> Any:
    req = GetRunnerRequest(
        tenant_id=args.tenant_id, runner_id=args.runner_id, include_deleted=args.include_deleted, **opts
    )
    return await client.get_runner(req)


def _get_runner(client: Client, args, opts) -> Callable[[], Awaitable[Any]]:
    return lambda: client.get_runner(
        GetRunnerRequest(tenant_id=args.tenant_id, runner_id=args.runner_id, include_deleted=True, **opts)
    )


async def cmd_runner_update(client: Client, args, opts) -> Any:
    doc = read_json(args.json)
    return await update_with(
        _get_runner(client, args, opts),
        lambda current: client.update_runner(
            build(
                UpdateRunnerRequest,
                doc,
                tenant_id=args.tenant_id,
                runner_id=args.runner_id,
                version=current.version,
                **opts,
            )
        ),
    )


async def cmd_runner_delete(client: Client, args, opts) -> None:
    await update_with(
        _get_runner(client, args, opts),
        lambda current: client.delete_runner(
            DeleteRunnerRequest(
                tenant_id=args.tenant_id, runner_id=args.runner_id, version=current.version, **opts
            )
        ),
    )


async def cmd_runner_list(client: Client, args, opts) -> None:
    req = ListRunnersRequest(
        tenant_id=args.tenant_id,
        runs_tasks=args.runs_tasks,
        proxies_github=args.proxies_github,
        include_deleted=args.include_deleted,
        **opts,
    )
    await print_all(client.paginate(client.list_runners, req))


async def cmd_runner_generate_token(client: Client, args, opts) -> Any:
    req = GenerateRunnerTokenRequest(
        tenant_id=args.tenant_id,
        runner_id=args.runner_id,
        token_id=str(uuid.uuid4()),
        ttl_days=args.ttl_days,
        **opts,
    )
    return await client.generate_runner_token(req)


async def cmd_runner_revoke_token(client: Client, args, opts) -> None:
    await update_with(
        lambda: client.get_runner_token(
            GetRunnerTokenRequest(
                tenant_id=args.tenant_id,
                runner_id=args.runner_id,
                token_id=args.token_id,
                include_deleted=True,
                **opts,
            )
        ),
        lambda current: client.revoke_runner_token(
            RevokeRunnerTokenRequest(
                tenant_id=args.tenant_id,
                runner_id=args.runner_id,
                token_id=args.token_id,
                version=current.version,
                **opts,
            )
        ),
    )
    print(f"Token {args.token_id} revoked.")


# ==================== 功能开关 ====================


async def cmd_feature_flag_create(client: Client, args, opts) -> Any:
    req = CreateFeatureFlagRequest(
        flag_name=args.name,
        description=args.description,
        default_pct=args.percentage,
        **opts,
    )
    return await client.create_feature_flag(req)


async def cmd_feature_flag_get(client: Client, args, opts) -> Any:
    req = GetFeatureFlagRequest(flag_name=args.name, include_deleted=args.include_deleted, **opts)
    return await client.get_feature_flag(req)


async def cmd_feature_flag_list(client: Client, args, opts) -> None:
    req = ListFeatureFlagsRequest(include_deleted=args.include_deleted, **opts)
    await print_all(client.paginate(client.list_feature_flags, req))


async def cmd_feature_flag_override(client: Client, args, opts) -> Any:
    req = CreateFeatureFlagOverrideRequest(
        tenant_id=args.tenant_id, flag_name=args.name, enabled=args.enabled, **opts
    )
    return await client.create_feature_flag_override(req)


# ==================== 日志 ====================


async def cmd_logs_stream(client: Client, args, opts) -> None:
    stream = LogStream(
        client,
        args.tenant_id,
        args.task_id,
        args.turn_index,
        client.settings.STREAM_BUFFER,
        include_deleted=args.include_deleted,
        last_id=args.last_id,
        **opts,
    )
    try:
        async for log in stream.logs():
            print(json.dumps(log.to_payload(), ensure_ascii=False, separators=(",", ":")), flush=True)
        await stream.shutdown_timeout(STREAM_SHUTDOWN_TIMEOUT)
    finally:
        await stream.close()

    if stream.error is not None:
        raise stream.error


async def _feed_logs(source: TextIO, logs: Channel[TurnLog]) -> int:
    count = 0
    while True:
        line = await asyncio.to_thread(source.readline)
        if not line:
            return count
        if not line.strip():
            continue
        await logs.send(TurnLog.model_validate_json(line))
        count += 1


async def cmd_logs_upload(client: Client, args, opts) -> None:
    """读取 JSON Lines 日志并上传，起始序号接在服务端最后一条日志之后"""
    source = sys.stdin if args.json == "-" else open(args.json, encoding="utf-8")
    try:
        await _upload_logs(client, args, opts, source)
    finally:
        if source is not sys.stdin:
            source.close()


async def _upload_logs(client: Client, args, opts, source: TextIO) -> None:
    turn = await client.get_turn(
        GetTurnRequest(
            tenant_id=args.tenant_id, task_id=args.task_id, turn_index=args.turn_index, **opts
        )
    )
    try:
        last = await client.get_last_turn_log(
            GetLastTurnLogRequest(
                tenant_id=args.tenant_id, task_id=args.task_id, turn_index=args.turn_index, **opts
            )
        )
        start_index = last.index + 1
    except NotFoundError:
        start_index = 1

    logs: Channel[TurnLog] = Channel(client.settings.STREAM_BUFFER)
    uploader = LogUploader(
        client,
        args.tenant_id,
        args.task_id,
        args.turn_index,
        turn.version,
        start_index,
        logs,
        max_upload_attempts=client.settings.UPLOAD_MAX_ATTEMPTS,
        **opts,
    )

    try:
        count = await _feed_logs(source, logs)
        logger.info("已读取 {} 条日志，等待上传完成", count)
    except ChannelClosedError:
        # 上传器已终止，错误由 shutdown_timeout 抛出
        pass
    except BaseException:
        await uploader.close()
        raise

    logs.close()
    await uploader.shutdown_timeout(UPLOAD_SHUTDOWN_TIMEOUT)


# ==================== 参数解析 ====================


def _tenant_arg(parser: argparse.ArgumentParser, help_text: str = "租户 ID") -> None:
    parser.add_argument("-i", "--tenant-id", required=True, help=help_text)


def _include_deleted_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-d", "--include-deleted", action="store_true", help="包含已删除的资源")


def _json_arg(parser: argparse.ArgumentParser, model: type[BaseModel]) -> None:
    parser.add_argument("-j", "--json", default="-", help="请求体 JSON 文件，- 表示标准输入")
    parser.add_argument("--help-json", action=HelpJsonAction, model=model, help="打印请求体 JSON Schema")


def _command(
    group: argparse._SubParsersAction,
    name: str,
    handler: Handler,
    help_text: str,
) -> argparse.ArgumentParser:
    parser = group.add_parser(name, help=help_text)
    parser.set_defaults(handler=handler)
    return parser


def _add_tenant_commands(subparsers: argparse._SubParsersAction) -> None:
    tenant = subparsers.add_parser("tenant", help="租户").add_subparsers(dest="action", required=True)

    p = _command(tenant, "create-user", cmd_tenant_create_user, "创建个人租户")
    p.add_argument("-n", "--full-name", required=True)
    p.add_argument("-f", "--first-name", required=True)
    p.add_argument("-l", "--last-name", required=True)
    p.add_argument("-e", "--email", required=True)
    p.add_argument("-p", "--picture-url")

    p = _command(tenant, "get", cmd_tenant_get, "查询租户")
    _tenant_arg(p)

    _command(tenant, "current-user", cmd_tenant_current_user, "查询当前用户")

    policies = subparsers.add_parser("policies", help="策略").add_subparsers(dest="action", required=True)
    p = _command(policies, "list", cmd_policies_list, "列出租户策略")
    _tenant_arg(p)

    ui_token = subparsers.add_parser("ui-token", help="Web UI 令牌").add_subparsers(
        dest="action", required=True
    )
    p = _command(ui_token, "generate", cmd_ui_token_generate, "生成 Web UI 令牌")
    _tenant_arg(p)


def _add_github_commands(subparsers: argparse._SubParsersAction) -> None:
    github = subparsers.add_parser("github", help="GitHub 组织").add_subparsers(dest="action", required=True)

    p = _command(github, "add-org", cmd_github_add_org, "添加 GitHub 组织")
    p.add_argument("-n", "--org-name", required=True)
    p.add_argument("-e", "--external-org-id", type=int, required=True)
    p.add_argument("-I", "--installation-id", type=int, required=True)

    p = _command(github, "list-orgs", cmd_github_list_orgs, "列出 GitHub 组织")
    p.add_argument("-n", "--name", help="只返回名称匹配的组织")
    _include_deleted_arg(p)

    p = _command(github, "get-org", cmd_github_get_org, "查询 GitHub 组织")
    p.add_argument("-O", "--org-id", required=True)
    _include_deleted_arg(p)

    p = _command(github, "update-org", cmd_github_update_org, "更新 GitHub 组织")
    p.add_argument("-O", "--org-id", required=True)
    _json_arg(p, UpdateGithubOrgRequest)

    p = _command(github, "delete-org", cmd_github_delete_org, "删除 GitHub 组织")
    p.add_argument("-O", "--org-id", required=True)


def _add_crud_commands(
    subparsers: argparse._SubParsersAction,
    resource: str,
    help_text: str,
    id_flags: tuple[str, str],
    handlers: dict[str, Handler],
    models: dict[str, type[BaseModel]],
) -> argparse._SubParsersAction:
    """create/get/update/delete/list 五个子命令"""
    group = subparsers.add_parser(resource, help=help_text).add_subparsers(dest="action", required=True)

    p = _command(group, "create", handlers["create"], f"创建{help_text}")
    _tenant_arg(p)
    _json_arg(p, models["create"])

    p = _command(group, "get", handlers["get"], f"查询{help_text}")
    _tenant_arg(p)
    p.add_argument(*id_flags, required=True)
    _include_deleted_arg(p)

    p = _command(group, "update", handlers["update"], f"更新{help_text}")
    _tenant_arg(p)
    p.add_argument(*id_flags, required=True)
    _json_arg(p, models["update"])

    p = _command(group, "delete", handlers["delete"], f"删除{help_text}")
    _tenant_arg(p)
    p.add_argument(*id_flags, required=True)

    p = _command(group, "list", handlers["list"], f"列出{help_text}")
    _tenant_arg(p)
    _include_deleted_arg(p)
    return group


def _add_resource_commands(subparsers: argparse._SubParsersAction) -> None:
    _add_crud_commands(
        subparsers,
        "environment",
        "环境",
        ("-e", "--environment-id"),
        {
            "create": cmd_environment_create,
            "get": cmd_environment_get,
            "update": cmd_environment_update,
            "delete": cmd_environment_delete,
            "list": cmd_environment_list,
        },
        {"create": CreateEnvironmentRequest, "update": UpdateEnvironmentRequest},
    )

    _add_crud_commands(
        subparsers,
        "task",
        "任务",
        ("-t", "--task-id"),
        {
            "create": cmd_task_create,
            "get": cmd_task_get,
            "update": cmd_task_update,
            "delete": cmd_task_delete,
            "list": cmd_task_list,
        },
        {"create": CreateTaskRequest, "update": UpdateTaskRequest},
    )

    workstream = _add_crud_commands(
        subparsers,
        "workstream",
        "工作流",
        ("-w", "--workstream-id"),
        {
            "create": cmd_workstream_create,
            "get": cmd_workstream_get,
            "update": cmd_workstream_update,
            "delete": cmd_workstream_delete,
            "list": cmd_workstream_list,
        },
        {"create": CreateWorkstreamRequest, "update": UpdateWorkstreamRequest},
    )
    workstream.choices["list"].add_argument("-s", "--short-name", help="按短名称过滤")

    p = _command(workstream, "add-short-name", cmd_workstream_add_short_name, "添加短名称")
    _tenant_arg(p)
    p.add_argument("-w", "--workstream-id", required=True)
    p.add_argument("-n", "--name", required=True)

    p = _command(workstream, "delete-short-name", cmd_workstream_delete_short_name, "删除短名称")
    _tenant_arg(p)
    p.add_argument("-w", "--workstream-id", required=True)
    p.add_argument("-n", "--name", required=True)

    p = _command(workstream, "list-short-names", cmd_workstream_list_short_names, "列出短名称")
    _tenant_arg(p)
    p.add_argument("-w", "--workstream-id", help="只列出该工作流的短名称")

    runner = _add_crud_commands(
        subparsers,
        "runner",
        "Runner",
        ("-r", "--runner-id"),
        {
            "create": cmd_runner_create,
            "get": cmd_runner_get,
            "update": cmd_runner_update,
            "delete": cmd_runner_delete,
            "list": cmd_runner_list,
        },
        {"create": CreateRunnerRequest, "update": UpdateRunnerRequest},
    )
    runner_list = runner.choices["list"]
    runner_list.add_argument("--runs-tasks", action=argparse.BooleanOptionalAction, default=None)
    runner_list.add_argument("--proxies-github", action=argparse.BooleanOptionalAction, default=None)

    p = _command(runner, "generate-token", cmd_runner_generate_token, "生成 Runner 令牌")
    _tenant_arg(p)
    p.add_argument("-r", "--runner-id", required=True)
    p.add_argument("--ttl-days", type=int, help="令牌有效天数 (1-365)，默认 90 天")

    p = _command(runner, "revoke-token", cmd_runner_revoke_token, "吊销 Runner 令牌")
    _tenant_arg(p)
    p.add_argument("-r", "--runner-id", required=True)
    p.add_argument("-k", "--token-id", required=True)


def _add_turn_commands(subparsers: argparse._SubParsersAction) -> None:
    turn = subparsers.add_parser("turn", help="轮次").add_subparsers(dest="action", required=True)

    p = _command(turn, "create", cmd_turn_create, "创建新一轮")
    _tenant_arg(p)
    p.add_argument("-t", "--task-id", required=True)
    _json_arg(p, CreateTurnRequest)

    p = _command(turn, "get", cmd_turn_get, "查询轮次")
    _tenant_arg(p)
    p.add_argument("-t", "--task-id", required=True)
    p.add_argument("-n", "--turn-index", type=int, required=True)
    _include_deleted_arg(p)

    p = _command(turn, "get-last", cmd_turn_get_last, "查询最后一轮")
    _tenant_arg(p)
    p.add_argument("-t", "--task-id", required=True)
    _include_deleted_arg(p)

    p = _command(turn, "update", cmd_turn_update, "更新轮次")
    _tenant_arg(p)
    p.add_argument("-t", "--task-id", required=True)
    p.add_argument("-n", "--turn-index", type=int, required=True)
    _json_arg(p, UpdateTurnRequest)

    p = _command(turn, "list", cmd_turn_list, "列出轮次")
    _tenant_arg(p)
    p.add_argument("-t", "--task-id", required=True)
    _include_deleted_arg(p)


def _add_feature_flag_commands(subparsers: argparse._SubParsersAction) -> None:
    flags = subparsers.add_parser("feature-flag", help="功能开关").add_subparsers(
        dest="action", required=True
    )

    p = _command(flags, "create", cmd_feature_flag_create, "创建功能开关")
    p.add_argument("-n", "--name", required=True)
    p.add_argument("--description", default="")
    p.add_argument("-p", "--percentage", type=float, default=0.0, help="默认开启比例")

    p = _command(flags, "get", cmd_feature_flag_get, "查询功能开关")
    p.add_argument("-n", "--name", required=True)
    _include_deleted_arg(p)

    p = _command(flags, "list", cmd_feature_flag_list, "列出功能开关")
    _include_deleted_arg(p)

    p = _command(flags, "override", cmd_feature_flag_override, "设置租户级覆盖")
    _tenant_arg(p)
    p.add_argument("-n", "--name", required=True)
    p.add_argument("--enabled", action=argparse.BooleanOptionalAction, required=True)


def _add_logs_commands(subparsers: argparse._SubParsersAction) -> None:
    logs = subparsers.add_parser("logs", help="轮次日志").add_subparsers(dest="action", required=True)

    p = _command(logs, "stream", cmd_logs_stream, "实时输出轮次日志 (JSON Lines)")
    _tenant_arg(p)
    p.add_argument("-t", "--task-id", required=True)
    p.add_argument("-n", "--turn-index", type=int, required=True)
    p.add_argument("--last-id", type=int, default=0, help="从该事件 ID 之后续传")
    _include_deleted_arg(p)

    p = _command(logs, "upload", cmd_logs_upload, "上传 JSON Lines 格式的日志")
    _tenant_arg(p)
    p.add_argument("-t", "--task-id", required=True)
    p.add_argument("-n", "--turn-index", type=int, required=True)
    p.add_argument("-j", "--json", default="-", help="日志文件，- 表示标准输入")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eh-ctl",
        description=f"Event Horizon 命令行工具 v{__version__}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
使用方式:
  eh-ctl tenant current-user
  eh-ctl task create -i <tenant> --json task.json
  eh-ctl task update -i <tenant> -t <task> --help-json
  eh-ctl logs stream -i <tenant> -t <task> -n 1

环境变量 (前缀 EH_): ENDPOINT, DEV, LOCAL, INSECURE, TOKEN, LOG_LEVEL ...
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--endpoint", help="覆盖 API 地址")
    parser.add_argument("--insecure", action="store_true", help="不校验服务端证书")
    presets = parser.add_mutually_exclusive_group()
    presets.add_argument("--dev", action="store_true", help="使用开发环境地址")
    presets.add_argument("--local", action="store_true", help="使用 https://localhost:7443 且不校验证书")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"],
        help="日志级别，默认读取 EH_LOG_LEVEL",
    )
    parser.add_argument(
        "--delegated-auth-type",
        choices=[t.value for t in AuthorizationType],
        help="委托鉴权类型",
    )
    parser.add_argument("--delegated-token", help="委托鉴权 JWT")
    parser.add_argument(
        "--feature-flag",
        dest="feature_flags",
        action="append",
        type=feature_flag,
        default=[],
        metavar="NAME=BOOL",
        help="功能开关覆盖，可重复",
    )

    subparsers = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")
    _add_tenant_commands(subparsers)
    _add_github_commands(subparsers)
    _add_resource_commands(subparsers)
    _add_turn_commands(subparsers)
    _add_feature_flag_commands(subparsers)
    _add_logs_commands(subparsers)
    return parser


def settings_from_args(args: argparse.Namespace, base: ClientSettings | None = None) -> ClientSettings:
    """命令行参数覆盖环境变量配置"""
    base = base or get_settings()
    update: dict[str, Any] = {}
    if args.endpoint:
        update["ENDPOINT"] = args.endpoint
    if args.insecure:
        update["INSECURE"] = True
    if args.dev:
        update.update(DEV=True, LOCAL=False)
    if args.local:
        update.update(LOCAL=True, DEV=False)
    if args.log_level:
        update["LOG_LEVEL"] = args.log_level
    return base.model_copy(update=update)


def request_options(args: argparse.Namespace) -> dict[str, Any]:
    """所有请求共享的功能开关与委托鉴权"""
    delegated_auth = None
    if args.delegated_auth_type:
        delegated_auth = DelegatedAuth(auth_type=args.delegated_auth_type, jwt=args.delegated_token)
    return {
        "feature_flags": dict(args.feature_flags) or None,
        "delegated_auth": delegated_auth,
    }


async def dispatch(
    args: argparse.Namespace,
    settings: ClientSettings,
    transport=None,
) -> int:
    async with Client(settings=settings, transport=transport) as client:
        try:
            result = await args.handler(client, args, request_options(args))
        except (EventHorizonError, ValidationError, OSError) as e:
            logger.debug("命令执行失败: {!r}", e)
            print_error(e)
            return 1

    if result is not None:
        print_json(result)
    return 0


def main(argv: list[str] | None = None, *, transport=None) -> int:
    """主入口，返回进程退出码"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if bool(args.delegated_auth_type) != bool(args.delegated_token):
        parser.error("--delegated-auth-type and --delegated-token must be used together")

    settings = settings_from_args(args)
    setup_logging(level=settings.LOG_LEVEL)

    try:
        return asyncio.run(dispatch(args, settings, transport))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
