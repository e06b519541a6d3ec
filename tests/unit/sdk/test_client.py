"""
API 客户端测试

测试路由、请求头、路径转义、状态码映射、分页与乐观并发辅助。
"""

import json

import httpx
import pytest

from event_horizon.api import (
    AddWorkstreamShortNameRequest,
    CreateTaskRequest,
    CreateTenantRequest,
    CreateTurnRequest,
    DeleteEnvironmentRequest,
    GenerateRunnerTokenRequest,
    GetEnvironmentRequest,
    GetLastTurnLogRequest,
    GetTaskRequest,
    ListGithubOrgsRequest,
    ListRunnerTokensRequest,
    ListRunnersRequest,
    ListTasksRequest,
    ListWorkstreamShortNamesRequest,
    RevokeRunnerTokenRequest,
    UpdateEnvironmentRequest,
    UpdateTaskRequest,
)
from event_horizon.domain.enums import TenantType
from event_horizon.errors import (
    ApiError,
    ConflictError,
    DecodingError,
    NotFoundError,
    TransportError,
)
from event_horizon.transport import BearerAuth, DelegatedAuth, escape_path, update_with

TASK = {"TenantId": "t1", "TaskId": "task1", "Title": "fix bug", "Version": 3}
ENVIRONMENT = {"TenantId": "t1", "EnvironmentId": "e1", "Name": "dev", "Version": 5}


class Recorder:
    """记录请求并返回固定响应"""

    def __init__(self, status: int = 200, payload=None, responses=None):
        self.status = status
        self.payload = payload
        self.responses = list(responses or [])
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.responses:
            return self.responses.pop(0)
        if self.payload is None:
            return httpx.Response(self.status)
        return httpx.Response(self.status, json=self.payload)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def body(self, i: int = -1):
        return json.loads(self.requests[i].content)


class TestEscapePath:
    """路径转义测试"""

    def test_segments_escaped(self):
        """测试保留字符被百分号编码"""
        assert escape_path("v1", "tenants", "a/b", "c%d", "e f?") == "/v1/tenants/a%2Fb/c%25d/e%20f%3F"

    def test_int_segment(self):
        """测试整数段"""
        assert escape_path("turns", 3) == "/turns/3"

    def test_empty_segment_rejected(self):
        """测试空段报错"""
        with pytest.raises(ValueError):
            escape_path("v1", "")

    @pytest.mark.asyncio
    async def test_ids_escaped_on_wire(self, make_client):
        """测试请求路径中的标识符只以编码形式出现"""
        recorder = Recorder(payload=TASK)
        async with make_client(recorder) as client:
            await client.get_task(GetTaskRequest(tenant_id="ten/ant", task_id="ta%sk#1"))

        raw_path = recorder.last.url.raw_path.decode()
        assert raw_path == "/v1/tenants/ten%2Fant/tasks/ta%25sk%231"


class TestRequests:
    """请求格式测试"""

    @pytest.mark.asyncio
    async def test_create_task(self, make_client):
        """测试创建任务：PUT、201、请求体只含已设置字段"""
        recorder = Recorder(status=201, payload=TASK)
        async with make_client(recorder) as client:
            task = await client.create_task(
                CreateTaskRequest(tenant_id="t1", task_id="task1", title="fix bug", parallel=False)
            )

        assert task.task_id == "task1"
        assert task.version == 3
        request = recorder.last
        assert request.method == "PUT"
        assert request.url.path == "/v1/tenants/t1/tasks/task1"
        assert request.headers["Accept"] == "application/json"
        assert request.headers["Content-Type"] == "application/json"
        assert "If-Match" not in request.headers
        assert recorder.body() == {"Title": "fix bug", "Parallel": False}

    @pytest.mark.asyncio
    async def test_create_wrong_status(self, make_client):
        """测试创建接口返回非 201 视为错误"""
        recorder = Recorder(status=200, payload=TASK)
        async with make_client(recorder) as client:
            with pytest.raises(ApiError):
                await client.create_task(CreateTaskRequest(tenant_id="t1", task_id="task1", title="x"))

    @pytest.mark.asyncio
    async def test_update_sends_if_match_and_nulls(self, make_client):
        """测试更新：If-Match 版本号，显式 None 发送为 null，未设置字段省略"""
        recorder = Recorder(payload={**ENVIRONMENT, "Version": 6})
        async with make_client(recorder) as client:
            env = await client.update_environment(
                UpdateEnvironmentRequest(
                    tenant_id="t1", environment_id="e1", version=5, name="prod", runner_id=None
                )
            )

        assert env.version == 6
        request = recorder.last
        assert request.method == "PATCH"
        assert request.headers["If-Match"] == "5"
        assert recorder.body() == {"Name": "prod", "RunnerId": None}

    @pytest.mark.asyncio
    async def test_delete_no_content(self, make_client):
        """测试删除返回 204"""
        recorder = Recorder(status=204)
        async with make_client(recorder) as client:
            result = await client.delete_environment(
                DeleteEnvironmentRequest(tenant_id="t1", environment_id="e1", version=5)
            )

        assert result is None
        assert recorder.last.method == "DELETE"
        assert recorder.last.headers["If-Match"] == "5"
        assert recorder.last.content == b""

    @pytest.mark.asyncio
    async def test_create_turn_uses_task_version(self, make_client):
        """测试创建轮次以任务版本作为前置条件"""
        recorder = Recorder(status=201, payload={"TenantId": "t1", "TaskId": "task1", "TurnIndex": 2})
        async with make_client(recorder) as client:
            turn = await client.create_turn(
                CreateTurnRequest(tenant_id="t1", task_id="task1", turn_index=2, task_version=3, prompt="go")
            )

        assert turn.turn_index == 2
        assert recorder.last.method == "PUT"
        assert recorder.last.url.path == "/v1/tenants/t1/tasks/task1/turns/2"
        assert recorder.last.headers["If-Match"] == "3"
        assert recorder.body() == {"Prompt": "go"}

    @pytest.mark.asyncio
    async def test_create_tenant(self, make_client):
        """测试创建租户"""
        recorder = Recorder(status=201, payload={"TenantId": "t1", "Type": "User"})
        async with make_client(recorder) as client:
            tenant = await client.create_tenant(
                CreateTenantRequest(tenant_id="t1", type=TenantType.USER, email="a@b.c")
            )

        assert tenant.type == TenantType.USER
        assert recorder.body() == {"Type": "User", "Email": "a@b.c"}

    @pytest.mark.asyncio
    async def test_get_include_deleted(self, make_client):
        """测试 includeDeleted 查询参数"""
        recorder = Recorder(payload=ENVIRONMENT)
        async with make_client(recorder) as client:
            await client.get_environment(GetEnvironmentRequest(tenant_id="t1", environment_id="e1"))
            await client.get_environment(
                GetEnvironmentRequest(tenant_id="t1", environment_id="e1", include_deleted=True)
            )

        assert "includeDeleted" not in recorder.requests[0].url.params
        assert recorder.requests[1].url.params["includeDeleted"] == "true"

    @pytest.mark.asyncio
    async def test_feature_flags_and_delegated_auth(self, make_client):
        """测试功能开关与委托鉴权请求头"""
        recorder = Recorder(payload=TASK)
        async with make_client(recorder, auth=BearerAuth("secret-token")) as client:
            await client.get_task(GetTaskRequest(tenant_id="t1", task_id="task1"))
            await client.get_task(
                GetTaskRequest(
                    tenant_id="t1",
                    task_id="task1",
                    feature_flags={"zeta": True, "alpha": False},
                    delegated_auth=DelegatedAuth(auth_type="WebUIToken", jwt="abc"),
                )
            )

        plain, flagged = recorder.requests
        assert plain.headers["Authorization"] == "Bearer secret-token"
        assert "X-EventHorizon-FeatureFlags" not in plain.headers
        assert "X-Event-Horizon-Delegating-Authorization" not in plain.headers
        assert flagged.headers["X-EventHorizon-FeatureFlags"] == '{"alpha":false,"zeta":true}'
        assert flagged.headers["X-Event-Horizon-Delegating-Authorization"] == "WebUIToken abc"

    @pytest.mark.asyncio
    async def test_empty_feature_flags_omitted(self, make_client):
        """测试空功能开关不发送请求头"""
        recorder = Recorder(payload=TASK)
        async with make_client(recorder) as client:
            await client.get_task(GetTaskRequest(tenant_id="t1", task_id="task1", feature_flags={}))
        assert "X-EventHorizon-FeatureFlags" not in recorder.last.headers

    @pytest.mark.asyncio
    async def test_workstream_short_name(self, make_client):
        """测试添加短名称以工作流版本作为前置条件"""
        recorder = Recorder(responses=[httpx.Response(204), httpx.Response(200, json={"Items": []})])
        async with make_client(recorder) as client:
            await client.add_workstream_short_name(
                AddWorkstreamShortNameRequest(
                    tenant_id="t1", workstream_id="w1", name="WS", workstream_version=4
                )
            )
            await client.list_workstream_short_names(
                ListWorkstreamShortNamesRequest(tenant_id="t1", workstream_id="w1")
            )

        add, listing = recorder.requests
        assert add.method == "PUT"
        assert add.url.path == "/v1/tenants/t1/workstreams/w1/shortnames/WS"
        assert add.headers["If-Match"] == "4"
        assert listing.url.path == "/v1/tenants/t1/shortnames"
        assert listing.url.params["workstreamID"] == "w1"

    @pytest.mark.asyncio
    async def test_runner_tokens(self, make_client):
        """测试 Runner 令牌生成与吊销"""
        recorder = Recorder(
            responses=[
                httpx.Response(
                    201,
                    json={"TenantID": "t1", "RunnerID": "r1", "TokenID": "k1", "Token": "plain"},
                ),
                httpx.Response(204),
            ]
        )
        async with make_client(recorder) as client:
            token = await client.generate_runner_token(
                GenerateRunnerTokenRequest(tenant_id="t1", runner_id="r1", token_id="k1", ttl_days=30)
            )
            await client.revoke_runner_token(
                RevokeRunnerTokenRequest(tenant_id="t1", runner_id="r1", token_id="k1", version=1)
            )

        assert token.token == "plain"
        generate, revoke = recorder.requests
        assert generate.url.path == "/v1/tenants/t1/runners/r1/tokens/k1"
        assert json.loads(generate.content) == {"TTLDays": 30}
        assert revoke.method == "POST"
        assert revoke.url.path == "/v1/tenants/t1/runners/r1/tokens/k1/revoke"
        assert revoke.headers["If-Match"] == "1"

    def test_ttl_days_bounds(self):
        """测试令牌有效期范围"""
        with pytest.raises(ValueError):
            GenerateRunnerTokenRequest(tenant_id="t1", runner_id="r1", token_id="k1", ttl_days=0)
        with pytest.raises(ValueError):
            GenerateRunnerTokenRequest(tenant_id="t1", runner_id="r1", token_id="k1", ttl_days=366)

    def test_unknown_body_field_rejected(self):
        """测试请求模型拒绝未知字段"""
        with pytest.raises(ValueError):
            UpdateTaskRequest.model_validate({"Titel": "typo"})


class TestErrorMapping:
    """状态码到错误类型的映射测试"""

    @pytest.mark.asyncio
    async def test_not_found(self, make_client):
        """测试 404 映射为 NotFoundError"""
        recorder = Recorder(status=404, payload={"ResponseCode": 404, "Message": "no logs", "ErrorType": "NotFound"})
        async with make_client(recorder) as client:
            with pytest.raises(NotFoundError) as exc_info:
                await client.get_last_turn_log(
                    GetLastTurnLogRequest(tenant_id="t1", task_id="task1", turn_index=1)
                )

        assert exc_info.value.response_code == 404
        assert exc_info.value.error_type == "NotFound"
        assert recorder.last.url.path == "/v1/tenants/t1/tasks/task1/turns/1/logs/last"

    @pytest.mark.asyncio
    async def test_service_error(self, make_client):
        """测试其他错误状态映射为 ApiError"""
        recorder = Recorder(status=403, payload={"ResponseCode": 403, "Message": "denied", "ErrorType": "Forbidden"})
        async with make_client(recorder) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.get_task(GetTaskRequest(tenant_id="t1", task_id="task1"))

        error = exc_info.value
        assert not isinstance(error, (NotFoundError, ConflictError))
        assert str(error) == "403 Forbidden: denied"
        assert error.to_payload() == {"ResponseCode": 403, "Message": "denied", "ErrorType": "Forbidden"}

    @pytest.mark.asyncio
    async def test_non_json_error(self, make_client):
        """测试非 JSON 错误响应"""

        def handler(request):
            return httpx.Response(502, text="bad gateway")

        async with make_client(handler) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.get_task(GetTaskRequest(tenant_id="t1", task_id="task1"))

        assert exc_info.value.response_code == 502
        assert exc_info.value.message == "bad gateway"

    @pytest.mark.asyncio
    async def test_transport_error(self, make_client):
        """测试网络错误映射为 TransportError"""

        def handler(request):
            raise httpx.ConnectError("connection refused")

        async with make_client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.get_task(GetTaskRequest(tenant_id="t1", task_id="task1"))

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_decoding_error(self, make_client):
        """测试响应体不符合模型"""
        recorder = Recorder(payload={"Title": "no ids"})
        async with make_client(recorder) as client:
            with pytest.raises(DecodingError):
                await client.get_task(GetTaskRequest(tenant_id="t1", task_id="task1"))

    @pytest.mark.asyncio
    async def test_non_numeric_response_code(self, make_client):
        """测试错误响应的 ResponseCode 不是数字时报解码错误"""
        recorder = Recorder(status=403, payload={"ResponseCode": "abc", "Message": "denied"})
        async with make_client(recorder) as client:
            with pytest.raises(DecodingError) as exc_info:
                await client.get_task(GetTaskRequest(tenant_id="t1", task_id="task1"))

        assert exc_info.value.details["ResponseCode"] == "abc"

    @pytest.mark.asyncio
    async def test_missing_response_code_uses_status(self, make_client):
        """测试缺少 ResponseCode 时使用 HTTP 状态码"""
        recorder = Recorder(status=503, payload={"Message": "unavailable"})
        async with make_client(recorder) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.get_task(GetTaskRequest(tenant_id="t1", task_id="task1"))

        assert exc_info.value.response_code == 503


class TestPagination:
    """分页测试"""

    @pytest.mark.asyncio
    async def test_list_page(self, make_client):
        """测试单页列表与查询参数"""
        recorder = Recorder(payload={"Tasks": [TASK], "NextToken": "n1"})
        async with make_client(recorder) as client:
            page = await client.list_tasks(
                ListTasksRequest(tenant_id="t1", max_results=10, include_deleted=False)
            )

        assert [t.task_id for t in page.items] == ["task1"]
        assert page.next_token == "n1"
        params = recorder.last.url.params
        assert params["maxResults"] == "10"
        assert params["includeDeleted"] == "false"
        assert "token" not in params

    @pytest.mark.asyncio
    async def test_paginate_follows_token(self, make_client):
        """测试按 NextToken 逐页迭代"""
        recorder = Recorder(
            responses=[
                httpx.Response(200, json={"Tasks": [TASK], "NextToken": "p2"}),
                httpx.Response(200, json={"Tasks": [{**TASK, "TaskId": "task2"}]}),
            ]
        )
        async with make_client(recorder) as client:
            ids = [
                task.task_id
                async for task in client.paginate(client.list_tasks, ListTasksRequest(tenant_id="t1"))
            ]

        assert ids == ["task1", "task2"]
        assert "token" not in recorder.requests[0].url.params
        assert recorder.requests[1].url.params["token"] == "p2"

    @pytest.mark.asyncio
    async def test_list_filters(self, make_client):
        """测试各列表接口的过滤参数"""
        recorder = Recorder(payload={"Items": [], "Orgs": []})
        async with make_client(recorder) as client:
            await client.list_runners(ListRunnersRequest(tenant_id="t1", runs_tasks=True))
            await client.list_runner_tokens(
                ListRunnerTokensRequest(tenant_id="t1", runner_id="r1", token="n", include_revoked=True)
            )
            await client.list_github_orgs(ListGithubOrgsRequest(name="acme"))

        runners, tokens, orgs = recorder.requests
        assert runners.url.params["runsTasks"] == "true"
        assert "proxiesGithub" not in runners.url.params
        assert tokens.url.params["nextPageToken"] == "n"
        assert tokens.url.params["includeRevoked"] == "true"
        assert orgs.url.path == "/v1/github/orgs"
        assert orgs.url.params["name"] == "acme"

    @pytest.mark.asyncio
    async def test_missing_items_key(self, make_client):
        """测试列表键缺失时返回空页"""
        recorder = Recorder(payload={})
        async with make_client(recorder) as client:
            page = await client.list_tasks(ListTasksRequest(tenant_id="t1"))
        assert page.items == []
        assert page.next_token is None


class TestUpdateWith:
    """乐观并发辅助测试"""

    @pytest.mark.asyncio
    async def test_read_then_write(self, make_client):
        """测试先读取版本号再写入"""
        recorder = Recorder(
            responses=[
                httpx.Response(200, json=TASK),
                httpx.Response(200, json={**TASK, "Title": "new", "Version": 4}),
            ]
        )
        async with make_client(recorder) as client:
            task = await update_with(
                lambda: client.get_task(GetTaskRequest(tenant_id="t1", task_id="task1", include_deleted=True)),
                lambda current: client.update_task(
                    UpdateTaskRequest(tenant_id="t1", task_id="task1", version=current.version, title="new")
                ),
            )

        assert task.version == 4
        get, patch = recorder.requests
        assert get.url.params["includeDeleted"] == "true"
        assert patch.headers["If-Match"] == "3"

    @pytest.mark.asyncio
    async def test_retry_on_conflict(self):
        """测试冲突时重新读取后重试"""
        versions = iter([1, 2])
        writes = []

        async def get():
            return next(versions)

        async def update(version):
            writes.append(version)
            if version == 1:
                raise ConflictError("stale")
            return "ok"

        assert await update_with(get, update, max_attempts=2) == "ok"
        assert writes == [1, 2]

    @pytest.mark.asyncio
    async def test_conflict_raised_after_attempts(self):
        """测试超过尝试次数后抛出冲突"""

        async def get():
            return 1

        async def update(version):
            raise ConflictError("stale")

        with pytest.raises(ConflictError):
            await update_with(get, update)

        with pytest.raises(ValueError):
            await update_with(get, update, max_attempts=0)
