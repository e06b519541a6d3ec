"""
HTTP 传输层

封装 httpx.AsyncClient：路径转义、公共请求头、状态码到错误类型的映射、
响应解码以及 SSE 长连接。连接池在并发调用之间共享。
"""

from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from event_horizon.config import ClientSettings, get_settings
from event_horizon.domain.conflict import decode_conflict
from event_horizon.domain.models import Page
from event_horizon.errors import (
    ApiError,
    ConflictError,
    DecodingError,
    NotFoundError,
    TransportError,
)
from event_horizon.transport.auth import BearerAuth
from event_horizon.transport.request import ApiRequest

M = TypeVar("M", bound=BaseModel)

JSON_CONTENT_TYPE = "application/json"
EVENT_STREAM_CONTENT_TYPE = "text/event-stream"


def escape_path(*segments: str | int) -> str:
    """拼接 URL 路径，每一段都做百分号转义"""
    parts = []
    for segment in segments:
        value = str(segment)
        if not value:
            raise ValueError("path segment must not be empty")
        parts.append(quote(value, safe=""))
    return "/" + "/".join(parts)


def raise_for_status(response: httpx.Response, expected: Iterable[int]) -> None:
    """非预期状态码映射为 NotFoundError / ConflictError / ApiError"""
    status = response.status_code
    if status in expected:
        return

    try:
        payload: Any = response.json()
    except ValueError:
        payload = None

    if status == 409:
        if isinstance(payload, dict):
            raise decode_conflict(payload, status)
        raise ConflictError(message=_fallback_message(response), response_code=status)

    if not isinstance(payload, dict):
        payload = {"Message": _fallback_message(response)}
    error_cls = NotFoundError if status == 404 else ApiError
    raise error_cls.from_payload(payload, status)


def _fallback_message(response: httpx.Response) -> str:
    text = response.text.strip()
    return text or response.reason_phrase


class BaseClient:
    """传输客户端基类"""

    def __init__(
        self,
        endpoint: str | None = None,
        *,
        auth: httpx.Auth | None = None,
        settings: ClientSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        verify: bool | None = None,
        timeout: httpx.Timeout | float | None = None,
    ):
        self._settings = settings or get_settings()
        self._endpoint = (endpoint or self._settings.resolved_endpoint()).rstrip("/")

        if auth is None and self._settings.TOKEN:
            auth = BearerAuth(self._settings.TOKEN)
        if timeout is None:
            timeout = httpx.Timeout(self._settings.TIMEOUT, connect=self._settings.CONNECT_TIMEOUT)

        self._timeout = timeout if isinstance(timeout, httpx.Timeout) else httpx.Timeout(timeout)
        self._http = httpx.AsyncClient(
            base_url=self._endpoint,
            auth=auth,
            transport=transport,
            verify=self._settings.verify_tls if verify is None else verify,
            timeout=self._timeout,
            limits=httpx.Limits(max_connections=self._settings.MAX_CONNECTIONS),
        )

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def _headers(
        self,
        request: ApiRequest | None,
        *,
        version: int | None = None,
        has_body: bool = False,
        accept: str = JSON_CONTENT_TYPE,
        extra: dict[str, str] | None = None,
    ) -> dict[str, str]:
        headers = {"Accept": accept}
        if has_body:
            headers["Content-Type"] = JSON_CONTENT_TYPE
        if version is not None:
            headers["If-Match"] = str(version)
        if request is not None:
            headers.update(request.headers())
        if extra:
            headers.update(extra)
        return headers

    async def _send(
        self,
        method: str,
        path: str,
        request: ApiRequest | None = None,
        *,
        params: dict[str, str] | None = None,
        version: int | None = None,
        body: bytes | None = None,
        expected: Iterable[int] = (200,),
    ) -> httpx.Response:
        headers = self._headers(request, version=version, has_body=body is not None)
        try:
            response = await self._http.request(
                method,
                path,
                params=params or None,
                content=body,
                headers=headers,
            )
        except httpx.HTTPError as e:
            logger.warning("{} {} 请求失败: {}", method, path, e)
            raise TransportError(f"{method} {path}: {e}", operation=f"{method} {path}") from e

        logger.debug("{} {} -> {}", method, path, response.status_code)
        raise_for_status(response, expected)
        return response

    async def _call(
        self,
        method: str,
        path: str,
        request: ApiRequest | None,
        model: type[M],
        *,
        params: dict[str, str] | None = None,
        version: int | None = None,
        body: bytes | None = None,
        expected: Iterable[int] = (200,),
    ) -> M:
        response = await self._send(
            method, path, request, params=params, version=version, body=body, expected=expected
        )
        return decode_model(response, model)

    async def _call_no_content(
        self,
        method: str,
        path: str,
        request: ApiRequest | None,
        *,
        params: dict[str, str] | None = None,
        version: int | None = None,
        body: bytes | None = None,
    ) -> None:
        await self._send(method, path, request, params=params, version=version, body=body, expected=(204,))

    async def _list(
        self,
        path: str,
        request: ApiRequest,
        model: type[M],
        items_key: str,
        *,
        params: dict[str, str] | None = None,
    ) -> Page[M]:
        response = await self._send("GET", path, request, params=params)
        return decode_page(response, model, items_key)

    @asynccontextmanager
    async def _stream(
        self,
        path: str,
        request: ApiRequest | None,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> AsyncIterator[httpx.Response | None]:
        """打开 SSE 长连接；204 时产出 None 表示干净结束"""
        http_request = self._http.build_request(
            "GET",
            path,
            params=params or None,
            headers=self._headers(request, accept=EVENT_STREAM_CONTENT_TYPE, extra=headers),
            timeout=httpx.Timeout(self._timeout.connect, connect=self._timeout.connect, read=None),
        )
        try:
            response = await self._http.send(http_request, stream=True)
        except httpx.HTTPError as e:
            raise TransportError(f"GET {path}: {e}", operation="stream") from e

        try:
            if response.status_code == 204:
                yield None
                return
            if response.status_code != 200:
                await response.aread()
                raise_for_status(response, (200,))
            yield response
        finally:
            await response.aclose()


def decode_model(response: httpx.Response, model: type[M]) -> M:
    try:
        return model.model_validate_json(response.content)
    except ValidationError as e:
        raise DecodingError(f"invalid {model.__name__} response: {e}") from e


def decode_page(response: httpx.Response, model: type[M], items_key: str) -> Page[M]:
    try:
        payload = response.json()
    except ValueError as e:
        raise DecodingError(f"invalid list response: {e}") from e
    if not isinstance(payload, dict):
        raise DecodingError("list response is not a JSON object")

    try:
        items = [model.model_validate(item) for item in payload.get(items_key) or []]
    except ValidationError as e:
        raise DecodingError(f"invalid {model.__name__} in list response: {e}") from e
    return Page(items=items, next_token=payload.get("NextToken"))
