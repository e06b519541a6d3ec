"""请求鉴权"""

from collections.abc import Generator

import httpx


class BearerAuth(httpx.Auth):
    """静态 Bearer 令牌"""

    def __init__(self, token: str):
        self._token = token

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self._token}"
        yield request
