"""公共测试夹具"""

from collections.abc import Callable

import httpx
import pytest

from event_horizon.client import Client
from event_horizon.config import ClientSettings

TEST_ENDPOINT = "https://eh.test"


@pytest.fixture
def settings() -> ClientSettings:
    return ClientSettings(ENDPOINT=TEST_ENDPOINT, _env_file=None)


@pytest.fixture
def make_client(settings) -> Callable[..., Client]:
    """用 httpx.MockTransport 构造客户端，不发起真实网络请求"""

    def factory(handler, **kwargs) -> Client:
        return Client(settings=settings, transport=httpx.MockTransport(handler), **kwargs)

    return factory
