"""HTTP 传输层：请求模型、鉴权、基础客户端、乐观并发辅助"""

from event_horizon.transport.auth import BearerAuth
from event_horizon.transport.client import BaseClient, escape_path, raise_for_status
from event_horizon.transport.request import (
    DELEGATED_AUTH_HEADER,
    FEATURE_FLAGS_HEADER,
    ApiRequest,
    DelegatedAuth,
    ListRequest,
)
from event_horizon.transport.versioned import paginate, update_with

__all__ = [
    "DELEGATED_AUTH_HEADER",
    "FEATURE_FLAGS_HEADER",
    "ApiRequest",
    "BaseClient",
    "BearerAuth",
    "DelegatedAuth",
    "ListRequest",
    "escape_path",
    "paginate",
    "raise_for_status",
    "update_with",
]
