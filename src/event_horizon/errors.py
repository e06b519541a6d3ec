"""
客户端错误定义

传输、解码、服务端错误以及关闭超时的统一层次结构。
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from event_horizon.domain.conflict import ConflictObject


class EventHorizonError(Exception):
    """客户端基础错误"""

    def __init__(
        self,
        message: str,
        code: str = "EVENT_HORIZON_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class TransportError(EventHorizonError):
    """传输层错误（网络失败、读取中断）"""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code="TRANSPORT_ERROR", details=details)
        self.operation = operation


class DecodingError(EventHorizonError):
    """响应体不符合预期结构"""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, code="DECODING_ERROR", details=details)


class ApiError(EventHorizonError):
    """服务端返回的结构化错误"""

    def __init__(
        self,
        message: str,
        response_code: int,
        error_type: str = "",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code="SERVICE_ERROR", details=details)
        self.response_code = response_code
        self.error_type = error_type

    def __str__(self) -> str:
        if self.error_type:
            return f"{self.response_code} {self.error_type}: {self.message}"
        return f"{self.response_code}: {self.message}"

    @classmethod
    def from_payload(cls, payload: dict[str, Any], status_code: int) -> "ApiError":
        return cls(
            message=str(payload.get("Message") or ""),
            response_code=parse_response_code(payload, status_code),
            error_type=str(payload.get("ErrorType") or ""),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "ResponseCode": self.response_code,
            "Message": self.message,
            "ErrorType": self.error_type,
        }


class NotFoundError(ApiError):
    """资源不存在 (404)"""


class ConflictError(ApiError):
    """版本前置条件不匹配 (409)，携带服务端当前状态"""

    def __init__(
        self,
        message: str,
        response_code: int = 409,
        error_type: str = "",
        current: "ConflictObject | None" = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, response_code, error_type, details=details)
        self.current = current

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConflictError):
            return NotImplemented
        return self.to_payload() == other.to_payload() and self.current == other.current

    __hash__ = ApiError.__hash__


def parse_response_code(payload: dict[str, Any], status_code: int) -> int:
    """错误响应体中的 ResponseCode，缺省时取 HTTP 状态码"""
    raw = payload.get("ResponseCode")
    if raw in (None, "", 0):
        return status_code
    if isinstance(raw, bool):
        raise DecodingError(f"invalid ResponseCode in error response: {raw!r}")
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise DecodingError(
            f"invalid ResponseCode in error response: {raw!r}",
            details={"ResponseCode": raw, "status_code": status_code},
        ) from None


class ShutdownTimeoutError(EventHorizonError):
    """等待后台任务退出超时"""

    def __init__(self, message: str = "shutdown timed out", details: dict[str, Any] | None = None):
        super().__init__(message, code="SHUTDOWN_TIMEOUT", details=details)


class ChannelClosedError(EventHorizonError):
    """通道已关闭"""

    def __init__(self, message: str = "channel closed"):
        super().__init__(message, code="CHANNEL_CLOSED")
