"""日志配置模块

提供日志初始化与敏感信息脱敏。库本身不在导入时添加任何 sink。
"""

import os
import re
import sys
from typing import Any

from loguru import logger

from event_horizon.config import get_settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

REDACTED = "***REDACTED***"

SENSITIVE_PATTERNS = [
    # Authorization / 委托鉴权头
    (
        re.compile(
            r"((?:Delegating-)?Authorization)([\"']?\s*[:=]\s*[\"']?)(Bearer\s+|\w+Token\s+)?([a-zA-Z0-9_\-\.]{16,})",
            re.IGNORECASE,
        ),
        r"\1\2\3" + REDACTED,
    ),
    # 令牌 / OAuth
    (
        re.compile(
            r"((?:oauth[_-]?|refresh[_-]?)?token|jwt)([\"']?\s*[:=]\s*[\"']?)([a-zA-Z0-9_\-\.]{16,})",
            re.IGNORECASE,
        ),
        r"\1\2" + REDACTED,
    ),
    # 密码
    (
        re.compile(r"(password|passwd|pwd)([\"']?\s*[:=]\s*[\"']?)([^\"'\s,}]{3,})", re.IGNORECASE),
        r"\1\2" + REDACTED,
    ),
    # 裸 JWT
    (
        re.compile(r"\beyJ[a-zA-Z0-9_\-]+\.[a-zA-Z0-9_\-]+\.[a-zA-Z0-9_\-]+"),
        REDACTED,
    ),
]

SENSITIVE_KEYS = {
    "authorization",
    "token",
    "jwt",
    "oauth",
    "secret",
    "password",
    "credential",
}


def sanitize_log_message(message: str) -> str:
    """对日志消息进行敏感信息脱敏"""
    if not message:
        return message

    sanitized = message
    for pattern, replacement in SENSITIVE_PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)
    return sanitized


def sanitize_dict(data: dict[str, Any]) -> dict[str, Any]:
    result = {}
    for key, value in data.items():
        if any(sk in key.lower() for sk in SENSITIVE_KEYS):
            result[key] = REDACTED
        elif isinstance(value, dict):
            result[key] = sanitize_dict(value)
        elif isinstance(value, str):
            result[key] = sanitize_log_message(value)
        else:
            result[key] = value
    return result


class SanitizingFilter:
    """日志脱敏过滤器"""

    def __call__(self, record: dict[str, Any]) -> bool:
        if "message" in record:
            record["message"] = sanitize_log_message(record["message"])
        if isinstance(record.get("extra"), dict):
            record["extra"] = sanitize_dict(record["extra"])
        return True


def setup_logging(
    level: str | None = None,
    log_to_file: bool | None = None,
    log_file_path: str | None = None,
) -> None:
    """初始化日志系统，包含敏感信息脱敏

    Args:
        level: 日志级别，默认使用 settings.LOG_LEVEL
        log_to_file: 是否输出到文件，默认使用 settings.LOG_TO_FILE
        log_file_path: 日志文件路径，默认使用 settings.LOG_FILE_PATH
    """
    settings = get_settings()
    logger.remove()

    log_level = (level or settings.LOG_LEVEL).upper()
    should_log_to_file = log_to_file if log_to_file is not None else settings.LOG_TO_FILE
    file_path = log_file_path or settings.LOG_FILE_PATH

    sanitizing_filter = SanitizingFilter()

    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=log_level,
        colorize=None,
        filter=sanitizing_filter,
    )

    if should_log_to_file:
        log_dir = os.path.dirname(file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        logger.add(
            file_path,
            format=FILE_FORMAT,
            level=log_level,
            rotation="50 MB",
            retention="7 days",
            encoding="utf-8",
            enqueue=True,
            filter=sanitizing_filter,
        )

    logger.debug(f"日志初始化完成: level={log_level}, file={should_log_to_file}, sanitize=True")
