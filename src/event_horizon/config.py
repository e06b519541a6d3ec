"""客户端配置

环境变量（前缀 EH_）与 .env 文件，命令行参数可覆盖。
"""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROD_ENDPOINT = "https://api.x2n.ai"
DEV_ENDPOINT = "https://api.dev.x2n.ai"
LOCAL_ENDPOINT = "https://localhost:7443"


class ClientSettings(BaseSettings):
    """客户端配置类"""

    model_config = SettingsConfigDict(
        env_prefix="EH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === 服务端点 ===
    ENDPOINT: str = Field(default="")
    DEV: bool = Field(default=False)
    LOCAL: bool = Field(default=False)
    INSECURE: bool = Field(default=False)

    # === HTTP ===
    TIMEOUT: float = Field(default=30.0, gt=0)
    CONNECT_TIMEOUT: float = Field(default=10.0, gt=0)
    MAX_CONNECTIONS: int = Field(default=20, ge=1)
    TOKEN: str | None = Field(default=None)

    # === 日志 ===
    LOG_LEVEL: str = Field(default="WARNING")
    LOG_TO_FILE: bool = Field(default=False)
    LOG_FILE_PATH: str = Field(default="logs/eh-ctl.log")

    # === 日志流 ===
    STREAM_BUFFER: int = Field(default=1000, ge=0)
    UPLOAD_MAX_ATTEMPTS: int = Field(default=3, ge=1)

    @model_validator(mode="after")
    def _check_presets(self) -> "ClientSettings":
        if self.DEV and self.LOCAL:
            raise ValueError("cannot use both DEV and LOCAL together")
        return self

    def resolved_endpoint(self) -> str:
        if self.ENDPOINT:
            return self.ENDPOINT
        if self.LOCAL:
            return LOCAL_ENDPOINT
        if self.DEV:
            return DEV_ENDPOINT
        return PROD_ENDPOINT

    @property
    def verify_tls(self) -> bool:
        return not (self.INSECURE or self.LOCAL)


@lru_cache
def get_settings() -> ClientSettings:
    return ClientSettings()


def reload_settings() -> ClientSettings:
    get_settings.cache_clear()
    return get_settings()
