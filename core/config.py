"""
配置文件 - 项目配置管理
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from pydantic import model_validator


class DatabaseSettings(BaseModel):
    url: str = "sqlite+aiosqlite:///./database.sqlite"
    echo: bool = False
    # 启动时自动建表（CREATE TABLE IF NOT EXISTS 语义）
    auto_create: bool = True


class Settings(BaseSettings):
    """项目配置"""

    # 基础配置
    PROJECT_NAME: str = Field(default="Donation Backend")
    VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="development")
    PORT: int = Field(default=3000)

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)

    # 安全配置
    SECRET_KEY: Optional[str] = Field(
        default=None,
        description="会话令牌签名密钥，必须设置"
    )
    ALGORITHM: str = Field(default="HS256")

    # 管理员会话 Cookie
    SESSION_COOKIE_NAME: str = Field(default="donation_admin_session")
    SESSION_EXPIRE_DAYS: int = Field(default=7)

    # CORS配置（默认放开所有来源）
    CORS_ORIGINS: list = Field(default=["*"])

    # 静态资源目录（可选，挂载到根路径）
    STATIC_DIR: Optional[str] = Field(default=None)

    # 日志/请求体记录配置
    LOG_REQUEST_BODY_ENABLE_BY_DEFAULT: bool = Field(default=True)
    LOG_REQUEST_BODY_MAX_BYTES: int = Field(default=2048)

    # pydantic-settings v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    @model_validator(mode="after")
    def _validate_secret_key(self):
        # 所有环境均要求显式配置 SECRET_KEY，避免重启后会话全部失效
        if not self.SECRET_KEY:
            raise ValueError(
                "SECRET_KEY 未配置。请在环境变量或 .env 中设置 SECRET_KEY"
            )
        return self

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """允许 JSON 字符串或逗号分隔字符串两种格式。"""
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("[") and s.endswith("]"):
                import json
                try:
                    arr = json.loads(s)
                    if isinstance(arr, list):
                        return arr
                except ValueError:
                    pass
            if "," in s:
                return [item.strip() for item in s.split(",") if item.strip()]
            return [s]
        return v

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    @property
    def session_max_age_seconds(self) -> int:
        return self.SESSION_EXPIRE_DAYS * 24 * 60 * 60


settings = Settings()
