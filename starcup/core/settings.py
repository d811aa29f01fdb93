"""
starcup.core.settings
~~~~~~~~~~~~~~~~~~~~~

集中式配置管理，基于 pydantic-settings 自动从 ``.env`` 文件加载。

支持多环境配置（dev / test / prod），加载顺序为:
  1. 环境变量（最高优先级）
  2. ``.env.{ENVIRONMENT}`` 环境专属文件
  3. ``.env`` 基础文件
  4. 字段默认值（最低优先级）
"""
from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# 项目根目录（starcup/core/settings.py 向上三级）
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent

# 读取当前环境标识（在 Settings 类定义之前，用于决定加载哪个 .env 文件）
_CURRENT_ENV: str = os.getenv("ENVIRONMENT", "dev")


class Settings(BaseSettings):
    """全局配置对象，字段值按如下优先级加载：环境变量 > .env.{env} > .env > 默认值。"""

    # ── 基础 ──────────────────────────────────────────────────────────
    PROJECT_NAME: str = Field(default="Starcup Party Vote", description="项目名称")
    VERSION: str = Field(default="0.1.0", description="版本号")
    ENVIRONMENT: Literal["dev", "test", "prod"] = Field(
        default="dev",
        description="运行环境：dev / test / prod",
    )

    # ── 曲库 ──────────────────────────────────────────────────────────
    TRACKS_FILE: str = Field(
        default="tracks.csv",
        description="曲库 CSV 文件路径（相对路径以项目根目录为基准）",
    )

    # ── 投票轮次 ──────────────────────────────────────────────────────
    SUGGESTION_COUNT: int = Field(default=4, ge=1, description="每轮候选曲目数")
    HISTORY_WINDOW: int = Field(
        default=5, ge=0, description="选曲时回避的最近胜出曲目数",
    )
    ROOM_CODE_LENGTH: int = Field(default=6, ge=4, description="房间码长度")
    STRICT_TRACK_VALIDATION: bool = Field(
        default=True,
        description="是否只接受投给本轮候选曲目的票",
    )

    # ── 投票链接 / 二维码 ─────────────────────────────────────────────
    BASE_URL: str | None = Field(
        default=None,
        description="对外访问的基础 URL（部署在反向代理后时设置），为空时使用请求地址",
    )
    VOTE_PAGE: str = Field(default="vote.html", description="观众投票页路径")
    QR_BOX_SIZE: int = Field(default=8, ge=1, description="二维码单个模块像素数")
    QR_BORDER: int = Field(default=1, ge=0, description="二维码边框模块数")

    # ── 限流 ──────────────────────────────────────────────────────────
    ROOM_CREATE_RATE_LIMIT: str = Field(
        default="10/minute", description="创建房间接口限流（slowapi 语法）",
    )
    API_RATE_LIMIT: str = Field(
        default="60/minute", description="二维码等普通接口限流（slowapi 语法）",
    )
    WS_VOTE_INTERVAL: float = Field(
        default=0.5, ge=0, description="同一 WebSocket 连接两次投票的最小间隔（秒）",
    )

    # ── 服务 ──────────────────────────────────────────────────────────
    HOST: str = Field(default="0.0.0.0", description="服务监听地址")
    PORT: int = Field(default=3000, description="服务监听端口")
    LOG_LEVEL: str = Field(default="INFO", description="日志级别（可被环境属性覆盖）")

    # ── Pydantic Settings ─────────────────────────────────────────────
    # 先加载 .env.{env} 再加载 .env，前者优先级更高
    model_config = SettingsConfigDict(
        env_file=(f".env.{_CURRENT_ENV}", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("BASE_URL")
    @classmethod
    def _strip_trailing_slash(cls, value: str | None) -> str | None:
        """去掉 BASE_URL 末尾的 ``/``，空字符串视为未设置。"""
        if value is None:
            return None
        value = value.strip().rstrip("/")
        return value or None

    # ── 环境判断 ──────────────────────────────────────────────────────

    @property
    def is_prod(self) -> bool:
        """当前是否为生产环境。"""
        return self.ENVIRONMENT == "prod"

    @property
    def is_test(self) -> bool:
        """当前是否为测试环境。"""
        return self.ENVIRONMENT == "test"

    @property
    def is_dev(self) -> bool:
        """当前是否为开发环境。"""
        return self.ENVIRONMENT == "dev"

    # ── 环境差异化行为 ────────────────────────────────────────────────

    @property
    def debug(self) -> bool:
        """是否开启 debug 模式。仅 dev 环境开启。"""
        return self.is_dev

    @property
    def reload(self) -> bool:
        """是否开启热重载。仅 dev 环境开启。"""
        return self.is_dev

    @property
    def effective_log_level(self) -> str:
        """根据环境自动推断日志级别。

        - dev  → INFO
        - test → DEBUG（方便排查测试失败）
        - prod → WARNING（减少噪音）

        如果环境变量中显式设置了 LOG_LEVEL，会覆盖此默认推断。
        """
        env_log = os.getenv("LOG_LEVEL")
        if env_log:
            return env_log
        return {
            "dev": "INFO",
            "test": "DEBUG",
            "prod": "WARNING",
        }.get(self.ENVIRONMENT, "INFO")

    @property
    def allow_cors_all_origins(self) -> bool:
        """是否允许所有 CORS 来源。非 prod 环境允许，方便本地调试。"""
        return not self.is_prod

    @property
    def tracks_path(self) -> Path:
        """曲库文件的绝对路径。"""
        path = Path(self.TRACKS_FILE)
        return path if path.is_absolute() else PROJECT_ROOT / path


@lru_cache
def get_settings() -> Settings:
    """获取全局 Settings 单例（带缓存，避免重复解析 .env）。"""
    return Settings()


settings: Settings = get_settings()
