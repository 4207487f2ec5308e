"""配置模块 -- 可通过环境变量覆盖

数据库路径等路径类配置以函数形式提供；鉴权相关配置（JWT 密钥、令牌有效期、
密码哈希强度）汇总为不可变的 AppSettings，在进程启动时构建一次并显式传递。
"""

import os
import secrets
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict, Field, SecretStr

log = structlog.get_logger()

DEFAULT_TOKEN_LIFETIME_HOURS = 24
DEFAULT_PASSWORD_TIME_COST = 3
DEFAULT_ADMIN_PASSWORD = "admin123"

# 列表分页
DEFAULT_PER_PAGE = 20
MAX_PER_PAGE = 100


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("TESTFLOW_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "TESTFLOW_DB_PATH",
        str(_get_base_dir() / "sqlite" / "testflow.db"),
    )


def get_admin_password() -> str:
    """获取默认管理员初始密码"""
    return os.environ.get("TESTFLOW_ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD)


class AppSettings(BaseModel):
    """应用配置 -- 启动时构建一次，之后只读

    环境变量:
        TESTFLOW_JWT_SECRET: HS256 签名密钥
        TESTFLOW_TOKEN_LIFETIME_HOURS: 令牌有效期（小时，默认 24）
        TESTFLOW_PASSWORD_TIME_COST: Argon2 time_cost（默认 3）
    """

    model_config = ConfigDict(frozen=True)

    jwt_secret: SecretStr = Field(description="JWT 签名密钥")
    jwt_algorithm: str = Field(default="HS256", description="JWT 签名算法")
    token_lifetime_hours: int = Field(
        default=DEFAULT_TOKEN_LIFETIME_HOURS,
        ge=1,
        description="令牌有效期（小时）",
    )
    password_time_cost: int = Field(
        default=DEFAULT_PASSWORD_TIME_COST,
        ge=1,
        description="Argon2 time_cost 工作因子",
    )


def _read_int(env_var: str, fallback: int, minimum: int = 1) -> int | None:
    """读取正整数配置；无法解析或小于 minimum 时告警并返回 None（使用默认值）"""
    val = os.environ.get(env_var)
    if not val:
        return None
    try:
        parsed = int(val)
    except ValueError:
        parsed = None
    if parsed is None or parsed < minimum:
        log.warning(
            "invalid_int_config",
            env_var=env_var,
            value=val,
            minimum=minimum,
            fallback=fallback,
        )
        return None
    return parsed


def load_settings() -> AppSettings:
    """从环境变量加载 AppSettings

    未配置 TESTFLOW_JWT_SECRET 时生成进程级随机密钥并告警，
    此时进程重启后已签发的令牌全部失效。
    """
    kwargs: dict = {}

    if val := os.environ.get("TESTFLOW_JWT_SECRET"):
        kwargs["jwt_secret"] = SecretStr(val)
    else:
        log.warning(
            "jwt_secret_not_configured",
            env_var="TESTFLOW_JWT_SECRET",
            message="使用随机密钥，重启后令牌失效",
        )
        kwargs["jwt_secret"] = SecretStr(secrets.token_urlsafe(32))

    lifetime = _read_int("TESTFLOW_TOKEN_LIFETIME_HOURS", DEFAULT_TOKEN_LIFETIME_HOURS)
    if lifetime is not None:
        kwargs["token_lifetime_hours"] = lifetime

    time_cost = _read_int("TESTFLOW_PASSWORD_TIME_COST", DEFAULT_PASSWORD_TIME_COST)
    if time_cost is not None:
        kwargs["password_time_cost"] = time_cost

    return AppSettings(**kwargs)
