"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store、配置与调用者身份

Store 与 AppSettings 通过 app.state 管理，在 lifespan 中初始化/清理；
调用者身份在每个请求中由 Authorization 头显式解析得到。
"""

import structlog
from fastapi import Depends, Request
from testflow.core.config import AppSettings
from testflow.core.models import AuthenticatedIdentity
from testflow.core.security import extract_identity
from testflow.core.store import StoreGroup


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_settings(request: Request) -> AppSettings:
    """从 app.state 获取 AppSettings 实例"""
    return request.app.state.settings


async def get_identity(
    request: Request,
    settings: AppSettings = Depends(get_settings),
) -> AuthenticatedIdentity:
    """解析 Bearer 令牌得到调用者身份，并绑定到日志上下文"""
    identity = extract_identity(request.headers.get("Authorization"), settings)
    structlog.contextvars.bind_contextvars(
        user_id=identity.user_id,
        role=identity.role.value,
    )
    return identity
