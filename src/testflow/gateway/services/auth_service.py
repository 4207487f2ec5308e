"""AuthService -- 用户名/密码登录

校验流程：
1. 按用户名精确查找用户（未命中时执行 dummy 校验，保持耗时一致）
2. Argon2 校验密码
3. 拒绝停用账号（与密码错误返回相同错误）
4. 签发 JWT，返回令牌与用户公开视图
"""

import asyncio

import structlog
from pydantic import BaseModel
from testflow.core.config import AppSettings
from testflow.core.exceptions import UnauthorizedError
from testflow.core.models import PublicUser
from testflow.core.security import create_access_token, dummy_verify, verify_password
from testflow.core.store import StoreGroup

log = structlog.get_logger()

INVALID_CREDENTIALS = "Invalid username or password"


class LoginResult(BaseModel):
    """登录结果"""

    token: str
    token_type: str = "Bearer"
    user: PublicUser


class AuthService:
    """登录业务服务"""

    def __init__(self, store_group: StoreGroup, settings: AppSettings) -> None:
        self._stores = store_group
        self._settings = settings

    async def authenticate(self, username: str, password: str) -> LoginResult:
        """校验凭据并签发令牌

        Raises:
            UnauthorizedError: 用户不存在、已停用或密码错误（错误信息相同）
        """
        user = await self._stores.user_store.find_user_by_username(username)
        if user is None:
            await asyncio.to_thread(dummy_verify, self._settings)
            log.info("login_failed", username=username, reason="unknown_user")
            raise UnauthorizedError(INVALID_CREDENTIALS)

        password_ok = await asyncio.to_thread(
            verify_password, password, user.password_hash, self._settings
        )
        if not password_ok:
            log.info("login_failed", username=username, reason="bad_password")
            raise UnauthorizedError(INVALID_CREDENTIALS)
        if not user.is_active:
            log.info("login_failed", username=username, reason="inactive")
            raise UnauthorizedError(INVALID_CREDENTIALS)

        token = create_access_token(user, self._settings)
        log.info("login_succeeded", user_id=user.id, role=user.role.value)
        return LoginResult(token=token, user=user.to_public())
