"""登录路由

POST /api/auth/login: 校验用户名/密码，返回 Bearer 令牌与用户信息。
- 200: 登录成功
- 400: 请求体校验失败
- 401: 用户名或密码错误、账号已停用
"""

from fastapi import APIRouter, Depends
from testflow.core.models import LoginRequest

from ..deps import get_settings, get_store_group
from ..services.auth_service import AuthService, LoginResult

router = APIRouter()


@router.post("/api/auth/login", response_model=LoginResult)
async def login(
    body: LoginRequest,
    store_group=Depends(get_store_group),
    settings=Depends(get_settings),
):
    """登录并获取 JWT"""
    service = AuthService(store_group, settings)
    return await service.authenticate(body.username, body.password)
