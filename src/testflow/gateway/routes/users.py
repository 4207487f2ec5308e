"""用户路由

GET    /api/users:       用户列表（管理员）
POST   /api/users:       创建用户（管理员）
GET    /api/users/me:    当前用户资料
GET    /api/users/{id}:  用户详情（管理员）
PUT    /api/users/{id}:  更新用户（管理员）
DELETE /api/users/{id}:  删除用户（管理员，不可删除自己）
"""

from fastapi import APIRouter, Depends, Query
from starlette.responses import Response
from testflow.core.models import PublicUser, UserCreate, UserUpdate

from ..deps import get_identity, get_settings, get_store_group
from ..services.user_service import UserService

router = APIRouter()


@router.get("/api/users", response_model=list[PublicUser])
async def list_users(
    page: int | None = Query(default=None, description="页码（从 1 开始）"),
    per_page: int | None = Query(default=None, description="每页条数（1-100）"),
    identity=Depends(get_identity),
    store_group=Depends(get_store_group),
    settings=Depends(get_settings),
):
    service = UserService(store_group, settings)
    return await service.list_users(identity, page, per_page)


@router.post("/api/users", response_model=PublicUser, status_code=201)
async def create_user(
    body: UserCreate,
    identity=Depends(get_identity),
    store_group=Depends(get_store_group),
    settings=Depends(get_settings),
):
    service = UserService(store_group, settings)
    return await service.create_user(identity, body)


@router.get("/api/users/me", response_model=PublicUser)
async def get_me(
    identity=Depends(get_identity),
    store_group=Depends(get_store_group),
    settings=Depends(get_settings),
):
    """当前用户资料（任何已认证用户）"""
    service = UserService(store_group, settings)
    return await service.get_me(identity)


@router.get("/api/users/{user_id}", response_model=PublicUser)
async def get_user(
    user_id: str,
    identity=Depends(get_identity),
    store_group=Depends(get_store_group),
    settings=Depends(get_settings),
):
    service = UserService(store_group, settings)
    return await service.get_user(identity, user_id)


@router.put("/api/users/{user_id}", response_model=PublicUser)
async def update_user(
    user_id: str,
    body: UserUpdate,
    identity=Depends(get_identity),
    store_group=Depends(get_store_group),
    settings=Depends(get_settings),
):
    service = UserService(store_group, settings)
    return await service.update_user(identity, user_id, body)


@router.delete("/api/users/{user_id}", status_code=204)
async def delete_user(
    user_id: str,
    identity=Depends(get_identity),
    store_group=Depends(get_store_group),
    settings=Depends(get_settings),
):
    service = UserService(store_group, settings)
    await service.delete_user(identity, user_id)
    return Response(status_code=204)
