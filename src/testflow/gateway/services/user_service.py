"""UserService -- 用户管理与个人资料

除查看本人资料外，所有操作仅限管理员；
删除自身账号在任何角色下都被拒绝（先于角色判定）。
"""

import asyncio
from datetime import UTC, datetime

import aiosqlite
import structlog
from testflow.core.config import AppSettings
from testflow.core.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
)
from testflow.core.lifecycle import clamp_pagination, page_offset
from testflow.core.models import (
    AuthenticatedIdentity,
    PublicUser,
    User,
    UserCreate,
    UserUpdate,
)
from testflow.core.policy import can_delete_user, can_manage_users
from testflow.core.security import hash_password
from testflow.core.store import StoreGroup
from ulid import ULID

log = structlog.get_logger()


class UserService:
    """用户业务服务"""

    def __init__(self, store_group: StoreGroup, settings: AppSettings) -> None:
        self._stores = store_group
        self._settings = settings

    async def get_me(self, identity: AuthenticatedIdentity) -> PublicUser:
        """查看本人资料（任何已认证用户）"""
        user = await self._stores.user_store.find_user_by_id(identity.user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user.to_public()

    async def list_users(
        self,
        identity: AuthenticatedIdentity,
        page: int | None = None,
        per_page: int | None = None,
    ) -> list[PublicUser]:
        self._require_admin(identity)
        page, per_page = clamp_pagination(page, per_page)
        users = await self._stores.user_store.list_users(
            limit=per_page, offset=page_offset(page, per_page)
        )
        return [u.to_public() for u in users]

    async def get_user(self, identity: AuthenticatedIdentity, user_id: str) -> PublicUser:
        self._require_admin(identity)
        user = await self._stores.user_store.find_user_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user.to_public()

    async def create_user(
        self,
        identity: AuthenticatedIdentity,
        payload: UserCreate,
    ) -> PublicUser:
        """创建用户

        Raises:
            ForbiddenError: 调用者不是管理员
            ConflictError: 用户名或邮箱已存在
        """
        self._require_admin(identity)

        password_hash = await asyncio.to_thread(
            hash_password, payload.password, self._settings
        )
        now = datetime.now(UTC)
        user = User(
            id=str(ULID()),
            username=payload.username,
            email=payload.email,
            password_hash=password_hash,
            full_name=payload.full_name,
            role=payload.role,
            created_at=now,
            updated_at=now,
        )
        try:
            created = await self._stores.user_store.insert_user(user)
        except aiosqlite.IntegrityError as e:
            if self._is_unique_conflict(e):
                raise ConflictError("Username or email already exists") from e
            raise

        log.info(
            "user_created",
            user_id=created.id,
            role=created.role.value,
            by=identity.user_id,
        )
        return created.to_public()

    async def update_user(
        self,
        identity: AuthenticatedIdentity,
        user_id: str,
        payload: UserUpdate,
    ) -> PublicUser:
        """更新用户，缺省字段保持原值；提供 password 时重新哈希"""
        self._require_admin(identity)

        fields = payload.model_dump(exclude_none=True)
        if "password" in fields:
            fields["password_hash"] = await asyncio.to_thread(
                hash_password, fields.pop("password"), self._settings
            )

        try:
            updated = await self._stores.user_store.update_user(
                user_id, fields, updated_at=datetime.now(UTC)
            )
        except aiosqlite.IntegrityError as e:
            if self._is_unique_conflict(e):
                raise ConflictError("Username or email already exists") from e
            raise

        if updated is None:
            raise NotFoundError("User not found")

        log.info(
            "user_updated",
            user_id=user_id,
            fields=sorted(k for k in fields if k != "password_hash"),
            password_changed="password_hash" in fields,
            by=identity.user_id,
        )
        return updated.to_public()

    async def delete_user(self, identity: AuthenticatedIdentity, user_id: str) -> None:
        """删除用户

        Raises:
            BadRequestError: 删除自身账号（任何角色）
            ForbiddenError: 调用者不是管理员
            NotFoundError: 用户不存在
        """
        if not can_delete_user(user_id, identity.user_id):
            raise BadRequestError("Cannot delete your own account")
        self._require_admin(identity)

        affected = await self._stores.user_store.delete_user(user_id)
        if affected == 0:
            raise NotFoundError("User not found")

        log.info("user_deleted", user_id=user_id, by=identity.user_id)

    @staticmethod
    def _require_admin(identity: AuthenticatedIdentity) -> None:
        if not can_manage_users(identity.role):
            raise ForbiddenError("Only administrators can manage users")

    @staticmethod
    def _is_unique_conflict(error: Exception) -> bool:
        if not isinstance(error, aiosqlite.IntegrityError):
            return False
        text = str(error)
        return "users.username" in text or "users.email" in text
