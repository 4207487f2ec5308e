"""初始数据 -- 空库时创建默认管理员"""

from datetime import UTC, datetime

import structlog
from ulid import ULID

from .config import DEFAULT_ADMIN_PASSWORD, AppSettings
from .models import User, UserRole
from .security import hash_password
from .store import StoreGroup

log = structlog.get_logger()

DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_EMAIL = "admin@testflow.local"
DEFAULT_ADMIN_FULL_NAME = "System Administrator"


async def seed_admin(
    store_group: StoreGroup,
    settings: AppSettings,
    password: str,
) -> User | None:
    """users 表为空时创建默认管理员

    Returns:
        新建的管理员；已有用户时返回 None
    """
    if await store_group.user_store.count_users() > 0:
        return None

    now = datetime.now(UTC)
    admin = await store_group.user_store.insert_user(
        User(
            id=str(ULID()),
            username=DEFAULT_ADMIN_USERNAME,
            email=DEFAULT_ADMIN_EMAIL,
            password_hash=hash_password(password, settings),
            full_name=DEFAULT_ADMIN_FULL_NAME,
            role=UserRole.ADMIN,
            created_at=now,
            updated_at=now,
        )
    )

    if password == DEFAULT_ADMIN_PASSWORD:
        log.warning(
            "default_admin_created_with_default_password",
            username=admin.username,
            env_var="TESTFLOW_ADMIN_PASSWORD",
        )
    else:
        log.info("default_admin_created", username=admin.username)
    return admin
