"""全局 pytest 配置 -- 临时 SQLite 数据库、测试配置、用户/令牌工厂与 HTTP 客户端 fixture"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from testflow.core.config import AppSettings
from testflow.core.models import User, UserRole
from testflow.core.security import create_access_token, hash_password
from testflow.core.store import StoreGroup, create_store_group
from ulid import ULID

TEST_PASSWORD = "secret123"


@pytest.fixture
def settings() -> AppSettings:
    """固定密钥 + 最低哈希强度的测试配置"""
    return AppSettings(
        jwt_secret=SecretStr("test-secret-key"),
        token_lifetime_hours=24,
        password_time_cost=1,
    )


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "sqlite" / "test.db"


@pytest_asyncio.fixture
async def store_group(tmp_db_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """提供已初始化的 StoreGroup"""
    group = await create_store_group(str(tmp_db_path))
    yield group
    await group.conn.close()


@pytest.fixture
def make_user(store_group: StoreGroup, settings: AppSettings):
    """用户工厂：直接写入 users 表，绕过 API 权限"""

    async def _make(
        role: UserRole,
        username: str | None = None,
        full_name: str | None = None,
        password: str = TEST_PASSWORD,
        is_active: bool = True,
    ) -> User:
        username = username or f"{role.value}_{str(ULID())[-6:].lower()}"
        now = datetime.now(UTC)
        return await store_group.user_store.insert_user(
            User(
                id=str(ULID()),
                username=username,
                email=f"{username}@example.com",
                password_hash=hash_password(password, settings),
                full_name=full_name or username.title(),
                role=role,
                is_active=is_active,
                created_at=now,
                updated_at=now,
            )
        )

    return _make


@pytest.fixture
def auth_headers(settings: AppSettings):
    """为指定用户签发令牌并构造 Authorization 头"""

    def _headers(user: User) -> dict[str, str]:
        token = create_access_token(user, settings)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest_asyncio.fixture
async def test_app(store_group: StoreGroup, settings: AppSettings):
    """测试用 FastAPI app（手动初始化 app.state，绕过 lifespan）"""
    from testflow.gateway.main import create_app

    app = create_app()
    app.state.store_group = store_group
    app.state.settings = settings
    yield app


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac
