"""集成测试共享 fixture -- 通过 lifespan 启动完整应用（含默认管理员）"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

ADMIN_PASSWORD = "integration-admin"


@pytest_asyncio.fixture
async def integration_app(tmp_path: Path, monkeypatch):
    """集成测试用 FastAPI app，由 lifespan 完成初始化"""
    monkeypatch.setenv("TESTFLOW_DB_PATH", str(tmp_path / "sqlite" / "test.db"))
    monkeypatch.setenv("TESTFLOW_JWT_SECRET", "integration-secret")
    monkeypatch.setenv("TESTFLOW_PASSWORD_TIME_COST", "1")
    monkeypatch.setenv("TESTFLOW_ADMIN_PASSWORD", ADMIN_PASSWORD)

    from testflow.gateway.main import create_app

    app = create_app()
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def api(integration_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=integration_app),
        base_url="http://test",
    ) as ac:
        yield ac
