"""FastAPI 应用主文件

app 创建 + lifespan 管理：配置加载、DB 初始化/关闭、默认管理员、路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from testflow.core.bootstrap import seed_admin
from testflow.core.config import get_admin_password, get_db_path, load_settings
from testflow.core.store import create_store_group

from .errors import register_error_handlers
from .middleware.logging_config import setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .routes import auth, health, statistics, tasks, users

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化配置和 DB，关闭时清理连接"""
    settings = load_settings()
    app.state.settings = settings

    # 启动：初始化 Store
    db_path = get_db_path()
    store_group = await create_store_group(db_path)
    app.state.store_group = store_group

    # 空库时创建默认管理员
    await seed_admin(store_group, settings, get_admin_password())
    log.info(
        "gateway_started",
        db_path=db_path,
        token_lifetime_hours=settings.token_lifetime_hours,
    )

    yield

    # 关闭：清理数据库连接
    if hasattr(app.state, "store_group") and app.state.store_group:
        await app.state.store_group.conn.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="TestFlow API",
        version="0.1.0",
        description="TestFlow 测试任务管理后端",
        lifespan=lifespan,
    )

    app.add_middleware(LoggingMiddleware)

    # 初始化日志
    setup_logging()

    register_error_handlers(app)

    # 注册路由
    app.include_router(auth.router, tags=["auth"])
    app.include_router(users.router, tags=["users"])
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(statistics.router, tags=["statistics"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
