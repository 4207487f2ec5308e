"""SQLite 数据库初始化

PRAGMA 配置 + users / tasks 两张表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# users 表 DDL
_USERS_DDL = """
CREATE TABLE IF NOT EXISTS users (
    id             TEXT PRIMARY KEY,
    username       TEXT NOT NULL UNIQUE,
    email          TEXT NOT NULL UNIQUE,
    password_hash  TEXT NOT NULL,
    full_name      TEXT NOT NULL,
    role           TEXT NOT NULL DEFAULT 'developer'
                   CHECK (role IN ('admin', 'manager', 'tester', 'developer')),
    is_active      INTEGER NOT NULL DEFAULT 1,
    created_at     TEXT NOT NULL,
    updated_at     TEXT NOT NULL
);
"""

_USERS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_users_role ON users(role);",
    "CREATE INDEX IF NOT EXISTS idx_users_created_at ON users(created_at DESC);",
]

# tasks 表 DDL
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    id                   TEXT PRIMARY KEY,
    task_number          INTEGER NOT NULL UNIQUE,
    title                TEXT NOT NULL,
    description          TEXT,
    assigned_by          TEXT NOT NULL,
    tester_id            TEXT,
    status               TEXT NOT NULL DEFAULT 'new'
                         CHECK (status IN ('new', 'in_progress', 'testing', 'done', 'closed')),
    urgency              TEXT NOT NULL DEFAULT 'medium'
                         CHECK (urgency IN ('low', 'medium', 'high', 'critical')),
    created_at           TEXT NOT NULL,
    closed_at            TEXT,
    acceptance_criteria  TEXT,
    evaluation_criteria  TEXT,
    comment              TEXT,

    FOREIGN KEY (assigned_by) REFERENCES users(id) ON DELETE CASCADE,
    FOREIGN KEY (tester_id) REFERENCES users(id) ON DELETE SET NULL
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_urgency ON tasks(urgency);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_assigned_by ON tasks(assigned_by);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_tester_id ON tasks(tester_id);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks(created_at DESC, id DESC);",
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表（tasks 外键依赖 users）
    await conn.execute(_USERS_DDL)
    await conn.execute(_TASKS_DDL)

    # 创建索引
    for idx_sql in _USERS_INDEXES + _TASKS_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
