"""UserStore SQLite 实现 -- 凭据存储

保存带盐 Argon2 哈希的用户记录；仅提供数据库操作，
唯一约束冲突以 aiosqlite.IntegrityError 原样抛出，由服务层判定。
"""

import asyncio
from datetime import datetime

import aiosqlite

from ..models.user import User
from .transaction import execute_returning, execute_write, from_db_ts, to_db_ts

_USER_COLUMNS = (
    "id, username, email, password_hash, full_name, role, is_active, "
    "created_at, updated_at"
)

# update_user 允许写入的列
_UPDATABLE_COLUMNS = frozenset(
    {"username", "email", "password_hash", "full_name", "role", "is_active"}
)


class SqliteUserStore:
    """UserStore 的 SQLite 实现"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        write_lock: asyncio.Lock,
    ) -> None:
        self._conn = conn
        # 与同连接上的其他 Store 共享
        self._write_lock = write_lock

    async def find_user_by_username(self, username: str) -> User | None:
        """按用户名精确匹配（区分大小写）"""
        cursor = await self._conn.execute(
            f"SELECT {_USER_COLUMNS} FROM users WHERE username = ?",
            (username,),
        )
        row = await cursor.fetchone()
        return self._row_to_user(row) if row is not None else None

    async def find_user_by_id(self, user_id: str) -> User | None:
        cursor = await self._conn.execute(
            f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?",
            (user_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_user(row) if row is not None else None

    async def list_users(self, limit: int, offset: int) -> list[User]:
        """按 created_at 倒序分页，id 作为次级排序键"""
        cursor = await self._conn.execute(
            f"SELECT {_USER_COLUMNS} FROM users "
            "ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
            (limit, offset),
        )
        rows = await cursor.fetchall()
        return [self._row_to_user(row) for row in rows]

    async def count_users(self) -> int:
        cursor = await self._conn.execute("SELECT COUNT(*) FROM users")
        row = await cursor.fetchone()
        return row[0] if row else 0

    async def insert_user(self, user: User) -> User:
        """插入用户记录并返回落盘结果"""
        row = await execute_returning(
            self._conn,
            self._write_lock,
            f"""
            INSERT INTO users (id, username, email, password_hash, full_name,
                               role, is_active, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            RETURNING {_USER_COLUMNS}
            """,
            (
                user.id,
                user.username,
                user.email,
                user.password_hash,
                user.full_name,
                user.role.value,
                int(user.is_active),
                to_db_ts(user.created_at),
                to_db_ts(user.updated_at),
            ),
        )
        return self._row_to_user(row)

    async def update_user(
        self,
        user_id: str,
        fields: dict,
        updated_at: datetime,
    ) -> User | None:
        """单条 UPDATE 写入给定字段，目标不存在时返回 None"""
        columns = [name for name in fields if name in _UPDATABLE_COLUMNS]
        assignments = [f"{name} = ?" for name in columns] + ["updated_at = ?"]
        params = [self._to_db_value(name, fields[name]) for name in columns]
        params += [to_db_ts(updated_at), user_id]

        row = await execute_returning(
            self._conn,
            self._write_lock,
            f"UPDATE users SET {', '.join(assignments)} WHERE id = ? "
            f"RETURNING {_USER_COLUMNS}",
            params,
        )
        return self._row_to_user(row) if row is not None else None

    async def delete_user(self, user_id: str) -> int:
        return await execute_write(
            self._conn,
            self._write_lock,
            "DELETE FROM users WHERE id = ?",
            (user_id,),
        )

    @staticmethod
    def _to_db_value(name: str, value):
        if name == "is_active":
            return int(value)
        if name == "role":
            return value.value if hasattr(value, "value") else str(value)
        return value

    @staticmethod
    def _row_to_user(row: aiosqlite.Row) -> User:
        """将数据库行转换为 User 模型"""
        return User(
            id=row["id"],
            username=row["username"],
            email=row["email"],
            password_hash=row["password_hash"],
            full_name=row["full_name"],
            role=row["role"],
            is_active=bool(row["is_active"]),
            created_at=from_db_ts(row["created_at"]),
            updated_at=from_db_ts(row["updated_at"]),
        )
