"""单语句原子写入封装

所有用户/任务变更都表达为一条 SQL（INSERT/UPDATE ... RETURNING 或 DELETE），
在此统一提交；失败时回滚并原样抛出，由上层映射为对应错误。
所有写入共享同一个连接，execute 到 commit/rollback 之间必须持有写锁，
否则一个请求的 rollback 会撤销其他请求尚未提交的写入。
时间戳以定长 ISO-8601 UTC 字符串存储，保证字典序即时间序。
"""

import asyncio
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

import aiosqlite


def to_db_ts(value: datetime) -> str:
    """datetime -> 定长 ISO 字符串（微秒精度、UTC）"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def from_db_ts(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value)


async def execute_returning(
    conn: aiosqlite.Connection,
    write_lock: asyncio.Lock,
    sql: str,
    params: Sequence[Any],
) -> aiosqlite.Row | None:
    """在写锁内执行带 RETURNING 的写语句并提交

    Returns:
        RETURNING 返回的行；未命中（如 UPDATE 目标不存在）时为 None
    """
    async with write_lock:
        try:
            cursor = await conn.execute(sql, params)
            row = await cursor.fetchone()
            await cursor.close()
            await conn.commit()
            return row
        except Exception:
            await conn.rollback()
            raise


async def execute_write(
    conn: aiosqlite.Connection,
    write_lock: asyncio.Lock,
    sql: str,
    params: Sequence[Any],
) -> int:
    """在写锁内执行写语句并提交

    Returns:
        受影响行数
    """
    async with write_lock:
        try:
            cursor = await conn.execute(sql, params)
            affected = cursor.rowcount
            await cursor.close()
            await conn.commit()
            return affected
        except Exception:
            await conn.rollback()
            raise
