"""TaskStore SQLite 实现

task_number 在 INSERT 语句内部分配（MAX + 1，唯一索引兜底）；
更新与删除均为单条语句，状态派生逻辑在 lifecycle 模块完成。
"""

import asyncio
from datetime import datetime

import aiosqlite

from ..models.enums import TaskStatus, TaskUrgency
from ..models.task import EmployeeStats, Task, TaskFilter
from .transaction import execute_returning, execute_write, from_db_ts, to_db_ts

_TASK_COLUMNS = (
    "id, task_number, title, description, assigned_by, tester_id, status, "
    "urgency, created_at, closed_at, acceptance_criteria, evaluation_criteria, "
    "comment"
)

# update_task 允许写入的列
_UPDATABLE_COLUMNS = frozenset(
    {
        "title",
        "description",
        "tester_id",
        "status",
        "urgency",
        "closed_at",
        "acceptance_criteria",
        "evaluation_criteria",
        "comment",
    }
)


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        write_lock: asyncio.Lock,
    ) -> None:
        self._conn = conn
        # 与同连接上的其他 Store 共享
        self._write_lock = write_lock

    async def find_task_by_id(self, task_id: str) -> Task | None:
        """根据 id 查询任务"""
        cursor = await self._conn.execute(
            f"SELECT {_TASK_COLUMNS} FROM tasks WHERE id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_task(row) if row is not None else None

    async def list_tasks(
        self,
        filters: TaskFilter,
        limit: int,
        offset: int,
    ) -> list[Task]:
        """查询任务列表，筛选条件 AND 组合，按 created_at、id 倒序"""
        conditions: list[str] = []
        params: list = []
        if filters.status is not None:
            conditions.append("status = ?")
            params.append(filters.status.value)
        if filters.urgency is not None:
            conditions.append("urgency = ?")
            params.append(filters.urgency.value)
        if filters.tester_id is not None:
            conditions.append("tester_id = ?")
            params.append(filters.tester_id)
        if filters.assigned_by is not None:
            conditions.append("assigned_by = ?")
            params.append(filters.assigned_by)

        where = f"WHERE {' AND '.join(conditions)} " if conditions else ""
        cursor = await self._conn.execute(
            f"SELECT {_TASK_COLUMNS} FROM tasks {where}"
            "ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
            (*params, limit, offset),
        )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def insert_task(
        self,
        *,
        task_id: str,
        title: str,
        assigned_by: str,
        created_at: datetime,
        urgency: TaskUrgency = TaskUrgency.MEDIUM,
        description: str | None = None,
        tester_id: str | None = None,
        acceptance_criteria: str | None = None,
        evaluation_criteria: str | None = None,
        comment: str | None = None,
    ) -> Task:
        """插入任务，状态固定为 new，task_number 由语句分配"""
        row = await execute_returning(
            self._conn,
            self._write_lock,
            f"""
            INSERT INTO tasks (id, task_number, title, description, assigned_by,
                               tester_id, status, urgency, created_at,
                               acceptance_criteria, evaluation_criteria, comment)
            VALUES (?, (SELECT COALESCE(MAX(task_number), 0) + 1 FROM tasks),
                    ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            RETURNING {_TASK_COLUMNS}
            """,
            (
                task_id,
                title,
                description,
                assigned_by,
                tester_id,
                TaskStatus.NEW.value,
                urgency.value,
                to_db_ts(created_at),
                acceptance_criteria,
                evaluation_criteria,
                comment,
            ),
        )
        return self._row_to_task(row)

    async def update_task(self, task_id: str, fields: dict) -> Task | None:
        """单条 UPDATE 写入给定字段，目标不存在时返回 None

        closed_at 只在库中为空时写入，并发关闭时保留最先写入的时间。
        """
        columns = [name for name in fields if name in _UPDATABLE_COLUMNS]
        if not columns:
            return await self.find_task_by_id(task_id)

        assignments = ", ".join(
            "closed_at = COALESCE(closed_at, ?)" if name == "closed_at" else f"{name} = ?"
            for name in columns
        )
        params = [self._to_db_value(fields[name]) for name in columns]
        row = await execute_returning(
            self._conn,
            self._write_lock,
            f"UPDATE tasks SET {assignments} WHERE id = ? RETURNING {_TASK_COLUMNS}",
            (*params, task_id),
        )
        return self._row_to_task(row) if row is not None else None

    async def delete_task(self, task_id: str) -> int:
        return await execute_write(
            self._conn,
            self._write_lock,
            "DELETE FROM tasks WHERE id = ?",
            (task_id,),
        )

    async def aggregate_employee_stats(self) -> list[EmployeeStats]:
        """按执行人归集所有非管理员用户的任务数，按姓名排序"""
        cursor = await self._conn.execute(
            """
            SELECT u.id AS user_id,
                   u.full_name AS full_name,
                   COUNT(t.id) AS total_tasks,
                   COALESCE(SUM(CASE WHEN t.status IN ('done', 'closed')
                                     THEN 1 ELSE 0 END), 0) AS completed_tasks,
                   COALESCE(SUM(CASE WHEN t.status = 'in_progress'
                                     THEN 1 ELSE 0 END), 0) AS in_progress_tasks
            FROM users u
            LEFT JOIN tasks t ON t.tester_id = u.id
            WHERE u.role != 'admin'
            GROUP BY u.id, u.full_name
            ORDER BY u.full_name, u.id
            """
        )
        rows = await cursor.fetchall()
        return [
            EmployeeStats(
                user_id=row["user_id"],
                full_name=row["full_name"],
                total_tasks=row["total_tasks"],
                completed_tasks=row["completed_tasks"],
                in_progress_tasks=row["in_progress_tasks"],
            )
            for row in rows
        ]

    @staticmethod
    def _to_db_value(value):
        if isinstance(value, datetime):
            return to_db_ts(value)
        if hasattr(value, "value"):
            return value.value
        return value

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        return Task(
            id=row["id"],
            task_number=row["task_number"],
            title=row["title"],
            description=row["description"],
            assigned_by=row["assigned_by"],
            tester_id=row["tester_id"],
            status=row["status"],
            urgency=row["urgency"],
            created_at=from_db_ts(row["created_at"]),
            closed_at=from_db_ts(row["closed_at"]),
            acceptance_criteria=row["acceptance_criteria"],
            evaluation_criteria=row["evaluation_criteria"],
            comment=row["comment"],
        )
