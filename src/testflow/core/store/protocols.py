"""Store Protocol 接口定义

定义 UserStore、TaskStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from datetime import datetime
from typing import Protocol

from ..models.enums import TaskUrgency
from ..models.task import EmployeeStats, Task, TaskFilter
from ..models.user import User


class UserStore(Protocol):
    """User 存储接口（凭据存储）"""

    async def find_user_by_username(self, username: str) -> User | None:
        """按用户名精确查询"""
        ...

    async def find_user_by_id(self, user_id: str) -> User | None:
        """按 id 查询"""
        ...

    async def list_users(self, limit: int, offset: int) -> list[User]:
        """分页查询用户"""
        ...

    async def count_users(self) -> int:
        """用户总数"""
        ...

    async def insert_user(self, user: User) -> User:
        """插入用户"""
        ...

    async def update_user(
        self,
        user_id: str,
        fields: dict,
        updated_at: datetime,
    ) -> User | None:
        """更新用户字段"""
        ...

    async def delete_user(self, user_id: str) -> int:
        """删除用户，返回受影响行数"""
        ...


class TaskStore(Protocol):
    """Task 存储接口"""

    async def find_task_by_id(self, task_id: str) -> Task | None:
        """按 id 查询"""
        ...

    async def list_tasks(
        self,
        filters: TaskFilter,
        limit: int,
        offset: int,
    ) -> list[Task]:
        """筛选 + 分页查询"""
        ...

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
        """插入任务（task_number 由存储分配）"""
        ...

    async def update_task(self, task_id: str, fields: dict) -> Task | None:
        """更新任务字段"""
        ...

    async def delete_task(self, task_id: str) -> int:
        """删除任务，返回受影响行数"""
        ...

    async def aggregate_employee_stats(self) -> list[EmployeeStats]:
        """按执行人统计"""
        ...
