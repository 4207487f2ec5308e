"""TaskService -- 任务创建/查询/更新/删除与员工统计

每个操作先按访问控制策略判定，再执行单条原子存储操作：
- 创建/编辑：除管理员外所有角色；创建者固定为调用者
- 删除：创建者或经理；管理员始终禁止
- 统计：经理或管理员
状态更新时由 lifecycle.apply_task_update 派生 closed_at。
"""

from datetime import UTC, datetime

import structlog
from testflow.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from testflow.core.lifecycle import (
    apply_task_update,
    clamp_pagination,
    is_reopen,
    page_offset,
)
from testflow.core.models import (
    AuthenticatedIdentity,
    EmployeeStats,
    Task,
    TaskCreate,
    TaskDetail,
    TaskFilter,
    TaskSummary,
    TaskUpdate,
    TaskUrgency,
)
from testflow.core.policy import (
    can_create_or_edit_task,
    can_delete_task,
    can_view_statistics,
)
from testflow.core.store import StoreGroup
from ulid import ULID

log = structlog.get_logger()


class TaskService:
    """任务业务服务"""

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def list_tasks(
        self,
        identity: AuthenticatedIdentity,
        filters: TaskFilter | None = None,
        page: int | None = None,
        per_page: int | None = None,
    ) -> list[TaskSummary]:
        """查询任务列表（任何已认证用户）"""
        page, per_page = clamp_pagination(page, per_page)
        tasks = await self._stores.task_store.list_tasks(
            filters or TaskFilter(),
            limit=per_page,
            offset=page_offset(page, per_page),
        )
        return [
            TaskSummary(
                id=t.id,
                task_number=t.task_number,
                title=t.title,
                status=t.status,
                urgency=t.urgency,
            )
            for t in tasks
        ]

    async def get_task(self, identity: AuthenticatedIdentity, task_id: str) -> TaskDetail:
        """查询任务详情（任何已认证用户）"""
        task = await self._stores.task_store.find_task_by_id(task_id)
        if task is None:
            raise NotFoundError("Task not found")
        return await self._to_detail(task)

    async def create_task(
        self,
        identity: AuthenticatedIdentity,
        payload: TaskCreate,
    ) -> TaskDetail:
        """创建任务，创建者为调用者，状态为 new，urgency 缺省为 medium"""
        if not can_create_or_edit_task(identity.role):
            raise ForbiddenError("Administrators cannot create tasks")
        if payload.tester_id is not None:
            await self._ensure_user_exists(payload.tester_id)

        task = await self._stores.task_store.insert_task(
            task_id=str(ULID()),
            title=payload.title,
            description=payload.description,
            assigned_by=identity.user_id,
            tester_id=payload.tester_id,
            urgency=payload.urgency or TaskUrgency.MEDIUM,
            acceptance_criteria=payload.acceptance_criteria,
            evaluation_criteria=payload.evaluation_criteria,
            comment=payload.comment,
            created_at=datetime.now(UTC),
        )
        log.info(
            "task_created",
            task_id=task.id,
            task_number=task.task_number,
            assigned_by=identity.user_id,
            urgency=task.urgency.value,
        )
        return await self._to_detail(task)

    async def update_task(
        self,
        identity: AuthenticatedIdentity,
        task_id: str,
        payload: TaskUpdate,
    ) -> TaskDetail:
        """部分更新任务

        请求中出现的字段替换原值，未出现的保持原值；
        首次进入 done/closed 时写入 closed_at，重新打开时保留 closed_at。
        """
        if not can_create_or_edit_task(identity.role):
            raise ForbiddenError("Administrators cannot edit tasks")

        existing = await self._stores.task_store.find_task_by_id(task_id)
        if existing is None:
            raise NotFoundError("Task not found")

        changes = payload.changes()
        if changes.get("tester_id") is not None:
            await self._ensure_user_exists(changes["tester_id"])

        merged = apply_task_update(existing, changes, now=datetime.now(UTC))
        fields = {name: getattr(merged, name) for name in changes}
        newly_closed = existing.closed_at is None and merged.closed_at is not None
        if newly_closed:
            fields["closed_at"] = merged.closed_at

        updated = await self._stores.task_store.update_task(task_id, fields)
        if updated is None:
            raise NotFoundError("Task not found")

        # 并发关闭时以库中最先写入的 closed_at 为准
        if newly_closed and updated.closed_at == merged.closed_at:
            log.info("task_closed", task_id=task_id, status=updated.status.value)
        elif is_reopen(existing.status, updated.status):
            # closed_at 保留首次关闭时间
            log.info(
                "task_reopened",
                task_id=task_id,
                status=updated.status.value,
                closed_at=updated.closed_at.isoformat() if updated.closed_at else None,
            )
        log.info(
            "task_updated",
            task_id=task_id,
            fields=sorted(changes),
            by=identity.user_id,
        )
        return await self._to_detail(updated)

    async def delete_task(self, identity: AuthenticatedIdentity, task_id: str) -> None:
        """删除任务（创建者或经理）"""
        if not can_create_or_edit_task(identity.role):
            raise ForbiddenError("Administrators cannot manage tasks")

        task = await self._stores.task_store.find_task_by_id(task_id)
        if task is None:
            raise NotFoundError("Task not found")

        if not can_delete_task(identity.role, task.assigned_by, identity.user_id):
            raise ForbiddenError("Only the task creator or a manager can delete tasks")

        affected = await self._stores.task_store.delete_task(task_id)
        if affected == 0:
            raise NotFoundError("Task not found")
        log.info("task_deleted", task_id=task_id, by=identity.user_id)

    async def employee_stats(self, identity: AuthenticatedIdentity) -> list[EmployeeStats]:
        """员工统计（经理或管理员）"""
        if not can_view_statistics(identity.role):
            raise ForbiddenError("Only managers and admins can view statistics")
        return await self._stores.task_store.aggregate_employee_stats()

    async def _ensure_user_exists(self, user_id: str) -> None:
        if await self._stores.user_store.find_user_by_id(user_id) is None:
            raise BadRequestError("Tester not found")

    async def _full_name(self, user_id: str | None) -> str | None:
        if user_id is None:
            return None
        user = await self._stores.user_store.find_user_by_id(user_id)
        return user.full_name if user else None

    async def _to_detail(self, task: Task) -> TaskDetail:
        return TaskDetail(
            **task.model_dump(),
            assigned_by_name=await self._full_name(task.assigned_by),
            tester_name=await self._full_name(task.tester_id),
        )
