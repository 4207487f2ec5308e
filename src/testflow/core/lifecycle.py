"""Task 生命周期 -- 状态派生字段、部分更新合并、分页参数归一

状态流转由调用方决定（new -> in_progress -> testing -> done/closed，允许回退），
系统只维护 closed_at：
- 更新后状态为 done/closed 且 closed_at 为空：写入当前时间
- 已有 closed_at：保持不变（重复关闭不重置）
- 更新后状态为非关闭态：closed_at 保持原值（重新打开不清空）
"""

from datetime import datetime

from .config import DEFAULT_PER_PAGE, MAX_PER_PAGE
from .exceptions import BadRequestError
from .models import Task, TaskStatus, is_closed

# 可通过更新请求修改的字段；id / task_number / assigned_by / created_at 不可变
MUTABLE_TASK_FIELDS: tuple[str, ...] = (
    "title",
    "description",
    "tester_id",
    "status",
    "urgency",
    "acceptance_criteria",
    "evaluation_criteria",
    "comment",
)

NON_NULLABLE_TASK_FIELDS: frozenset[str] = frozenset({"title", "status", "urgency"})


def resolve_closed_at(
    status: TaskStatus,
    previous: datetime | None,
    now: datetime,
) -> datetime | None:
    """根据更新后的状态计算 closed_at"""
    if is_closed(status) and previous is None:
        return now
    return previous


def apply_task_update(task: Task, changes: dict, now: datetime) -> Task:
    """合并部分更新

    Args:
        task: 当前任务
        changes: 请求中显式给出的字段（含显式 null）
        now: 当前时间，用于首次关闭

    Returns:
        合并后的 Task（closed_at 已派生）

    Raises:
        BadRequestError: 对不可空字段传入 null
    """
    for field in NON_NULLABLE_TASK_FIELDS:
        if field in changes and changes[field] is None:
            raise BadRequestError(f"{field} cannot be null")

    update = {k: v for k, v in changes.items() if k in MUTABLE_TASK_FIELDS}
    merged = task.model_copy(update=update)
    return merged.model_copy(
        update={"closed_at": resolve_closed_at(merged.status, task.closed_at, now)}
    )


def is_reopen(before: TaskStatus, after: TaskStatus) -> bool:
    """从关闭态回到非关闭态"""
    return is_closed(before) and not is_closed(after)


def clamp_pagination(page: int | None, per_page: int | None) -> tuple[int, int]:
    """页码从 1 开始；每页条数限制在 [1, MAX_PER_PAGE]，默认 DEFAULT_PER_PAGE"""
    page = max(page if page is not None else 1, 1)
    if per_page is None:
        per_page = DEFAULT_PER_PAGE
    per_page = min(max(per_page, 1), MAX_PER_PAGE)
    return page, per_page


def page_offset(page: int, per_page: int) -> int:
    return (page - 1) * per_page
