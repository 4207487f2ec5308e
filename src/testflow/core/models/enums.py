"""枚举定义

包含 UserRole、TaskStatus、TaskUrgency 三个封闭枚举，枚举值即线上字符串表示；
以及 TaskStatus 的关闭态集合 CLOSED_STATES。
"""

from enum import StrEnum


class UserRole(StrEnum):
    """用户角色"""

    ADMIN = "admin"
    MANAGER = "manager"
    TESTER = "tester"
    DEVELOPER = "developer"


class TaskStatus(StrEnum):
    """Task 状态机

    流转由调用方决定（允许回退），系统只维护 closed_at 派生字段。
    """

    NEW = "new"
    IN_PROGRESS = "in_progress"
    TESTING = "testing"
    DONE = "done"
    CLOSED = "closed"


class TaskUrgency(StrEnum):
    """Task 紧急程度，与工作流状态无关"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# 进入这些状态时写入 closed_at
CLOSED_STATES: frozenset[TaskStatus] = frozenset({TaskStatus.DONE, TaskStatus.CLOSED})


def is_closed(status: TaskStatus) -> bool:
    """状态是否属于关闭态（done / closed）"""
    return status in CLOSED_STATES
