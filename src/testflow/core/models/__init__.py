"""TestFlow Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    CLOSED_STATES,
    TaskStatus,
    TaskUrgency,
    UserRole,
    is_closed,
)
from .identity import AuthenticatedIdentity, SessionClaim
from .payloads import (
    LoginRequest,
    TaskCreate,
    TaskUpdate,
    UserCreate,
    UserUpdate,
)
from .task import EmployeeStats, Task, TaskDetail, TaskFilter, TaskSummary
from .user import PublicUser, User

__all__ = [
    # 枚举
    "UserRole",
    "TaskStatus",
    "TaskUrgency",
    # 状态机
    "CLOSED_STATES",
    "is_closed",
    # 身份
    "SessionClaim",
    "AuthenticatedIdentity",
    # User
    "User",
    "PublicUser",
    # Task
    "Task",
    "TaskDetail",
    "TaskSummary",
    "TaskFilter",
    "EmployeeStats",
    # Payloads
    "LoginRequest",
    "UserCreate",
    "UserUpdate",
    "TaskCreate",
    "TaskUpdate",
]
