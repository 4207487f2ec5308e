"""Task Domain Model

task_number 由存储层分配，assigned_by 与 created_at 创建后不可变，
closed_at 为派生字段，仅由状态更新写入。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import TaskStatus, TaskUrgency


class Task(BaseModel):
    """Task 数据模型"""

    id: str = Field(description="唯一标识，ULID 格式")
    task_number: int = Field(description="顺序编号（存储层分配）")
    title: str = Field(description="任务标题")
    description: str | None = Field(default=None, description="任务描述")
    assigned_by: str = Field(description="创建者（指派人）ID")
    tester_id: str | None = Field(default=None, description="执行人 ID")
    status: TaskStatus = Field(default=TaskStatus.NEW, description="当前状态")
    urgency: TaskUrgency = Field(default=TaskUrgency.MEDIUM, description="紧急程度")
    created_at: datetime = Field(description="创建时间")
    closed_at: datetime | None = Field(default=None, description="首次关闭时间")
    acceptance_criteria: str | None = Field(default=None, description="验收标准")
    evaluation_criteria: str | None = Field(default=None, description="评估标准")
    comment: str | None = Field(default=None, description="备注")


class TaskDetail(Task):
    """Task 详情（附带创建者与执行人姓名）"""

    assigned_by_name: str | None = None
    tester_name: str | None = None


class TaskSummary(BaseModel):
    """任务摘要（列表项）"""

    id: str
    task_number: int
    title: str
    status: TaskStatus
    urgency: TaskUrgency


class TaskFilter(BaseModel):
    """任务列表筛选条件，各条件之间为 AND 关系"""

    status: TaskStatus | None = None
    urgency: TaskUrgency | None = None
    tester_id: str | None = None
    assigned_by: str | None = None


class EmployeeStats(BaseModel):
    """员工统计（按执行人归集）"""

    user_id: str
    full_name: str
    total_tasks: int = 0
    completed_tasks: int = 0
    in_progress_tasks: int = 0
