"""请求 Payload 模型

描述登录、用户管理、任务创建/更新的输入结构与字段校验规则。
枚举字段由 pydantic 在边界处校验，未知字符串直接拒绝。
"""

from pydantic import BaseModel, EmailStr, Field

from .enums import TaskStatus, TaskUrgency, UserRole


class LoginRequest(BaseModel):
    username: str = Field(min_length=1, description="用户名")
    password: str = Field(min_length=1, description="密码")


class UserCreate(BaseModel):
    """创建用户（仅管理员）"""

    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=1, max_length=100)
    role: UserRole


class UserUpdate(BaseModel):
    """更新用户（仅管理员），缺省或 null 字段保持原值"""

    username: str | None = Field(default=None, min_length=3, max_length=50)
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=6)
    full_name: str | None = Field(default=None, min_length=1, max_length=100)
    role: UserRole | None = None
    is_active: bool | None = None


class TaskCreate(BaseModel):
    """创建任务，urgency 缺省为 medium"""

    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    tester_id: str | None = None
    urgency: TaskUrgency | None = None
    acceptance_criteria: str | None = None
    evaluation_criteria: str | None = None
    comment: str | None = None


class TaskUpdate(BaseModel):
    """更新任务

    出现在请求中的字段替换原值（显式 null 清空可空字段），
    未出现的字段保持原值。通过 model_fields_set 区分两者。
    """

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    tester_id: str | None = None
    status: TaskStatus | None = None
    urgency: TaskUrgency | None = None
    acceptance_criteria: str | None = None
    evaluation_criteria: str | None = None
    comment: str | None = None

    def changes(self) -> dict:
        """返回请求中显式给出的字段"""
        return self.model_dump(exclude_unset=True)
