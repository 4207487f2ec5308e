"""User Domain Model

password_hash 只写不读：序列化时始终排除，对外一律使用 PublicUser。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import UserRole


class PublicUser(BaseModel):
    """用户公开视图（不含密码哈希）"""

    id: str = Field(description="唯一标识，ULID 格式")
    username: str = Field(description="用户名（全局唯一）")
    email: str = Field(description="邮箱（全局唯一）")
    full_name: str = Field(description="姓名")
    role: UserRole = Field(description="角色")
    is_active: bool = Field(description="是否启用")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")


class User(BaseModel):
    """User 数据模型"""

    id: str = Field(description="唯一标识，ULID 格式")
    username: str = Field(description="用户名（全局唯一）")
    email: str = Field(description="邮箱（全局唯一）")
    password_hash: str = Field(exclude=True, repr=False, description="Argon2 密码哈希")
    full_name: str = Field(description="姓名")
    role: UserRole = Field(default=UserRole.DEVELOPER, description="角色")
    is_active: bool = Field(default=True, description="是否启用")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")

    def to_public(self) -> PublicUser:
        return PublicUser(**self.model_dump())
