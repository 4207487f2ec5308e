"""会话声明与认证身份

SessionClaim 是令牌中携带的签名声明；AuthenticatedIdentity 是从请求头解析出的
调用者身份，作为显式参数传入每个需要鉴权的服务方法。
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .enums import UserRole


class SessionClaim(BaseModel):
    """令牌声明（不持久化）"""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(description="subject 用户 ID")
    username: str
    role: UserRole
    issued_at: datetime
    expires_at: datetime


class AuthenticatedIdentity(BaseModel):
    """已认证的调用者身份"""

    model_config = ConfigDict(frozen=True)

    user_id: str
    username: str
    role: UserRole

    @classmethod
    def from_claim(cls, claim: SessionClaim) -> "AuthenticatedIdentity":
        return cls(user_id=claim.user_id, username=claim.username, role=claim.role)
