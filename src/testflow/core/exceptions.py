"""TestFlow 异常体系

鉴权、权限、校验失败在决策点就地抛出，由网关层统一映射为 HTTP 响应。
"""


class AppError(Exception):
    """TestFlow 基础异常"""

    code = "INTERNAL"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnauthorizedError(AppError):
    """凭据或令牌缺失、无效、过期"""

    code = "UNAUTHORIZED"


class ForbiddenError(AppError):
    """已认证，但角色或归属规则不允许该操作"""

    code = "FORBIDDEN"


class NotFoundError(AppError):
    """资源不存在"""

    code = "NOT_FOUND"


class BadRequestError(AppError):
    """请求不合法（含禁止删除自身账号）"""

    code = "BAD_REQUEST"


class ConflictError(AppError):
    """唯一字段冲突（用户名 / 邮箱）"""

    code = "CONFLICT"


class InternalError(AppError):
    """存储或密码哈希失败"""

    code = "INTERNAL"
