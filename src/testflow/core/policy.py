"""访问控制策略 -- 无状态的允许/拒绝判定

只依赖 (role, caller_id, owner_id)，不访问存储、不抛异常；
由服务层根据判定结果抛出 ForbiddenError / BadRequestError。
"""

from .models import UserRole


def can_manage_users(role: UserRole) -> bool:
    """用户管理（列表、查看他人、增删改）仅限管理员"""
    return role == UserRole.ADMIN


def can_create_or_edit_task(role: UserRole) -> bool:
    """管理员不参与任务的创建与编辑（职责分离）"""
    return role != UserRole.ADMIN


def can_delete_task(role: UserRole, creator_id: str, caller_id: str) -> bool:
    """经理或任务创建者可删除；管理员任何情况下都不可"""
    if role == UserRole.ADMIN:
        return False
    return role == UserRole.MANAGER or creator_id == caller_id


def can_view_statistics(role: UserRole) -> bool:
    return role in (UserRole.MANAGER, UserRole.ADMIN)


def can_delete_user(target_id: str, caller_id: str) -> bool:
    """任何角色都不能删除自己的账号，独立于用户管理权限判定"""
    return target_id != caller_id
