"""CLI 入口模块 -- python -m testflow.core <command>

支持的命令：
  seed-admin                 空库时创建默认管理员
  reset-password <username>  交互式重置用户密码（忘记管理员密码时使用）
"""

import asyncio
import getpass
import sys
from datetime import UTC, datetime

from .config import get_admin_password, get_db_path, load_settings

USAGE = """用法: python -m testflow.core <command>
命令:
  seed-admin                 空库时创建默认管理员
  reset-password <username>  交互式重置用户密码"""

MIN_PASSWORD_LENGTH = 6


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(USAGE)
        sys.exit(1)

    command = sys.argv[1]

    if command == "seed-admin":
        asyncio.run(seed_admin())
    elif command == "reset-password" and len(sys.argv) == 3:
        password = getpass.getpass("新密码: ")
        if len(password) < MIN_PASSWORD_LENGTH:
            print(f"密码至少 {MIN_PASSWORD_LENGTH} 位")
            sys.exit(1)
        if getpass.getpass("再次输入: ") != password:
            print("两次输入不一致")
            sys.exit(1)
        if not asyncio.run(reset_password(sys.argv[2], password)):
            sys.exit(1)
    else:
        print(f"未知命令: {' '.join(sys.argv[1:])}")
        print(USAGE)
        sys.exit(1)


async def seed_admin() -> None:
    """执行默认管理员初始化"""
    from .bootstrap import seed_admin as _seed_admin
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)
    try:
        admin = await _seed_admin(store_group, load_settings(), get_admin_password())
        if admin is None:
            print("已存在用户，跳过")
        else:
            print(f"已创建管理员: {admin.username}")
    finally:
        await store_group.conn.close()


async def reset_password(username: str, password: str) -> bool:
    """重置指定用户的密码

    Returns:
        用户存在且已更新时为 True
    """
    from .security import hash_password
    from .store import create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        user = await store_group.user_store.find_user_by_username(username)
        if user is None:
            print(f"用户不存在: {username}")
            return False
        await store_group.user_store.update_user(
            user.id,
            {"password_hash": hash_password(password, load_settings())},
            updated_at=datetime.now(UTC),
        )
        print(f"已重置密码: {username}")
        return True
    finally:
        await store_group.conn.close()


if __name__ == "__main__":
    main()
