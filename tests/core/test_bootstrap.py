"""默认管理员初始化测试"""

from testflow.core.bootstrap import DEFAULT_ADMIN_USERNAME, seed_admin
from testflow.core.models import UserRole
from testflow.core.security import verify_password


class TestSeedAdmin:
    """空库时创建默认管理员"""

    async def test_creates_admin_on_empty_db(self, store_group, settings):
        admin = await seed_admin(store_group, settings, "bootstrap-pass")
        assert admin is not None
        assert admin.username == DEFAULT_ADMIN_USERNAME
        assert admin.role == UserRole.ADMIN
        assert admin.is_active is True

        stored = await store_group.user_store.find_user_by_username("admin")
        assert verify_password("bootstrap-pass", stored.password_hash, settings)

    async def test_idempotent(self, store_group, settings):
        await seed_admin(store_group, settings, "bootstrap-pass")
        assert await seed_admin(store_group, settings, "bootstrap-pass") is None
        assert await store_group.user_store.count_users() == 1

    async def test_skips_when_users_exist(self, store_group, settings, make_user):
        await make_user(UserRole.MANAGER)
        assert await seed_admin(store_group, settings, "bootstrap-pass") is None
        assert await store_group.user_store.find_user_by_username("admin") is None
