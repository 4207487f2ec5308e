"""任务接口测试

测试内容：
1. 创建：管理员 403，urgency 缺省 medium，执行人必须存在
2. 查询：详情含姓名，列表筛选、分页归一
3. 更新：部分更新、closed_at 派生、显式 null 语义
4. 删除：创建者或经理可删，其余 403，管理员始终 403
"""

import pytest
from httpx import AsyncClient
from testflow.core.models import UserRole


@pytest.fixture
def create_task(client: AsyncClient, auth_headers):
    """通过 API 创建任务的工厂"""

    async def _create(creator, **body) -> dict:
        body.setdefault("title", "Check login form")
        resp = await client.post("/api/tasks", json=body, headers=auth_headers(creator))
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create


class TestCreateTask:
    """POST /api/tasks"""

    async def test_create_defaults(self, make_user, create_task):
        manager = await make_user(UserRole.MANAGER, full_name="Mia Manager")
        task = await create_task(manager, title="Login page")
        assert task["task_number"] == 1
        assert task["status"] == "new"
        assert task["urgency"] == "medium"
        assert task["assigned_by"] == manager.id
        assert task["assigned_by_name"] == "Mia Manager"
        assert task["tester_id"] is None
        assert task["tester_name"] is None
        assert task["closed_at"] is None

    async def test_create_full(self, make_user, create_task):
        manager = await make_user(UserRole.MANAGER)
        tester = await make_user(UserRole.TESTER, full_name="Bob Tester")
        task = await create_task(
            manager,
            title="Checkout",
            description="Pay with card",
            tester_id=tester.id,
            urgency="critical",
            acceptance_criteria="Payment succeeds",
            evaluation_criteria="No errors in log",
            comment="Before release",
        )
        assert task["urgency"] == "critical"
        assert task["tester_name"] == "Bob Tester"
        assert task["acceptance_criteria"] == "Payment succeeds"

    @pytest.mark.parametrize("role", [UserRole.TESTER, UserRole.DEVELOPER])
    async def test_non_manager_can_create(self, make_user, create_task, role):
        creator = await make_user(role)
        task = await create_task(creator)
        assert task["assigned_by"] == creator.id

    async def test_admin_cannot_create(self, client: AsyncClient, make_user, auth_headers):
        admin = await make_user(UserRole.ADMIN)
        resp = await client.post(
            "/api/tasks", json={"title": "Nope"}, headers=auth_headers(admin)
        )
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "FORBIDDEN"

    async def test_unknown_tester(self, client: AsyncClient, make_user, auth_headers):
        manager = await make_user(UserRole.MANAGER)
        resp = await client.post(
            "/api/tasks",
            json={"title": "X", "tester_id": "missing"},
            headers=auth_headers(manager),
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Tester not found"

    @pytest.mark.parametrize(
        "body", [{}, {"title": ""}, {"title": "x" * 256}, {"title": "X", "urgency": "urgent"}]
    )
    async def test_invalid_body(self, client: AsyncClient, make_user, auth_headers, body):
        manager = await make_user(UserRole.MANAGER)
        resp = await client.post("/api/tasks", json=body, headers=auth_headers(manager))
        assert resp.status_code == 400

    async def test_task_numbers_increase(self, make_user, create_task):
        manager = await make_user(UserRole.MANAGER)
        numbers = [(await create_task(manager))["task_number"] for _ in range(3)]
        assert numbers == [1, 2, 3]


class TestReadTasks:
    """GET /api/tasks 与 GET /api/tasks/{id}"""

    async def test_get_detail(self, client: AsyncClient, make_user, auth_headers, create_task):
        manager = await make_user(UserRole.MANAGER)
        developer = await make_user(UserRole.DEVELOPER)
        task = await create_task(manager)
        resp = await client.get(f"/api/tasks/{task['id']}", headers=auth_headers(developer))
        assert resp.status_code == 200
        assert resp.json() == task

    async def test_get_missing(self, client: AsyncClient, make_user, auth_headers):
        tester = await make_user(UserRole.TESTER)
        resp = await client.get("/api/tasks/missing", headers=auth_headers(tester))
        assert resp.status_code == 404
        assert resp.json()["error"]["message"] == "Task not found"

    async def test_admin_can_read(self, client: AsyncClient, make_user, auth_headers, create_task):
        manager = await make_user(UserRole.MANAGER)
        admin = await make_user(UserRole.ADMIN)
        await create_task(manager)
        resp = await client.get("/api/tasks", headers=auth_headers(admin))
        assert resp.status_code == 200
        assert len(resp.json()) == 1

    async def test_list_summary_newest_first(self, client: AsyncClient, make_user, auth_headers, create_task):
        manager = await make_user(UserRole.MANAGER)
        first = await create_task(manager, title="First")
        second = await create_task(manager, title="Second")
        resp = await client.get("/api/tasks", headers=auth_headers(manager))
        items = resp.json()
        assert [t["id"] for t in items] == [second["id"], first["id"]]
        assert set(items[0]) == {"id", "task_number", "title", "status", "urgency"}

    async def test_list_filters(self, client: AsyncClient, make_user, auth_headers, create_task):
        manager = await make_user(UserRole.MANAGER)
        tester = await make_user(UserRole.TESTER)
        target = await create_task(manager, tester_id=tester.id, urgency="high")
        await create_task(manager, tester_id=tester.id)
        await create_task(manager, urgency="high")

        resp = await client.get(
            "/api/tasks",
            params={"tester_id": tester.id, "urgency": "high"},
            headers=auth_headers(tester),
        )
        assert [t["id"] for t in resp.json()] == [target["id"]]

        resp = await client.get(
            "/api/tasks", params={"status": "new"}, headers=auth_headers(tester)
        )
        assert len(resp.json()) == 3

    async def test_list_bad_filter(self, client: AsyncClient, make_user, auth_headers):
        tester = await make_user(UserRole.TESTER)
        resp = await client.get(
            "/api/tasks", params={"status": "archived"}, headers=auth_headers(tester)
        )
        assert resp.status_code == 400

    async def test_pagination_clamped(self, client: AsyncClient, make_user, auth_headers, create_task):
        manager = await make_user(UserRole.MANAGER)
        for _ in range(3):
            await create_task(manager)
        headers = auth_headers(manager)

        resp = await client.get("/api/tasks", params={"per_page": 500}, headers=headers)
        assert resp.status_code == 200
        assert len(resp.json()) == 3

        resp = await client.get("/api/tasks", params={"per_page": 0}, headers=headers)
        assert len(resp.json()) == 1

        resp = await client.get("/api/tasks", params={"page": 0, "per_page": 2}, headers=headers)
        assert len(resp.json()) == 2

        resp = await client.get("/api/tasks", params={"page": 2, "per_page": 2}, headers=headers)
        assert len(resp.json()) == 1


class TestUpdateTask:
    """PUT /api/tasks/{id}"""

    async def test_status_only_keeps_other_fields(self, client: AsyncClient, make_user, auth_headers, create_task):
        manager = await make_user(UserRole.MANAGER)
        tester = await make_user(UserRole.TESTER)
        task = await create_task(manager, title="Keep me", tester_id=tester.id, comment="c")
        resp = await client.put(
            f"/api/tasks/{task['id']}",
            json={"status": "in_progress"},
            headers=auth_headers(tester),
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "in_progress"
        assert data["title"] == "Keep me"
        assert data["tester_id"] == tester.id
        assert data["comment"] == "c"
        assert data["closed_at"] is None

    async def test_closed_at_set_once(self, client: AsyncClient, make_user, auth_headers, create_task):
        manager = await make_user(UserRole.MANAGER)
        task = await create_task(manager)
        headers = auth_headers(manager)
        url = f"/api/tasks/{task['id']}"

        done = (await client.put(url, json={"status": "done"}, headers=headers)).json()
        assert done["closed_at"] is not None

        closed = (await client.put(url, json={"status": "closed"}, headers=headers)).json()
        assert closed["closed_at"] == done["closed_at"]

        again = (await client.put(url, json={"status": "closed"}, headers=headers)).json()
        assert again["closed_at"] == done["closed_at"]

    async def test_reopen_keeps_closed_at(self, client: AsyncClient, make_user, auth_headers, create_task):
        manager = await make_user(UserRole.MANAGER)
        task = await create_task(manager)
        headers = auth_headers(manager)
        url = f"/api/tasks/{task['id']}"

        done = (await client.put(url, json={"status": "done"}, headers=headers)).json()
        reopened = (await client.put(url, json={"status": "testing"}, headers=headers)).json()
        assert reopened["status"] == "testing"
        assert reopened["closed_at"] == done["closed_at"]

    async def test_tester_cleared_only_by_explicit_null(self, client: AsyncClient, make_user, auth_headers, create_task):
        manager = await make_user(UserRole.MANAGER)
        tester = await make_user(UserRole.TESTER)
        task = await create_task(manager, tester_id=tester.id)
        headers = auth_headers(manager)
        url = f"/api/tasks/{task['id']}"

        kept = (await client.put(url, json={"comment": "x"}, headers=headers)).json()
        assert kept["tester_id"] == tester.id

        cleared = (await client.put(url, json={"tester_id": None}, headers=headers)).json()
        assert cleared["tester_id"] is None
        assert cleared["tester_name"] is None

    async def test_null_title_rejected(self, client: AsyncClient, make_user, auth_headers, create_task):
        manager = await make_user(UserRole.MANAGER)
        task = await create_task(manager)
        resp = await client.put(
            f"/api/tasks/{task['id']}", json={"title": None}, headers=auth_headers(manager)
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "title cannot be null"

    async def test_reassign_unknown_tester(self, client: AsyncClient, make_user, auth_headers, create_task):
        manager = await make_user(UserRole.MANAGER)
        task = await create_task(manager)
        resp = await client.put(
            f"/api/tasks/{task['id']}",
            json={"tester_id": "missing"},
            headers=auth_headers(manager),
        )
        assert resp.status_code == 400

    async def test_empty_update_is_noop(self, client: AsyncClient, make_user, auth_headers, create_task):
        manager = await make_user(UserRole.MANAGER)
        task = await create_task(manager)
        resp = await client.put(f"/api/tasks/{task['id']}", json={}, headers=auth_headers(manager))
        assert resp.status_code == 200
        assert resp.json() == task

    async def test_admin_cannot_edit(self, client: AsyncClient, make_user, auth_headers, create_task):
        manager = await make_user(UserRole.MANAGER)
        admin = await make_user(UserRole.ADMIN)
        task = await create_task(manager)
        resp = await client.put(
            f"/api/tasks/{task['id']}", json={"status": "done"}, headers=auth_headers(admin)
        )
        assert resp.status_code == 403

    async def test_update_missing(self, client: AsyncClient, make_user, auth_headers):
        manager = await make_user(UserRole.MANAGER)
        resp = await client.put(
            "/api/tasks/missing", json={"status": "done"}, headers=auth_headers(manager)
        )
        assert resp.status_code == 404


class TestDeleteTask:
    """DELETE /api/tasks/{id}"""

    async def test_creator_can_delete(self, client: AsyncClient, make_user, auth_headers, create_task):
        developer = await make_user(UserRole.DEVELOPER)
        task = await create_task(developer)
        headers = auth_headers(developer)
        resp = await client.delete(f"/api/tasks/{task['id']}", headers=headers)
        assert resp.status_code == 204
        resp = await client.get(f"/api/tasks/{task['id']}", headers=headers)
        assert resp.status_code == 404

    async def test_manager_can_delete_any(self, client: AsyncClient, make_user, auth_headers, create_task):
        developer = await make_user(UserRole.DEVELOPER)
        manager = await make_user(UserRole.MANAGER)
        task = await create_task(developer)
        resp = await client.delete(f"/api/tasks/{task['id']}", headers=auth_headers(manager))
        assert resp.status_code == 204

    async def test_other_user_forbidden(self, client: AsyncClient, make_user, auth_headers, create_task):
        manager = await make_user(UserRole.MANAGER)
        tester = await make_user(UserRole.TESTER)
        task = await create_task(manager, tester_id=tester.id)
        resp = await client.delete(f"/api/tasks/{task['id']}", headers=auth_headers(tester))
        assert resp.status_code == 403

    async def test_admin_forbidden(self, client: AsyncClient, make_user, auth_headers, create_task):
        manager = await make_user(UserRole.MANAGER)
        admin = await make_user(UserRole.ADMIN)
        task = await create_task(manager)
        resp = await client.delete(f"/api/tasks/{task['id']}", headers=auth_headers(admin))
        assert resp.status_code == 403

    async def test_delete_missing(self, client: AsyncClient, make_user, auth_headers):
        manager = await make_user(UserRole.MANAGER)
        resp = await client.delete("/api/tasks/missing", headers=auth_headers(manager))
        assert resp.status_code == 404
