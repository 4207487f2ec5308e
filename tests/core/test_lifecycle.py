"""Task 生命周期测试

测试内容：
1. closed_at 首次关闭写入、重复关闭不变、重新打开保留
2. 部分更新合并（缺省保持、显式 null 清空、不可空字段拒绝 null）
3. 分页参数归一
"""

from datetime import UTC, datetime, timedelta

import pytest
from testflow.core.exceptions import BadRequestError
from testflow.core.lifecycle import (
    apply_task_update,
    clamp_pagination,
    is_reopen,
    page_offset,
    resolve_closed_at,
)
from testflow.core.models import Task, TaskStatus, TaskUrgency

T0 = datetime(2025, 3, 1, 9, 0, tzinfo=UTC)
T1 = T0 + timedelta(hours=1)
T2 = T0 + timedelta(hours=2)


def _task(**overrides) -> Task:
    data = {
        "id": "01TASK",
        "task_number": 1,
        "title": "Login page",
        "assigned_by": "01MANAGER",
        "tester_id": "01TESTER",
        "created_at": T0,
    }
    data.update(overrides)
    return Task(**data)


class TestResolveClosedAt:
    """closed_at 派生规则"""

    def test_first_close_sets_now(self):
        assert resolve_closed_at(TaskStatus.DONE, None, T1) == T1
        assert resolve_closed_at(TaskStatus.CLOSED, None, T1) == T1

    def test_repeat_close_keeps_original(self):
        assert resolve_closed_at(TaskStatus.CLOSED, T1, T2) == T1

    def test_reopen_keeps_previous(self):
        assert resolve_closed_at(TaskStatus.IN_PROGRESS, T1, T2) == T1

    def test_open_without_history(self):
        assert resolve_closed_at(TaskStatus.TESTING, None, T1) is None


class TestApplyTaskUpdate:
    """部分更新合并"""

    def test_only_status(self):
        """仅更新状态时其他字段保持原值"""
        merged = apply_task_update(_task(), {"status": TaskStatus.DONE}, now=T1)
        assert merged.status == TaskStatus.DONE
        assert merged.title == "Login page"
        assert merged.tester_id == "01TESTER"
        assert merged.closed_at == T1

    def test_done_then_closed_keeps_closed_at(self):
        task = _task(status=TaskStatus.DONE, closed_at=T1)
        merged = apply_task_update(task, {"status": TaskStatus.CLOSED}, now=T2)
        assert merged.closed_at == T1

    def test_reopen_keeps_closed_at(self):
        task = _task(status=TaskStatus.DONE, closed_at=T1)
        merged = apply_task_update(task, {"status": TaskStatus.IN_PROGRESS}, now=T2)
        assert merged.status == TaskStatus.IN_PROGRESS
        assert merged.closed_at == T1

    def test_explicit_null_clears_tester(self):
        merged = apply_task_update(_task(), {"tester_id": None}, now=T1)
        assert merged.tester_id is None

    @pytest.mark.parametrize("field", ["title", "status", "urgency"])
    def test_null_on_required_field(self, field):
        with pytest.raises(BadRequestError, match=f"{field} cannot be null"):
            apply_task_update(_task(), {field: None}, now=T1)

    def test_immutable_fields_ignored(self):
        merged = apply_task_update(
            _task(),
            {"assigned_by": "someone", "task_number": 99, "urgency": TaskUrgency.HIGH},
            now=T1,
        )
        assert merged.assigned_by == "01MANAGER"
        assert merged.task_number == 1
        assert merged.urgency == TaskUrgency.HIGH


class TestTransitions:
    def test_is_reopen(self):
        assert is_reopen(TaskStatus.DONE, TaskStatus.TESTING)
        assert not is_reopen(TaskStatus.DONE, TaskStatus.CLOSED)
        assert not is_reopen(TaskStatus.NEW, TaskStatus.TESTING)


class TestPagination:
    """分页参数归一"""

    @pytest.mark.parametrize(
        "page,per_page,expected",
        [
            (None, None, (1, 20)),
            (0, 10, (1, 10)),
            (-3, 10, (1, 10)),
            (2, 500, (2, 100)),
            (1, 0, (1, 1)),
            (1, -5, (1, 1)),
        ],
    )
    def test_clamp(self, page, per_page, expected):
        assert clamp_pagination(page, per_page) == expected

    def test_offset(self):
        assert page_offset(1, 20) == 0
        assert page_offset(3, 10) == 20
