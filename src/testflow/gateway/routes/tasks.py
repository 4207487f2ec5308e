"""任务路由

GET    /api/tasks:       任务列表，支持 status / urgency / tester_id / assigned_by 筛选与分页
POST   /api/tasks:       创建任务（管理员除外）
GET    /api/tasks/{id}:  任务详情（含创建者、执行人姓名）
PUT    /api/tasks/{id}:  部分更新任务（管理员除外）
DELETE /api/tasks/{id}:  删除任务（创建者或经理）
"""

from fastapi import APIRouter, Depends, Query
from starlette.responses import Response
from testflow.core.models import (
    TaskCreate,
    TaskDetail,
    TaskFilter,
    TaskStatus,
    TaskSummary,
    TaskUpdate,
    TaskUrgency,
)

from ..deps import get_identity, get_store_group
from ..services.task_service import TaskService

router = APIRouter()


@router.get("/api/tasks", response_model=list[TaskSummary])
async def list_tasks(
    page: int | None = Query(default=None, description="页码（从 1 开始）"),
    per_page: int | None = Query(default=None, description="每页条数（1-100）"),
    status: TaskStatus | None = Query(default=None, description="按状态筛选"),
    urgency: TaskUrgency | None = Query(default=None, description="按紧急程度筛选"),
    tester_id: str | None = Query(default=None, description="按执行人筛选"),
    assigned_by: str | None = Query(default=None, description="按创建者筛选"),
    identity=Depends(get_identity),
    store_group=Depends(get_store_group),
):
    """查询任务列表，按 created_at 倒序"""
    service = TaskService(store_group)
    filters = TaskFilter(
        status=status,
        urgency=urgency,
        tester_id=tester_id,
        assigned_by=assigned_by,
    )
    return await service.list_tasks(identity, filters, page, per_page)


@router.post("/api/tasks", response_model=TaskDetail, status_code=201)
async def create_task(
    body: TaskCreate,
    identity=Depends(get_identity),
    store_group=Depends(get_store_group),
):
    service = TaskService(store_group)
    return await service.create_task(identity, body)


@router.get("/api/tasks/{task_id}", response_model=TaskDetail)
async def get_task(
    task_id: str,
    identity=Depends(get_identity),
    store_group=Depends(get_store_group),
):
    service = TaskService(store_group)
    return await service.get_task(identity, task_id)


@router.put("/api/tasks/{task_id}", response_model=TaskDetail)
async def update_task(
    task_id: str,
    body: TaskUpdate,
    identity=Depends(get_identity),
    store_group=Depends(get_store_group),
):
    """部分更新：出现的字段替换原值，缺省字段保持原值"""
    service = TaskService(store_group)
    return await service.update_task(identity, task_id, body)


@router.delete("/api/tasks/{task_id}", status_code=204)
async def delete_task(
    task_id: str,
    identity=Depends(get_identity),
    store_group=Depends(get_store_group),
):
    service = TaskService(store_group)
    await service.delete_task(identity, task_id)
    return Response(status_code=204)
