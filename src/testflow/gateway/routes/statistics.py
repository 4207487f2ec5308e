"""统计路由

GET /api/statistics/employees: 按执行人统计任务数（经理或管理员）
"""

from fastapi import APIRouter, Depends
from testflow.core.models import EmployeeStats

from ..deps import get_identity, get_store_group
from ..services.task_service import TaskService

router = APIRouter()


@router.get("/api/statistics/employees", response_model=list[EmployeeStats])
async def employee_stats(
    identity=Depends(get_identity),
    store_group=Depends(get_store_group),
):
    service = TaskService(store_group)
    return await service.employee_stats(identity)
