"""
Course analytics endpoints
"""

from fastapi import APIRouter, Depends

from ...core.models import CourseSummary
from ..dependencies import get_result_service
from ..services.result_service import ResultAnalyticsService

router = APIRouter(prefix="/api/v1/courses", tags=["courses"])


@router.get("/{course_code}", response_model=CourseSummary)
async def get_course_summary(
    course_code: str,
    service: ResultAnalyticsService = Depends(get_result_service),
):
    return await service.get_course_summary(course_code)


@router.delete("/overall-average/cache", status_code=204)
async def reset_overall_average(
    service: ResultAnalyticsService = Depends(get_result_service),
):
    service.invalidate_overall_average()
