"""
Group analysis endpoints
"""

from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..dependencies import get_result_service
from ..services.result_service import GroupAnalysis, ResultAnalyticsService

router = APIRouter(prefix="/api/v1/groups", tags=["groups"])


class GroupAnalysisRequest(BaseModel):
    student_ids: List[str] = Field(..., description="Up to 10 ten-digit Student IDs")
    require_complete: bool = True


@router.post("/analysis", response_model=GroupAnalysis)
async def analyze_group(
    request: GroupAnalysisRequest,
    service: ResultAnalyticsService = Depends(get_result_service),
):
    return await service.get_group_analysis(request.student_ids, request.require_complete)
