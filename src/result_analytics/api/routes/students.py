"""
Student result endpoints
"""

from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ...core.models import SemesterStanding, StudentRecord, YearStanding
from ..dependencies import get_result_service
from ..services.result_service import ResultAnalyticsService

router = APIRouter(prefix="/api/v1/students", tags=["students"])


class GradeOverride(BaseModel):
    """An expected/target grade for one course"""

    semester_key: str = Field(..., description="e.g. '2-1'")
    course_code: str = Field(..., description="3-digit course code")
    grade_letter: str


class WhatIfRequest(BaseModel):
    overrides: List[GradeOverride] = Field(default_factory=list)


@router.get("/{student_id}", response_model=StudentRecord)
async def get_student(
    student_id: str,
    service: ResultAnalyticsService = Depends(get_result_service),
):
    return await service.get_student_record(student_id)


@router.post("/{student_id}/what-if", response_model=StudentRecord)
async def what_if(
    student_id: str,
    request: WhatIfRequest,
    service: ResultAnalyticsService = Depends(get_result_service),
):
    overrides = {(o.semester_key, o.course_code): o.grade_letter for o in request.overrides}
    return await service.get_what_if_record(student_id, overrides)


@router.get("/{student_id}/standing/{table_name}", response_model=SemesterStanding)
async def get_standing(
    student_id: str,
    table_name: str,
    service: ResultAnalyticsService = Depends(get_result_service),
):
    return await service.get_semester_standing(student_id, table_name)


@router.get("/{student_id}/year-standing/{academic_year}", response_model=YearStanding)
async def get_year_standing(
    student_id: str,
    academic_year: int,
    service: ResultAnalyticsService = Depends(get_result_service),
):
    return await service.get_year_standing(student_id, academic_year)
