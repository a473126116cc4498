#!/usr/bin/env python3
"""
Dean's list calculator
Calculates Dean's Honours List and Dean's Merit List from student records
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..grading import COURSE_CREDITS, COURSES_PER_SEMESTER, round_gpa
from ..models import StudentRecord

logger = logging.getLogger(__name__)

DEANS_HONOURS_THRESHOLD = 3.850
DEANS_MERIT_GPA = 4.000


@dataclass
class AwardResult:
    """Individual award result"""
    student_id: str
    name: str
    award_name: str
    cgpa: float
    semester: Optional[str] = None
    required_gpa: Optional[float] = None
    details: Optional[str] = None


def required_gpa_for_target(record: StudentRecord, target_cgpa: float) -> Optional[float]:
    """
    GPA needed in the semesters without data to finish at target_cgpa

    Returns None when no semester is left to sit, or when the target is out of
    reach even with 4.000 everywhere.
    """
    remaining = [sem for sem in record.semesters.values() if not sem.has_data]
    if not remaining:
        return None

    earned_points = sum(sem.total_points for sem in record.semesters.values())
    earned_credits = sum(sem.total_credits for sem in record.semesters.values())
    remaining_credits = len(remaining) * COURSES_PER_SEMESTER * COURSE_CREDITS

    required = (target_cgpa * (earned_credits + remaining_credits) - earned_points) / remaining_credits
    if required > 4.0:
        return None
    return round_gpa(max(required, 0.0))


def calculate_deans_honours_list(
    records: Iterable[StudentRecord],
    threshold: float = DEANS_HONOURS_THRESHOLD,
) -> List[AwardResult]:
    """
    Dean's Honours List
    Criteria: complete record with overall CGPA >= threshold.
    Incomplete records still on course are listed as candidates with the GPA
    they need in their remaining semesters.
    """
    awards = []
    for record in records:
        if record.is_complete:
            if record.overall_cgpa >= threshold:
                awards.append(AwardResult(
                    student_id=record.student_id,
                    name=record.name,
                    award_name="Dean's Honours List",
                    cgpa=record.overall_cgpa,
                    details=f"CGPA {record.overall_cgpa:.3f}",
                ))
            continue

        required = required_gpa_for_target(record, threshold)
        if required is not None:
            awards.append(AwardResult(
                student_id=record.student_id,
                name=record.name,
                award_name="Dean's Honours List Candidate",
                cgpa=record.overall_cgpa,
                required_gpa=required,
                details=f"Current {record.overall_cgpa:.3f}, required {required:.3f}",
            ))

    awards.sort(key=lambda a: (a.required_gpa is not None, -a.cgpa, a.student_id))
    logger.info(f"🎓 Dean's Honours List: {len(awards)} entries")
    return awards


def calculate_deans_merit_list(
    records: Iterable[StudentRecord],
    merit_gpa: float = DEANS_MERIT_GPA,
) -> List[AwardResult]:
    """
    Dean's Merit List
    Criteria: semester GPA of 4.000, one entry per qualifying semester
    """
    awards = []
    for record in records:
        for semester in record.semesters_with_data:
            if semester.gpa >= merit_gpa:
                awards.append(AwardResult(
                    student_id=record.student_id,
                    name=record.name,
                    award_name="Dean's Merit List",
                    cgpa=record.overall_cgpa,
                    semester=semester.display_name,
                    details=f"GPA {semester.gpa:.3f}",
                ))

    logger.info(f"🎓 Dean's Merit List: {len(awards)} entries")
    return awards


__all__ = [
    'AwardResult',
    'DEANS_HONOURS_THRESHOLD',
    'DEANS_MERIT_GPA',
    'required_gpa_for_target',
    'calculate_deans_honours_list',
    'calculate_deans_merit_list',
]
