#!/usr/bin/env python3
"""
RECORD MODELS - Pydantic schemas for raw result rows and computed student records
Type-safe data structures flowing from the record store into the aggregator

COMPREHENSIVE DATA VALIDATION:
✅ Result Tables: academic year/semester, exam sitting year, Regular/Improvement
✅ Raw Rows: one store row tagged with the table it came from
✅ Course Records: effective vs original grade, improvement flags
✅ Semester Records: GPA, running CGPA, running YGPA, credit totals
✅ Student Records: ordered semesters, histories, cohort statistics

VALIDATION RULES:
- Student IDs must be 10 digits
- GPA/CGPA/YGPA must be 0.0-4.0
- Academic semester must be 1 or 2
- Result type must be R (Regular) or I (Improvement)
- Exam years are normalized to four digits
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..grading import (
    COURSE_CREDITS,
    IMPROVEMENT,
    NOT_AVAILABLE,
    REGULAR,
    normalize_exam_year,
    parse_table_name,
    semester_key,
    validate_student_id,
)


class ResultTableMeta(BaseModel):
    """One entry of the result tables metadata index"""

    table_name: str = Field(..., description="Store table name, e.g. 1121R")
    academic_year: int = Field(..., ge=1, le=9, description="Academic year (1st, 2nd, ...)")
    academic_semester: int = Field(..., ge=1, le=2, description="Academic semester (1 or 2)")
    exam_year: int = Field(..., description="Calendar year of the exam sitting")
    result_type: Literal["R", "I"] = Field(..., description="R = Regular, I = Improvement")

    @field_validator('exam_year', mode='before')
    @classmethod
    def validate_exam_year(cls, v):
        """Accept two-digit suffixes from the metadata table"""
        return normalize_exam_year(v)

    @classmethod
    def from_table_name(cls, table_name: str) -> "ResultTableMeta":
        academic_year, academic_semester, exam_year, result_type = parse_table_name(table_name)
        return cls(
            table_name=table_name,
            academic_year=academic_year,
            academic_semester=academic_semester,
            exam_year=exam_year,
            result_type=result_type,
        )

    @property
    def is_regular(self) -> bool:
        return self.result_type == REGULAR

    @property
    def is_improvement(self) -> bool:
        return self.result_type == IMPROVEMENT

    @property
    def semester_key(self) -> str:
        return semester_key(self.academic_year, self.academic_semester)


class RawResultRow(BaseModel):
    """A single student's row from one result table"""

    table: ResultTableMeta
    data: Dict[str, Any] = Field(default_factory=dict, description="Column name -> value")

    def grade_for(self, course_code: str) -> Optional[Any]:
        return self.data.get(course_code)


class CourseRecord(BaseModel):
    """Effective result for one course in one semester"""

    course_code: str = Field(..., description="3-digit course code")
    grade_letter: str = Field(NOT_AVAILABLE, description="Effective grade letter")
    original_grade_letter: str = Field(NOT_AVAILABLE, description="Regular-sitting grade letter")
    grade_point: float = Field(0.0, ge=0.0, le=4.0, description="Effective grade point")
    credits: int = Field(COURSE_CREDITS, description="Credit weight")

    improvement_applied: bool = Field(False, description="An improvement sitting replaced the grade")
    has_improvement_opportunity: bool = Field(False, description="Original grade is below B-, F, or missing")
    override_applied: bool = Field(False, description="A what-if grade replaced the grade")

    @property
    def is_graded(self) -> bool:
        """Courses still at N/A contribute no credits"""
        return self.grade_letter != NOT_AVAILABLE


class SemesterRecord(BaseModel):
    """Per-semester totals and running averages"""

    semester_key: str = Field(..., description="'{year}-{semester}'")
    academic_year: int = Field(..., ge=1)
    academic_semester: int = Field(..., ge=1, le=2)
    display_name: str = Field(..., description="e.g. '1st Year 2nd Semester'")
    exam_year: Optional[int] = Field(None, description="Sitting year of the regular result used")

    gpa: float = Field(0.0, ge=0.0, le=4.0)
    cgpa: float = Field(0.0, ge=0.0, le=4.0, description="CGPA up to and including this semester")
    ygpa: float = Field(0.0, ge=0.0, le=4.0, description="Year GPA up to and including this semester")

    courses: List[CourseRecord] = Field(default_factory=list)
    total_points: float = Field(0.0, ge=0.0)
    total_credits: float = Field(0.0, ge=0.0)

    is_placeholder: bool = Field(False, description="Synthesized because no rows existed")

    @property
    def has_data(self) -> bool:
        return self.total_credits > 0

    def get_course(self, course_code: str) -> Optional[CourseRecord]:
        for course in self.courses:
            if course.course_code == course_code:
                return course
        return None


class StudentRecord(BaseModel):
    """Complete academic record for one student, rebuilt per request"""

    model_config = ConfigDict(validate_assignment=True)

    student_id: str = Field(..., description="10-digit roll number")
    name: str = Field(..., description="Student name")
    semesters: Dict[str, SemesterRecord] = Field(default_factory=dict, description="Ordered by (year, semester)")

    overall_cgpa: float = Field(0.0, ge=0.0, le=4.0)
    gpa_history: List[float] = Field(default_factory=list)
    cgpa_history: List[float] = Field(default_factory=list)
    gpa_standard_deviation: Optional[float] = Field(None, ge=0.0)
    cohort_tag: Optional[str] = Field(None, description="Admission session from the id's leading digits")

    total_f_grades: int = Field(0, ge=0)
    total_improvements_applied: int = Field(0, ge=0)
    sum_of_grade_points: float = Field(0.0, ge=0.0)
    is_complete: bool = Field(False, description="Has data for every semester the index knows about")

    data_quality_warnings: List[str] = Field(default_factory=list)

    @field_validator('student_id')
    @classmethod
    def validate_id(cls, v):
        return validate_student_id(v)

    @property
    def semester_keys(self) -> List[str]:
        return list(self.semesters.keys())

    @property
    def semesters_with_data(self) -> List[SemesterRecord]:
        return [sem for sem in self.semesters.values() if sem.has_data]

    def get_semester(self, key: str) -> Optional[SemesterRecord]:
        return self.semesters.get(key)


__all__ = [
    'ResultTableMeta',
    'RawResultRow',
    'CourseRecord',
    'SemesterRecord',
    'StudentRecord',
]
