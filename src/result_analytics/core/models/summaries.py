"""
Summary models for cross-student views: course summaries, semester and year standing.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class CourseGradeEntry(BaseModel):
    """One student's grade in a course, as found in one table"""

    student_id: str
    grade_letter: str
    grade_point: float = Field(..., ge=0.0, le=4.0)
    table_name: str


class CourseSummary(BaseModel):
    """Aggregate of one course across every table that can contain it"""

    course_code: str = Field(..., description="3-digit course code")
    academic_year: int
    academic_semester: int

    total_students: int = Field(..., ge=1, description="Graded entries found")
    grade_distribution: Dict[str, int] = Field(default_factory=dict, description="Letter -> count, scale order")
    average_grade_point: float = Field(..., ge=0.0, le=4.0)
    overall_average_grade_point: Optional[float] = Field(None, description="Sampled baseline across all courses")

    grades: List[CourseGradeEntry] = Field(default_factory=list)
    tables_scanned: List[str] = Field(default_factory=list)


class SemesterStanding(BaseModel):
    """Where a student stands among everyone in one semester table"""

    table_name: str
    semester_key: str
    student_id: str

    gpa: Optional[float] = Field(None, description="Student's GPA in this table, None if absent")
    average_gpa: float = Field(0.0, ge=0.0, le=4.0)
    rank: Optional[int] = Field(None, ge=1)
    total_students: int = Field(0, ge=0)

    @property
    def rank_display(self) -> str:
        if self.rank is None or self.total_students == 0:
            return "-"
        return f"{self.rank} of {self.total_students}"


class YearStanding(BaseModel):
    """Where a student stands among everyone who sat an academic year"""

    academic_year: int = Field(..., ge=1)
    student_id: str

    ygpa: Optional[float] = Field(None, description="Student's YGPA over the merged year, None if absent")
    average_ygpa: float = Field(0.0, ge=0.0, le=4.0)
    rank: Optional[int] = Field(None, ge=1)
    total_students: int = Field(0, ge=0)
    tables_scanned: List[str] = Field(default_factory=list)

    @property
    def rank_display(self) -> str:
        if self.rank is None or self.total_students == 0:
            return "-"
        return f"{self.rank} of {self.total_students}"


__all__ = [
    'CourseGradeEntry',
    'CourseSummary',
    'SemesterStanding',
    'YearStanding',
]
