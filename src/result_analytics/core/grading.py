#!/usr/bin/env python3
"""
GRADING - Canonical grade scale and result-table naming conventions
Single source of truth for letter grades, grade points, and course codes

GRADE MAPPING (canonical scale):
A+ = 4.00, A = 3.75, A- = 3.50
B+ = 3.25, B = 3.00, B- = 2.75
C+ = 2.50, C = 2.25, D = 2.00
F = 0.00
Unknown / empty letters = 0.00

CONVENTIONS:
✅ Every course carries 3 credits
✅ 5 courses per semester, 2 semesters per academic year
✅ Course code = {academic year}{0 for 1st sem, 1 for 2nd sem}{course number}
✅ Table name = {academic year}{semester}{exam year suffix}{R|I}, e.g. 1121R
✅ Student IDs are 10 digits; the leading digits form the cohort tag

Improvement eligibility: original grade point below B- (2.75), or F,
or no regular grade at all.
"""

import re
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from .exceptions import MalformedInputError


COURSE_CREDITS = 3
COURSES_PER_SEMESTER = 5
SEMESTERS_PER_YEAR = 2
STUDENT_ID_LENGTH = 10

NOT_AVAILABLE = "N/A"

REGULAR = "R"
IMPROVEMENT = "I"
RESULT_TYPES = (REGULAR, IMPROVEMENT)

# Canonical scale shared by every calculator
GRADE_POINTS: Dict[str, float] = {
    "A+": 4.00,
    "A": 3.75,
    "A-": 3.50,
    "B+": 3.25,
    "B": 3.00,
    "B-": 2.75,
    "C+": 2.50,
    "C": 2.25,
    "D": 2.00,
    "F": 0.00,
}

# Display order for distributions
GRADE_LETTERS: List[str] = list(GRADE_POINTS.keys())

TABLE_NAME_PATTERN = re.compile(r"^([1-9])([12])(\d{2})([RI])$")
COURSE_CODE_PATTERN = re.compile(r"^([1-9])([01])([1-9])$")


class GradingScale(BaseModel):
    """Letter grade to grade point table plus the improvement threshold"""

    grade_points: Dict[str, float] = Field(default_factory=lambda: dict(GRADE_POINTS))
    improvement_threshold_letter: str = Field("B-", description="Grades below this may be improved")
    failing_letter: str = Field("F", description="Always eligible for improvement")

    @field_validator('grade_points')
    @classmethod
    def validate_points(cls, v):
        """Grade points must stay on the 0-4 scale"""
        for letter, points in v.items():
            if not 0.0 <= points <= 4.0:
                raise ValueError(f'Grade point for {letter} must be within 0.0-4.0, got: {points}')
        return {letter.strip().upper(): points for letter, points in v.items()}

    @property
    def improvement_threshold(self) -> float:
        return self.grade_points.get(self.improvement_threshold_letter, 0.0)

    @property
    def letters(self) -> List[str]:
        return list(self.grade_points.keys())

    def normalize(self, letter) -> Optional[str]:
        """Return the scale's spelling of a letter, or None when it is not a grade"""
        if letter is None:
            return None
        letter_str = str(letter).strip().upper()
        if letter_str in self.grade_points:
            return letter_str
        return None

    def is_valid(self, letter) -> bool:
        return self.normalize(letter) is not None

    def point(self, letter) -> float:
        """Grade point for a letter; unknown or empty letters map to 0.00"""
        normalized = self.normalize(letter)
        if normalized is None:
            return 0.0
        return self.grade_points[normalized]

    def has_improvement_opportunity(self, original_letter) -> bool:
        """True when the original grade is missing, F, or below the threshold"""
        normalized = self.normalize(original_letter)
        if normalized is None:
            return True
        if normalized == self.failing_letter:
            return True
        return self.grade_points[normalized] < self.improvement_threshold


CANONICAL_SCALE = GradingScale()


def grade_point(letter, scale: Optional[GradingScale] = None) -> float:
    """Convert a letter grade to grade points on the canonical scale"""
    return (scale or CANONICAL_SCALE).point(letter)


def semester_digit(academic_semester: int) -> str:
    return "0" if academic_semester == 1 else "1"


def subject_codes_for_semester(academic_year: int, academic_semester: int) -> List[str]:
    """Course codes offered in one academic semester, e.g. 1-2 -> 111..115"""
    base = f"{academic_year}{semester_digit(academic_semester)}"
    return [f"{base}{i}" for i in range(1, COURSES_PER_SEMESTER + 1)]


def parse_course_code(course_code) -> Tuple[int, int, int]:
    """
    Split a course code into (academic year, academic semester, course number)

    Raises:
        MalformedInputError: if the code is not three digits of the expected shape
    """
    if not isinstance(course_code, str):
        raise MalformedInputError(f'Course code must be a string, got: {course_code!r}')
    match = COURSE_CODE_PATTERN.match(course_code.strip())
    if not match:
        raise MalformedInputError(
            f'Invalid Course Code format: {course_code!r}. '
            'Expected e.g. "305" for 3rd year 1st semester 5th course'
        )
    academic_year = int(match.group(1))
    academic_semester = 1 if match.group(2) == "0" else 2
    course_number = int(match.group(3))
    return academic_year, academic_semester, course_number


def validate_student_id(student_id) -> str:
    """Return the cleaned student id or raise MalformedInputError"""
    student_id_str = str(student_id).strip() if student_id is not None else ""
    if len(student_id_str) != STUDENT_ID_LENGTH or not student_id_str.isdigit():
        raise MalformedInputError(
            f'Student ID must be {STUDENT_ID_LENGTH} digits, got: {student_id!r}'
        )
    return student_id_str


def cohort_tag(student_id: str, digits: int = 2) -> str:
    """Admission session tag from the leading digits of a student id"""
    return str(student_id)[:digits]


def semester_key(academic_year: int, academic_semester: int) -> str:
    return f"{academic_year}-{academic_semester}"


def parse_semester_key(key: str) -> Tuple[int, int]:
    try:
        year_part, semester_part = key.split("-")
        return int(year_part), int(semester_part)
    except (ValueError, AttributeError):
        raise MalformedInputError(f'Semester key must look like "1-2", got: {key!r}')


def ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def semester_display_name(academic_year: int, academic_semester: int) -> str:
    """e.g. (2, 1) -> '2nd Year 1st Semester'"""
    return f"{ordinal(academic_year)} Year {ordinal(academic_semester)} Semester"


def normalize_exam_year(exam_year) -> int:
    """Metadata stores either a two-digit suffix (21) or a full year (2021)"""
    year = int(exam_year)
    if year < 100:
        year += 2000
    return year


def parse_table_name(table_name: str) -> Tuple[int, int, int, str]:
    """
    Decode a result table name such as '1121R'

    Returns:
        (academic_year, academic_semester, exam_year, result_type)
    """
    match = TABLE_NAME_PATTERN.match(str(table_name).strip())
    if not match:
        raise MalformedInputError(f'Unrecognized result table name: {table_name!r}')
    return (
        int(match.group(1)),
        int(match.group(2)),
        normalize_exam_year(match.group(3)),
        match.group(4),
    )


def round_gpa(value: float) -> float:
    """All GPA/CGPA/YGPA values are rounded to 3 places when computed"""
    return round(value, 3)


def weighted_average(total_points: float, total_credits: float) -> float:
    """Credit-weighted average; zero credits yields a defined 0.000"""
    if total_credits <= 0:
        return 0.0
    return round_gpa(total_points / total_credits)


__all__ = [
    'COURSE_CREDITS',
    'COURSES_PER_SEMESTER',
    'SEMESTERS_PER_YEAR',
    'STUDENT_ID_LENGTH',
    'NOT_AVAILABLE',
    'REGULAR',
    'IMPROVEMENT',
    'RESULT_TYPES',
    'GRADE_POINTS',
    'GRADE_LETTERS',
    'GradingScale',
    'CANONICAL_SCALE',
    'grade_point',
    'subject_codes_for_semester',
    'parse_course_code',
    'validate_student_id',
    'cohort_tag',
    'semester_key',
    'parse_semester_key',
    'semester_display_name',
    'normalize_exam_year',
    'parse_table_name',
    'round_gpa',
    'weighted_average',
]
