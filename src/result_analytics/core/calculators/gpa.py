#!/usr/bin/env python3
"""
GPA CALCULATOR - Semester GPA, running CGPA and YGPA with improvement reconciliation
Builds a complete StudentRecord from raw Regular/Improvement result rows

CALCULATION TYPES:
✅ Semester GPA: Credit-weighted mean of the semester's effective grade points
✅ Cumulative GPA (CGPA): Running total over semesters 1..k in (year, semester) order
✅ Year GPA (YGPA): Running total that resets at every academic-year boundary
✅ What-if GPA: Pure recomputation under hypothetical expected/target grades

IMPROVEMENT RULES:
- Base record per (year, semester) = Regular sitting with the latest exam year
- Improvement grade replaces the applied grade only when the original grade is
  below B- (2.75) or F, AND the improvement grade point is strictly higher
- With no regular grade at all, the first improvement grade is accepted outright
  and becomes the original grade (not counted as an improvement)
- Substitution never lowers an effective grade

EDGE CASES HANDLED:
- Missing semesters: synthesized as N/A placeholders (at least 4 years x 2 semesters)
- Missing course columns: N/A placeholders that carry no credits
- Zero credits: GPA/CGPA/YGPA are a defined 0.000
- Duplicate Regular rows for one sitting: earliest-queried kept, flagged as data quality
- Unknown grade letters: treated as missing and flagged
"""

from typing import Dict, List, Mapping, Optional, Sequence, Tuple
import logging

from ..exceptions import StudentNotFoundError
from ..grading import (
    CANONICAL_SCALE,
    NOT_AVAILABLE,
    GradingScale,
    cohort_tag,
    parse_semester_key,
    semester_display_name,
    semester_key,
    subject_codes_for_semester,
    validate_student_id,
    weighted_average,
)
from ..models import CourseRecord, RawResultRow, SemesterRecord, StudentRecord
from .rank import gpa_standard_deviation

logger = logging.getLogger(__name__)

# (semester_key, course_code) -> expected/target grade letter
Overrides = Mapping[Tuple[str, str], str]


class AcademicRecordAggregator:
    """Aggregate raw result rows into GPA/CGPA/YGPA student records"""

    def __init__(
        self,
        grading_scale: Optional[GradingScale] = None,
        min_academic_years: int = 4,
        cohort_tag_digits: int = 2,
        name_column: str = "Name",
    ):
        """
        Initialize aggregator

        Args:
            grading_scale: Grade point table; every computation uses this one scale
            min_academic_years: Displayed horizon in academic years (2 semesters each)
            cohort_tag_digits: Leading student-id digits forming the cohort tag
            name_column: Column holding the student's name in result tables
        """
        self.grading_scale = grading_scale or CANONICAL_SCALE
        self.min_academic_years = min_academic_years
        self.cohort_tag_digits = cohort_tag_digits
        self.name_column = name_column
        self.calculation_log: List[str] = []

    def build_student_record(
        self,
        student_id: str,
        rows: Sequence[RawResultRow],
        index_horizon: Optional[Tuple[int, int]] = None,
    ) -> StudentRecord:
        """
        Build a complete student record from raw rows

        Args:
            student_id: 10-digit student id
            rows: The student's rows from every Regular/Improvement table
            index_horizon: Latest (academic_year, academic_semester) in the metadata
                index; extends the displayed horizon and defines completeness

        Returns:
            StudentRecord with every semester of the horizon populated

        Raises:
            StudentNotFoundError: if no rows exist for the student
        """
        student_id = validate_student_id(student_id)
        self.calculation_log = [f"📊 Aggregating results for Student ID: {student_id}"]

        if not rows:
            self.calculation_log.append("❌ No rows found in any table")
            raise StudentNotFoundError(student_id)

        warnings: List[str] = []

        regular_rows = self._select_regular_rows(rows, warnings)
        improvement_rows = sorted(
            (row for row in rows if row.table.is_improvement),
            key=lambda row: (row.table.exam_year, row.table.table_name),
        )
        self.calculation_log.append(
            f"   {len(regular_rows)} regular semesters, {len(improvement_rows)} improvement sittings"
        )

        # semester_key -> course_code -> [original_letter, applied_letter, improvement_applied]
        course_states: Dict[str, Dict[str, list]] = {}
        exam_years: Dict[str, Optional[int]] = {}

        for key, row in regular_rows.items():
            exam_years[key] = row.table.exam_year
            states = course_states.setdefault(key, {})
            for code in subject_codes_for_semester(row.table.academic_year, row.table.academic_semester):
                letter = self._read_letter(row, code, warnings)
                states[code] = [letter, letter, False]

        for row in improvement_rows:
            key = row.table.semester_key
            exam_years.setdefault(key, None)
            states = course_states.setdefault(key, {})
            for code in subject_codes_for_semester(row.table.academic_year, row.table.academic_semester):
                improved = self._read_letter(row, code, warnings)
                if improved == NOT_AVAILABLE:
                    continue
                state = states.setdefault(code, [NOT_AVAILABLE, NOT_AVAILABLE, False])
                self._apply_improvement(state, improved, code, row.table.table_name)

        # Assemble course records over the full horizon
        semester_courses: Dict[str, List[CourseRecord]] = {}
        for key in self._horizon_keys(course_states.keys(), index_horizon):
            academic_year, academic_semester = parse_semester_key(key)
            states = course_states.get(key, {})
            courses = []
            for code in subject_codes_for_semester(academic_year, academic_semester):
                original, applied, improved = states.get(code, [NOT_AVAILABLE, NOT_AVAILABLE, False])
                courses.append(
                    CourseRecord(
                        course_code=code,
                        grade_letter=applied,
                        original_grade_letter=original,
                        grade_point=self.grading_scale.point(applied),
                        improvement_applied=improved,
                        has_improvement_opportunity=self.grading_scale.has_improvement_opportunity(original),
                    )
                )
            semester_courses[key] = courses

        required_keys = self._required_keys(semester_courses, index_horizon)
        is_complete = all(
            any(course.is_graded for course in semester_courses[key]) for key in required_keys
        )

        record = self._roll_up(
            student_id=student_id,
            name=self._resolve_name(student_id, rows),
            semester_courses=semester_courses,
            exam_years=exam_years,
            placeholders={key for key in semester_courses if key not in course_states},
            is_complete=is_complete,
            warnings=warnings,
        )

        self.calculation_log.append("✅ Aggregation complete:")
        self.calculation_log.append(f"   CGPA: {record.overall_cgpa:.3f}")
        self.calculation_log.append(f"   Improvements applied: {record.total_improvements_applied}")
        return record

    def recompute(self, record: StudentRecord, overrides: Overrides) -> StudentRecord:
        """
        Re-derive every total under hypothetical expected/target grades

        An override is used when it is a valid letter and either fills an N/A
        course or is strictly higher than the currently effective grade; otherwise
        the record's effective grade stands. The input record is not modified.
        """
        self.calculation_log = [
            f"🔁 Recomputing Student ID: {record.student_id} with {len(overrides)} overrides"
        ]

        semester_courses: Dict[str, List[CourseRecord]] = {}
        for key, semester in record.semesters.items():
            courses = []
            for course in semester.courses:
                override = self.grading_scale.normalize(overrides.get((key, course.course_code)))
                if override is not None and (
                    not course.is_graded or self.grading_scale.point(override) > course.grade_point
                ):
                    courses.append(
                        course.model_copy(
                            update={
                                "grade_letter": override,
                                "grade_point": self.grading_scale.point(override),
                                "override_applied": True,
                            }
                        )
                    )
                    self.calculation_log.append(
                        f"   {key} {course.course_code}: {course.grade_letter} -> {override}"
                    )
                else:
                    courses.append(course.model_copy())
            semester_courses[key] = courses

        return self._roll_up(
            student_id=record.student_id,
            name=record.name,
            semester_courses=semester_courses,
            exam_years={key: sem.exam_year for key, sem in record.semesters.items()},
            placeholders={
                key
                for key, sem in record.semesters.items()
                if sem.is_placeholder and not any(c.is_graded for c in semester_courses[key])
            },
            is_complete=record.is_complete,
            warnings=list(record.data_quality_warnings),
        )

    def _roll_up(
        self,
        student_id: str,
        name: str,
        semester_courses: Dict[str, List[CourseRecord]],
        exam_years: Dict[str, Optional[int]],
        placeholders: set,
        is_complete: bool,
        warnings: List[str],
    ) -> StudentRecord:
        """Compute semester GPA, running CGPA and running YGPA in semester order"""
        ordered_keys = sorted(semester_courses.keys(), key=parse_semester_key)

        semesters: Dict[str, SemesterRecord] = {}
        cumulative_points = 0.0
        cumulative_credits = 0.0
        year_points = 0.0
        year_credits = 0.0
        current_year = None

        total_f_grades = 0
        total_improvements = 0
        sum_of_grade_points = 0.0

        for key in ordered_keys:
            academic_year, academic_semester = parse_semester_key(key)
            courses = semester_courses[key]

            if academic_year != current_year:
                year_points = 0.0
                year_credits = 0.0
                current_year = academic_year

            semester_points = 0.0
            semester_credits = 0.0
            for course in courses:
                if not course.is_graded:
                    continue  # N/A carries no credits
                semester_points += course.grade_point * course.credits
                semester_credits += course.credits
                sum_of_grade_points += course.grade_point
                if course.grade_letter == self.grading_scale.failing_letter:
                    total_f_grades += 1
                if course.improvement_applied:
                    total_improvements += 1

            cumulative_points += semester_points
            cumulative_credits += semester_credits
            year_points += semester_points
            year_credits += semester_credits

            semesters[key] = SemesterRecord(
                semester_key=key,
                academic_year=academic_year,
                academic_semester=academic_semester,
                display_name=semester_display_name(academic_year, academic_semester),
                exam_year=exam_years.get(key),
                gpa=weighted_average(semester_points, semester_credits),
                cgpa=weighted_average(cumulative_points, cumulative_credits),
                ygpa=weighted_average(year_points, year_credits),
                courses=courses,
                total_points=semester_points,
                total_credits=semester_credits,
                is_placeholder=key in placeholders,
            )

        gpas_with_data = [sem.gpa for sem in semesters.values() if sem.has_data]

        return StudentRecord(
            student_id=student_id,
            name=name,
            semesters=semesters,
            overall_cgpa=weighted_average(cumulative_points, cumulative_credits),
            gpa_history=[sem.gpa for sem in semesters.values()],
            cgpa_history=[sem.cgpa for sem in semesters.values()],
            gpa_standard_deviation=gpa_standard_deviation(gpas_with_data),
            cohort_tag=cohort_tag(student_id, self.cohort_tag_digits),
            total_f_grades=total_f_grades,
            total_improvements_applied=total_improvements,
            sum_of_grade_points=round(sum_of_grade_points, 3),
            is_complete=is_complete,
            data_quality_warnings=warnings,
        )

    def _select_regular_rows(
        self, rows: Sequence[RawResultRow], warnings: List[str]
    ) -> Dict[str, RawResultRow]:
        """Latest-sitting Regular row per (year, semester)"""
        selected: Dict[str, RawResultRow] = {}
        for row in rows:
            if not row.table.is_regular:
                continue
            key = row.table.semester_key
            current = selected.get(key)
            if current is None or row.table.exam_year > current.table.exam_year:
                selected[key] = row
            elif row.table.exam_year == current.table.exam_year:
                message = (
                    f"Duplicate regular results for semester {key} in "
                    f"{current.table.table_name} and {row.table.table_name}; "
                    f"keeping {current.table.table_name}"
                )
                logger.warning(f"⚠️ {message}")
                warnings.append(message)
        return selected

    def _apply_improvement(self, state: list, improved: str, code: str, table_name: str):
        original, applied, _ = state
        if original == NOT_AVAILABLE and applied == NOT_AVAILABLE:
            # Stands in for the missing regular grade, not counted as an improvement
            state[0] = improved
            state[1] = improved
            self.calculation_log.append(f"   {code}: accepted {improved} from {table_name} (no regular grade)")
            return

        eligible = self.grading_scale.has_improvement_opportunity(original)
        if eligible and self.grading_scale.point(improved) > self.grading_scale.point(applied):
            state[1] = improved
            state[2] = True
            self.calculation_log.append(f"   {code}: {applied} -> {improved} from {table_name}")

    def _read_letter(self, row: RawResultRow, code: str, warnings: List[str]) -> str:
        raw = row.grade_for(code)
        letter = self.grading_scale.normalize(raw)
        if letter is not None:
            return letter
        if raw is not None and str(raw).strip() not in ("", NOT_AVAILABLE):
            message = f"Unknown grade {raw!r} for {code} in {row.table.table_name}"
            logger.warning(f"⚠️ {message}")
            warnings.append(message)
        return NOT_AVAILABLE

    def _horizon_keys(self, data_keys, index_horizon: Optional[Tuple[int, int]]) -> List[str]:
        """All semester keys from 1-1 to the displayed horizon"""
        last_year = self.min_academic_years
        for key in data_keys:
            last_year = max(last_year, parse_semester_key(key)[0])
        if index_horizon:
            last_year = max(last_year, index_horizon[0])
        return [semester_key(year, sem) for year in range(1, last_year + 1) for sem in (1, 2)]

    def _required_keys(
        self, semester_courses: Dict[str, List[CourseRecord]], index_horizon: Optional[Tuple[int, int]]
    ) -> List[str]:
        """Semesters a complete record must have data for"""
        if index_horizon:
            limit = index_horizon
        else:
            with_data = [
                parse_semester_key(key)
                for key, courses in semester_courses.items()
                if any(course.is_graded for course in courses)
            ]
            if not with_data:
                return list(semester_courses.keys())
            limit = max(with_data)
        return [key for key in semester_courses if parse_semester_key(key) <= tuple(limit)]

    def _resolve_name(self, student_id: str, rows: Sequence[RawResultRow]) -> str:
        """Name from the latest regular 1st-semester row, else any row carrying one"""
        candidates = sorted(
            (row for row in rows if row.data.get(self.name_column)),
            key=lambda row: (
                row.table.is_regular and row.table.academic_semester == 1,
                row.table.exam_year,
            ),
            reverse=True,
        )
        if candidates:
            return str(candidates[0].data[self.name_column]).strip()
        return f"Student {student_id}"

    def get_calculation_log(self) -> List[str]:
        """Get detailed calculation log for debugging"""
        return self.calculation_log


def select_student_overrides(
    override_map: Mapping[Tuple[str, str, str], str], student_id: str
) -> Dict[Tuple[str, str], str]:
    """Pick one student's entries from a (student_id, semester_key, course_code) map"""
    return {
        (key, code): letter
        for (sid, key, code), letter in override_map.items()
        if sid == student_id and letter
    }


__all__ = [
    'AcademicRecordAggregator',
    'Overrides',
    'select_student_overrides',
]
