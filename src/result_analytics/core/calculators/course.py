#!/usr/bin/env python3
"""
COURSE AGGREGATOR - Cross-student statistics for one course
Scans every result table that can contain a course code

OUTPUTS:
✅ Total graded students (one entry per graded row found)
✅ Grade distribution in scale order (zero counts kept for charting)
✅ Mean grade point for the course
✅ Overall average grade point across a sample of tables (baseline)

Rows whose course column is empty or not a recognized letter are skipped.
A course with no graded entries anywhere is reported as not found.
"""

import re
from typing import Dict, List, Mapping, Optional, Sequence
import logging

import pandas as pd

from ..exceptions import CourseNotFoundError
from ..grading import CANONICAL_SCALE, GradingScale, parse_course_code, round_gpa
from ..models import CourseGradeEntry, CourseSummary

logger = logging.getLogger(__name__)

COURSE_COLUMN_PATTERN = re.compile(r"^\d{3}$")


class CourseAggregator:
    """Aggregate one course's grades across result tables"""

    def __init__(self, grading_scale: Optional[GradingScale] = None, roll_column: str = "Roll no."):
        self.grading_scale = grading_scale or CANONICAL_SCALE
        self.roll_column = roll_column
        self.calculation_log: List[str] = []

    def summarize_course(
        self,
        course_code: str,
        table_rows: Mapping[str, Sequence[Dict]],
        overall_average: Optional[float] = None,
    ) -> CourseSummary:
        """
        Build a course summary from already-fetched tables

        Args:
            course_code: 3-digit course code
            table_rows: Table name -> rows holding roll and course columns
            overall_average: Cached baseline to attach to the summary

        Raises:
            MalformedInputError: if the course code does not parse
            CourseNotFoundError: if no table holds a graded entry for the course
        """
        academic_year, academic_semester, _ = parse_course_code(course_code)
        course_code = course_code.strip()
        self.calculation_log = [f"📚 Summarizing course {course_code} over {len(table_rows)} tables"]

        grades: List[CourseGradeEntry] = []
        for table_name, rows in table_rows.items():
            found = 0
            for row in rows:
                letter = self.grading_scale.normalize(row.get(course_code))
                if letter is None:
                    continue
                grades.append(
                    CourseGradeEntry(
                        student_id=str(row.get(self.roll_column, "")).strip(),
                        grade_letter=letter,
                        grade_point=self.grading_scale.point(letter),
                        table_name=table_name,
                    )
                )
                found += 1
            self.calculation_log.append(f"   {table_name}: {found} graded entries")

        if not grades:
            self.calculation_log.append("❌ No graded entries found")
            raise CourseNotFoundError(course_code)

        distribution = {letter: 0 for letter in self.grading_scale.letters}
        for entry in grades:
            distribution[entry.grade_letter] += 1

        average = round_gpa(sum(entry.grade_point for entry in grades) / len(grades))
        self.calculation_log.append(f"✅ {len(grades)} students, mean grade point {average:.3f}")

        return CourseSummary(
            course_code=course_code,
            academic_year=academic_year,
            academic_semester=academic_semester,
            total_students=len(grades),
            grade_distribution=distribution,
            average_grade_point=average,
            overall_average_grade_point=overall_average,
            grades=grades,
            tables_scanned=list(table_rows.keys()),
        )

    def average_grade_point(self, table_rows: Mapping[str, Sequence[Dict]]) -> float:
        """Mean grade point over every course column of every row; 0.0 when empty"""
        total_points = 0.0
        count = 0
        for rows in table_rows.values():
            for row in rows:
                for column, value in row.items():
                    if not COURSE_COLUMN_PATTERN.match(str(column)):
                        continue
                    letter = self.grading_scale.normalize(value)
                    if letter is None:
                        continue
                    total_points += self.grading_scale.point(letter)
                    count += 1
        if count == 0:
            return 0.0
        return round_gpa(total_points / count)

    def get_calculation_log(self) -> List[str]:
        return self.calculation_log


def grade_distribution_frame(summary: CourseSummary) -> pd.DataFrame:
    """Course grade distribution as a DataFrame (Grade, Count, Share %)"""
    df = pd.DataFrame(
        {
            'Grade': list(summary.grade_distribution.keys()),
            'Count': list(summary.grade_distribution.values()),
        }
    )
    df['Share %'] = (df['Count'] / summary.total_students * 100).round(1)
    return df


__all__ = [
    'CourseAggregator',
    'grade_distribution_frame',
]
