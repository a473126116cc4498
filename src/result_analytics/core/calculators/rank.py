#!/usr/bin/env python3
"""
COHORT RANK CALCULATOR - Rank a group of students and place one student in a semester or year
Composite ordering over complete student records

RANKING METHODOLOGY:
✅ Key 1: Overall CGPA (descending)
✅ Key 2: GPA standard deviation (ascending - more consistent ranks higher)
✅ Key 3: Cohort/session tag (ascending - earlier batch first)
✅ Key 4: Student ID (ascending - final tie-break)
✅ Rank = position in the ordering, so every rank is unique

STANDARD DEVIATION:
- Sample standard deviation (n-1) over semester GPAs that have data
- Defined as 0.0 when fewer than 2 semesters have data

SEMESTER STANDING:
- One table's average GPA and the student's position within it
- Ordered by GPA descending, then roll number ascending

YEAR STANDING:
- Every R and I sitting of the year's two semesters merged per student and course
- Improvement beats Regular, then the later exam year, then the higher grade
- Average YGPA and the student's position, ordered like semester standing

OUTPUT FORMATS:
- Numeric: "Rank 3 of 10"
- Percentile: "Top 30%"
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import logging

import numpy as np
import pandas as pd

from ..grading import (
    CANONICAL_SCALE,
    COURSE_CREDITS,
    GradingScale,
    round_gpa,
    subject_codes_for_semester,
    weighted_average,
)
from ..models import ResultTableMeta, SemesterStanding, StudentRecord, YearStanding

logger = logging.getLogger(__name__)


def gpa_standard_deviation(gpas: Sequence[float]) -> float:
    """Sample standard deviation of a GPA sequence; 0.0 below two values"""
    if len(gpas) < 2:
        return 0.0
    return round_gpa(float(np.std(np.asarray(gpas, dtype=float), ddof=1)))


@dataclass
class RankedStudent:
    """Position of one student in a cohort ordering"""
    student_id: str
    name: str
    rank: int
    total_students: int
    overall_cgpa: float
    gpa_standard_deviation: float
    cohort_tag: str
    is_complete: bool = True

    @property
    def rank_display(self) -> str:
        """Get formatted rank display"""
        return f"{self.rank} of {self.total_students}"

    @property
    def percentile(self) -> float:
        return (self.rank / self.total_students) * 100

    @property
    def percentile_display(self) -> str:
        """Get formatted percentile display"""
        if self.percentile <= 10:
            return "Top 10%"
        elif self.percentile <= 25:
            return "Top 25%"
        elif self.percentile <= 50:
            return "Top Half"
        else:
            return f"Top {int(self.percentile)}%"


def ranking_sort_key(record: StudentRecord):
    """Composite comparator key; smaller sorts first"""
    std_dev = record.gpa_standard_deviation
    if std_dev is None:
        std_dev = gpa_standard_deviation([sem.gpa for sem in record.semesters_with_data])
    return (
        -record.overall_cgpa,
        std_dev,
        record.cohort_tag or "",
        record.student_id,
    )


class CohortRankCalculator:
    """Rank students of a group by CGPA, consistency, cohort and id"""

    def __init__(self):
        self.rankings: Dict[str, RankedStudent] = {}
        self.ranking_log: List[str] = []

    def calculate_rankings(
        self,
        records: Iterable[StudentRecord],
        require_complete: bool = True,
    ) -> List[RankedStudent]:
        """
        Rank every student of a group

        Args:
            records: Student records to rank
            require_complete: Only rank students with data for every known semester

        Returns:
            RankedStudent list in rank order
        """
        records = list(records)
        self.ranking_log = [f"🏆 Calculating cohort rankings for {len(records)} students"]

        if require_complete:
            skipped = [r.student_id for r in records if not r.is_complete]
            records = [r for r in records if r.is_complete]
            if skipped:
                self.ranking_log.append(f"   Skipped incomplete records: {', '.join(skipped)}")

        ordered = sorted(records, key=ranking_sort_key)
        total = len(ordered)

        ranked = []
        for position, record in enumerate(ordered, start=1):
            std_dev = ranking_sort_key(record)[1]
            result = RankedStudent(
                student_id=record.student_id,
                name=record.name,
                rank=position,
                total_students=total,
                overall_cgpa=record.overall_cgpa,
                gpa_standard_deviation=std_dev,
                cohort_tag=record.cohort_tag or "",
                is_complete=record.is_complete,
            )
            ranked.append(result)

            if position <= 10:
                self.ranking_log.append(
                    f"   #{position}: Student {record.student_id} - CGPA {record.overall_cgpa:.3f} "
                    f"- SD {std_dev:.3f}"
                )

        self.rankings = {r.student_id: r for r in ranked}

        if ranked:
            self.ranking_log.append("✅ Rankings calculated successfully")
            self.ranking_log.append(f"   Top CGPA: {ranked[0].overall_cgpa:.3f}")
        else:
            self.ranking_log.append("⚠️ No students to rank")

        return ranked

    def get_student_rank(self, student_id: str) -> Optional[RankedStudent]:
        """Get rank for specific student"""
        return self.rankings.get(student_id)

    def _ordered(self) -> List[RankedStudent]:
        return sorted(self.rankings.values(), key=lambda r: r.rank)

    def get_top_students(self, n: int = 10) -> List[RankedStudent]:
        """Get top N students by rank"""
        return self._ordered()[:n]

    def get_students_around(self, student_id: str, window: int = 2) -> List[RankedStudent]:
        """Students within `window` ranks of the given student, inclusive"""
        result = self.rankings.get(student_id)
        if result is None:
            return []
        low = max(1, result.rank - window)
        high = result.rank + window
        return [r for r in self._ordered() if low <= r.rank <= high]

    def generate_ranking_report(self, output_path: Optional[Path] = None) -> pd.DataFrame:
        """
        Generate comprehensive ranking report

        Args:
            output_path: Optional path to save CSV report

        Returns:
            DataFrame with all ranking information
        """
        if not self.rankings:
            logger.warning("No rankings calculated yet")
            return pd.DataFrame()

        records = []
        for result in self._ordered():
            records.append({
                'Student ID': result.student_id,
                'Name': result.name,
                'Rank': result.rank,
                'CGPA': result.overall_cgpa,
                'GPA Std Dev': result.gpa_standard_deviation,
                'Session': result.cohort_tag,
                'Complete': result.is_complete,
                'Rank Display': result.rank_display,
                'Percentile Display': result.percentile_display,
            })

        df = pd.DataFrame(records)

        if output_path:
            df.to_csv(output_path, index=False)
            logger.info(f"Ranking report saved to: {output_path}")

        return df

    def get_ranking_log(self) -> List[str]:
        """Get detailed ranking calculation log"""
        return self.ranking_log


def semester_standing(
    table: ResultTableMeta,
    rows: Sequence[Dict],
    student_id: str,
    roll_column: str = "Roll no.",
    grading_scale: Optional[GradingScale] = None,
) -> SemesterStanding:
    """
    Average GPA of one result table and the student's rank within it

    Each row's GPA is computed from its grade columns; rows without any
    recognized grade are left out of the average and the ranking.
    """
    scale = grading_scale or CANONICAL_SCALE
    codes = subject_codes_for_semester(table.academic_year, table.academic_semester)

    gpas: Dict[str, float] = {}
    for row in rows:
        roll = row.get(roll_column)
        if roll is None:
            continue
        letters = [scale.normalize(row.get(code)) for code in codes]
        graded = [letter for letter in letters if letter is not None]
        if not graded:
            continue
        points = sum(scale.point(letter) * COURSE_CREDITS for letter in graded)
        gpas[str(roll).strip()] = weighted_average(points, len(graded) * COURSE_CREDITS)

    average = round_gpa(float(np.mean(list(gpas.values())))) if gpas else 0.0

    student_gpa = gpas.get(student_id)
    rank = None
    if student_gpa is not None:
        ordering = sorted(gpas.items(), key=lambda item: (-item[1], item[0]))
        rank = [roll for roll, _ in ordering].index(student_id) + 1

    return SemesterStanding(
        table_name=table.table_name,
        semester_key=table.semester_key,
        student_id=student_id,
        gpa=student_gpa,
        average_gpa=average,
        rank=rank,
        total_students=len(gpas),
    )


def _supersedes(new: tuple, existing: tuple, scale: GradingScale) -> bool:
    """Improvement beats Regular, then the later exam year, then the higher grade"""
    new_letter, new_year, new_improvement = new
    old_letter, old_year, old_improvement = existing
    if new_improvement != old_improvement:
        return new_improvement
    if new_year != old_year:
        return new_year > old_year
    return scale.point(new_letter) > scale.point(old_letter)


def merge_year_grades(
    table_rows: Sequence[Tuple[ResultTableMeta, Sequence[Dict]]],
    roll_column: str = "Roll no.",
    grading_scale: Optional[GradingScale] = None,
) -> Dict[str, Dict[str, str]]:
    """
    One grade per student per course over every sitting of an academic year

    Returns:
        roll -> course_code -> grade letter
    """
    scale = grading_scale or CANONICAL_SCALE

    # roll -> course_code -> (letter, exam_year, is_improvement)
    merged: Dict[str, Dict[str, tuple]] = {}
    for table, rows in table_rows:
        codes = subject_codes_for_semester(table.academic_year, table.academic_semester)
        for row in rows:
            roll = row.get(roll_column)
            if roll is None:
                continue
            grades = merged.setdefault(str(roll).strip(), {})
            for code in codes:
                letter = scale.normalize(row.get(code))
                if letter is None:
                    continue
                candidate = (letter, table.exam_year, table.is_improvement)
                if code not in grades or _supersedes(candidate, grades[code], scale):
                    grades[code] = candidate

    return {
        roll: {code: entry[0] for code, entry in grades.items()}
        for roll, grades in merged.items()
        if grades
    }


def year_standing(
    academic_year: int,
    table_rows: Sequence[Tuple[ResultTableMeta, Sequence[Dict]]],
    student_id: str,
    roll_column: str = "Roll no.",
    grading_scale: Optional[GradingScale] = None,
) -> YearStanding:
    """
    Average YGPA of an academic year and the student's rank within it

    Every Regular and Improvement sitting of the year's two semesters is merged
    per student before the YGPA is taken over the merged grades.
    """
    scale = grading_scale or CANONICAL_SCALE
    merged = merge_year_grades(table_rows, roll_column=roll_column, grading_scale=scale)

    ygpas: Dict[str, float] = {}
    for roll, grades in merged.items():
        points = sum(scale.point(letter) * COURSE_CREDITS for letter in grades.values())
        ygpas[roll] = weighted_average(points, len(grades) * COURSE_CREDITS)

    average = round_gpa(float(np.mean(list(ygpas.values())))) if ygpas else 0.0

    student_ygpa = ygpas.get(student_id)
    rank = None
    if student_ygpa is not None:
        ordering = sorted(ygpas.items(), key=lambda item: (-item[1], item[0]))
        rank = [roll for roll, _ in ordering].index(student_id) + 1

    logger.info(
        f"📅 Year {academic_year}: {len(ygpas)} students over {len(table_rows)} tables, "
        f"average YGPA {average:.3f}"
    )
    return YearStanding(
        academic_year=academic_year,
        student_id=student_id,
        ygpa=student_ygpa,
        average_ygpa=average,
        rank=rank,
        total_students=len(ygpas),
        tables_scanned=[table.table_name for table, _ in table_rows],
    )


__all__ = [
    'gpa_standard_deviation',
    'ranking_sort_key',
    'RankedStudent',
    'CohortRankCalculator',
    'semester_standing',
    'merge_year_grades',
    'year_standing',
]
