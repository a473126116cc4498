"""
Result Analytics Service

Fans out record-store reads, joins them into a mapping keyed by table name,
and hands the joined data to the synchronous calculators.

A failed table read is logged and treated as "no data for that table"; only a
failure of the metadata index itself is fatal for a request.
"""

import asyncio
import logging
from typing import Any, Awaitable, Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np
from pydantic import BaseModel, Field

from ...config import Settings, get_settings
from ...core.calculators import (
    AcademicRecordAggregator,
    AwardResult,
    CohortRankCalculator,
    CourseAggregator,
    RankedStudent,
    calculate_deans_honours_list,
    calculate_deans_merit_list,
    semester_standing,
    year_standing,
)
from ...core.exceptions import MalformedInputError, NotFoundError, StudentNotFoundError
from ...core.grading import (
    CANONICAL_SCALE,
    GradingScale,
    parse_course_code,
    round_gpa,
    subject_codes_for_semester,
    validate_student_id,
)
from ...core.models import (
    CourseSummary,
    RawResultRow,
    ResultTableMeta,
    SemesterStanding,
    StudentRecord,
    YearStanding,
)
from .record_store import SupabaseRecordStore

logger = logging.getLogger(__name__)


class GroupAnalysis(BaseModel):
    """Side-by-side analysis of a small group of students"""

    requested_ids: List[str] = Field(default_factory=list)
    records: List[StudentRecord] = Field(default_factory=list)
    missing_ids: List[str] = Field(default_factory=list, description="Ids with no results anywhere")
    rankings: List[RankedStudent] = Field(default_factory=list)
    average_cgpa: float = Field(0.0, ge=0.0, le=4.0, description="Mean overall CGPA of found students")
    deans_honours: List[AwardResult] = Field(default_factory=list)
    deans_merit: List[AwardResult] = Field(default_factory=list)

    def top(self, n: int = 3) -> List[RankedStudent]:
        return self.rankings[:n]

    def around(self, student_id: str, window: int = 1) -> List[RankedStudent]:
        for ranked in self.rankings:
            if ranked.student_id == student_id:
                return [r for r in self.rankings if abs(r.rank - ranked.rank) <= window]
        return []


def index_horizon(tables: Iterable[ResultTableMeta]) -> Optional[Tuple[int, int]]:
    """Latest (academic year, semester) the metadata index knows about"""
    keys = [(t.academic_year, t.academic_semester) for t in tables]
    return max(keys) if keys else None


def validate_group_ids(student_ids: Iterable[Any], max_group_size: int) -> List[str]:
    """Validate and de-duplicate group input, keeping first-seen order"""
    cleaned: List[str] = []
    for student_id in student_ids:
        student_id = validate_student_id(student_id)
        if student_id not in cleaned:
            cleaned.append(student_id)
    if not cleaned:
        raise MalformedInputError("Enter at least one Student ID")
    if len(cleaned) > max_group_size:
        raise MalformedInputError(
            f"At most {max_group_size} Student IDs can be analyzed together, got {len(cleaned)}"
        )
    return cleaned


class ResultAnalyticsService:
    """Fetch-then-aggregate service over a record store"""

    def __init__(
        self,
        store: SupabaseRecordStore,
        settings: Optional[Settings] = None,
        grading_scale: Optional[GradingScale] = None,
    ):
        self.store = store
        self.settings = settings or get_settings()
        self.grading_scale = grading_scale or CANONICAL_SCALE
        self._overall_average: Optional[float] = None

    def _aggregator(self) -> AcademicRecordAggregator:
        return AcademicRecordAggregator(
            grading_scale=self.grading_scale,
            min_academic_years=self.settings.min_academic_years,
            cohort_tag_digits=self.settings.cohort_tag_digits,
            name_column=self.settings.name_column,
        )

    async def _gather_by_table(self, requests: Mapping[str, Awaitable]) -> Dict[str, Any]:
        """
        Run table reads concurrently and join them by table name

        Failed reads are logged and left out of the result.
        """
        names = list(requests.keys())
        results = await asyncio.gather(*requests.values(), return_exceptions=True)

        joined: Dict[str, Any] = {}
        for name, result in zip(names, results):
            if isinstance(result, Exception):
                logger.warning(f"⚠️ Skipping table {name}: {result}")
                continue
            joined[name] = result
        return joined

    # ---- Students ----

    def _student_columns(self, table: ResultTableMeta) -> List[str]:
        columns = subject_codes_for_semester(table.academic_year, table.academic_semester)
        if table.is_regular and table.academic_semester == 1:
            columns.append(self.settings.name_column)
        return columns

    async def _build_student_record(
        self, student_id: str, tables: List[ResultTableMeta]
    ) -> StudentRecord:
        requests = {
            table.table_name: self.store.fetch_student_row(
                table.table_name, student_id, self._student_columns(table)
            )
            for table in tables
        }
        fetched = await self._gather_by_table(requests)

        rows = [
            RawResultRow(table=table, data=fetched[table.table_name])
            for table in tables
            if fetched.get(table.table_name)
        ]
        return self._aggregator().build_student_record(
            student_id, rows, index_horizon=index_horizon(tables)
        )

    async def get_student_record(self, student_id: str) -> StudentRecord:
        """
        Complete academic record for one student

        Raises:
            MalformedInputError: if the id is not 10 digits (before any fetch)
            StudentNotFoundError: if no table holds a row for the student
        """
        student_id = validate_student_id(student_id)
        tables = await self.store.list_result_tables()
        record = await self._build_student_record(student_id, tables)
        logger.info(f"✅ Student {student_id}: CGPA {record.overall_cgpa:.3f}")
        return record

    def recompute(
        self, record: StudentRecord, overrides: Mapping[Tuple[str, str], str]
    ) -> StudentRecord:
        """What-if totals for an already-built record; no I/O"""
        return self._aggregator().recompute(record, overrides)

    async def get_what_if_record(
        self, student_id: str, overrides: Mapping[Tuple[str, str], str]
    ) -> StudentRecord:
        record = await self.get_student_record(student_id)
        return self.recompute(record, overrides)

    # ---- Groups ----

    async def get_group_analysis(
        self,
        student_ids: Iterable[Any],
        require_complete: bool = True,
    ) -> GroupAnalysis:
        """
        Fetch a group of students concurrently and rank them

        Ids with no results are listed in missing_ids instead of failing the group.
        """
        ids = validate_group_ids(student_ids, self.settings.max_group_size)
        tables = await self.store.list_result_tables()

        results = await asyncio.gather(
            *(self._build_student_record(student_id, tables) for student_id in ids),
            return_exceptions=True,
        )

        records: List[StudentRecord] = []
        missing: List[str] = []
        for student_id, result in zip(ids, results):
            if isinstance(result, StudentNotFoundError):
                missing.append(student_id)
            elif isinstance(result, Exception):
                raise result
            else:
                records.append(result)

        rankings = CohortRankCalculator().calculate_rankings(records, require_complete=require_complete)
        average = round_gpa(float(np.mean([r.overall_cgpa for r in records]))) if records else 0.0

        logger.info(f"👥 Group analysis: {len(records)} found, {len(missing)} missing")
        return GroupAnalysis(
            requested_ids=ids,
            records=records,
            missing_ids=missing,
            rankings=rankings,
            average_cgpa=average,
            deans_honours=calculate_deans_honours_list(records, self.settings.deans_honours_threshold),
            deans_merit=calculate_deans_merit_list(records, self.settings.deans_merit_gpa),
        )

    # ---- Courses ----

    async def get_course_summary(self, course_code: str) -> CourseSummary:
        """
        Aggregate one course over every table of its (year, semester)

        Raises:
            MalformedInputError: if the code does not parse (before any fetch)
            CourseNotFoundError: if no table holds a graded entry
        """
        academic_year, academic_semester, _ = parse_course_code(course_code)
        course_code = course_code.strip()

        tables = await self.store.list_result_tables(
            academic_year=academic_year, academic_semester=academic_semester
        )
        requests = {
            table.table_name: self.store.fetch_table(table.table_name, [course_code])
            for table in tables
        }
        fetched = await self._gather_by_table(requests)
        overall = await self.get_overall_average()

        aggregator = CourseAggregator(self.grading_scale, roll_column=self.settings.roll_column)
        return aggregator.summarize_course(course_code, fetched, overall_average=overall)

    def _sample_tables(self, tables: List[ResultTableMeta]) -> List[ResultTableMeta]:
        """Latest regular table of each (year, semester), earliest semesters first"""
        latest: Dict[Tuple[int, int], ResultTableMeta] = {}
        for table in tables:
            if not table.is_regular:
                continue
            key = (table.academic_year, table.academic_semester)
            if key not in latest or table.exam_year > latest[key].exam_year:
                latest[key] = table
        ordered = [latest[key] for key in sorted(latest)]
        return ordered[: self.settings.overall_average_sample_size]

    async def get_overall_average(self) -> Optional[float]:
        """
        Mean grade point across sampled tables, computed once and memoized

        Returns None (and caches nothing) when no sampled table could be read.
        """
        if self._overall_average is not None:
            return self._overall_average

        tables = self._sample_tables(await self.store.list_result_tables(result_type="R"))
        requests = {
            table.table_name: self.store.fetch_table(
                table.table_name,
                subject_codes_for_semester(table.academic_year, table.academic_semester),
            )
            for table in tables
        }
        fetched = await self._gather_by_table(requests)
        if not fetched:
            logger.warning("⚠️ Overall average unavailable: no sampled table could be read")
            return None

        aggregator = CourseAggregator(self.grading_scale, roll_column=self.settings.roll_column)
        self._overall_average = aggregator.average_grade_point(fetched)
        logger.info(
            f"📊 Overall average grade point {self._overall_average:.3f} from {', '.join(fetched)}"
        )
        return self._overall_average

    def invalidate_overall_average(self):
        """Forget the memoized baseline; the next course query recomputes it"""
        self._overall_average = None

    # ---- Semester standing ----

    async def get_semester_standing(self, student_id: str, table_name: str) -> SemesterStanding:
        """
        A student's GPA rank and the average GPA within one result table

        Raises:
            NotFoundError: if the table is not in the metadata index
            StudentNotFoundError: if the student has no row in the table
        """
        student_id = validate_student_id(student_id)
        table = ResultTableMeta.from_table_name(table_name)

        tables = await self.store.list_result_tables(
            academic_year=table.academic_year, academic_semester=table.academic_semester
        )
        if not any(t.table_name == table.table_name for t in tables):
            raise NotFoundError(f"Result table {table_name} is not in the metadata index")

        rows = await self.store.fetch_table(
            table.table_name,
            subject_codes_for_semester(table.academic_year, table.academic_semester),
        )
        standing = semester_standing(
            table, rows, student_id, roll_column=self.settings.roll_column, grading_scale=self.grading_scale
        )
        if standing.gpa is None:
            raise StudentNotFoundError(student_id)
        return standing

    # ---- Year standing ----

    async def get_year_standing(self, student_id: str, academic_year: int) -> YearStanding:
        """
        A student's YGPA rank and the average YGPA over one academic year

        Reads every Regular and Improvement table of the year listed in the
        metadata index; the year counts once its 2nd semester has results.

        Raises:
            MalformedInputError: if the id or academic year is invalid (before any fetch)
            NotFoundError: if the index has no 2nd-semester table for the year
            StudentNotFoundError: if the student has no grades in the year
        """
        student_id = validate_student_id(student_id)
        if not isinstance(academic_year, int) or academic_year < 1:
            raise MalformedInputError(f"Invalid academic year: {academic_year!r}")

        tables = await self.store.list_result_tables(academic_year=academic_year)
        if not any(t.academic_semester == 2 for t in tables):
            raise NotFoundError(f"Academic year {academic_year} has no 2nd-semester results yet")

        requests = {
            table.table_name: self.store.fetch_table(
                table.table_name,
                subject_codes_for_semester(table.academic_year, table.academic_semester),
            )
            for table in tables
        }
        fetched = await self._gather_by_table(requests)

        standing = year_standing(
            academic_year,
            [(table, fetched[table.table_name]) for table in tables if table.table_name in fetched],
            student_id,
            roll_column=self.settings.roll_column,
            grading_scale=self.grading_scale,
        )
        if standing.ygpa is None:
            raise StudentNotFoundError(student_id)
        return standing
