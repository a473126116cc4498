#!/usr/bin/env python3
"""
Terminal lookups against the configured record store

Usage:
    result-analytics student <student_id>
    result-analytics standing <student_id> <table_name>
    result-analytics year-standing <student_id> <academic_year>
    result-analytics group <student_id> [<student_id> ...]
    result-analytics course <course_code>
"""

import asyncio
import logging
import sys

from .api.dependencies import get_result_service
from .config import get_settings
from .core.calculators import grade_distribution_frame
from .core.exceptions import ResultAnalyticsError

logger = logging.getLogger(__name__)

USAGE = __doc__.split("Usage:")[1].rstrip()


def print_student(record):
    print(f"\n🎓 {record.name} ({record.student_id})")
    print("=" * 60)
    for semester in record.semesters.values():
        if semester.is_placeholder:
            print(f"  {semester.display_name:28s} | no results")
            continue
        grades = " ".join(f"{c.course_code}:{c.grade_letter}" for c in semester.courses)
        print(
            f"  {semester.display_name:28s} | GPA {semester.gpa:.3f} | "
            f"CGPA {semester.cgpa:.3f} | YGPA {semester.ygpa:.3f} | {grades}"
        )
    print("-" * 60)
    print(f"  Overall CGPA: {record.overall_cgpa:.3f}")
    print(f"  GPA Std Dev:  {record.gpa_standard_deviation:.3f}")
    print(f"  F grades: {record.total_f_grades}, improvements applied: {record.total_improvements_applied}")
    for warning in record.data_quality_warnings:
        print(f"  ⚠️ {warning}")


def print_group(analysis):
    print(f"\n👥 Group of {len(analysis.requested_ids)} (batch average CGPA {analysis.average_cgpa:.3f})")
    print("=" * 60)
    for ranked in analysis.rankings:
        print(
            f"  #{ranked.rank:2d} | {ranked.student_id} | {ranked.name:24s} | "
            f"CGPA {ranked.overall_cgpa:.3f} | SD {ranked.gpa_standard_deviation:.3f}"
        )
    if analysis.missing_ids:
        print(f"  ❌ No results: {', '.join(analysis.missing_ids)}")
    for award in analysis.deans_honours + analysis.deans_merit:
        print(f"  🏆 {award.award_name}: {award.name} ({award.details})")


def print_course(summary):
    print(f"\n📚 Course {summary.course_code}: {summary.total_students} students")
    print("=" * 60)
    print(grade_distribution_frame(summary).to_string(index=False))
    print(f"\n  Average grade point: {summary.average_grade_point:.2f}")
    if summary.overall_average_grade_point is not None:
        print(f"  Overall average:     {summary.overall_average_grade_point:.2f}")


async def run(args):
    service = get_result_service()
    command, params = args[0], args[1:]

    if command == "student" and len(params) == 1:
        print_student(await service.get_student_record(params[0]))
    elif command == "standing" and len(params) == 2:
        standing = await service.get_semester_standing(params[0], params[1])
        print(f"\n📊 {standing.table_name}: GPA {standing.gpa:.3f}, rank {standing.rank_display}")
        print(f"  Table average GPA: {standing.average_gpa:.3f}")
    elif command == "year-standing" and len(params) == 2 and params[1].isdigit():
        standing = await service.get_year_standing(params[0], int(params[1]))
        print(f"\n📅 Year {standing.academic_year}: YGPA {standing.ygpa:.3f}, rank {standing.rank_display}")
        print(f"  Year average YGPA: {standing.average_ygpa:.3f}")
    elif command == "group" and params:
        print_group(await service.get_group_analysis(params))
    elif command == "course" and len(params) == 1:
        print_course(await service.get_course_summary(params[0]))
    else:
        return False
    return True


def main(argv=None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(level=getattr(logging, get_settings().log_level, logging.INFO))

    if not args:
        print(f"Usage:{USAGE}")
        return 1

    try:
        handled = asyncio.run(run(args))
    except ResultAnalyticsError as e:
        print(f"❌ {e}")
        return 1

    if not handled:
        print(f"Usage:{USAGE}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
