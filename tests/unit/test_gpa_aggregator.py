"""
Unit Tests for the academic record aggregator

Tests semester GPA, running CGPA/YGPA, improvement reconciliation and
placeholder synthesis.
"""

import pytest

from result_analytics.core.calculators.gpa import AcademicRecordAggregator
from result_analytics.core.exceptions import MalformedInputError, StudentNotFoundError
from result_analytics.core.models import RawResultRow, ResultTableMeta


@pytest.fixture
def aggregator():
    return AcademicRecordAggregator()


class TestSemesterAggregation:
    """Semester GPA and running averages"""

    def test_single_semester_gpa(self, aggregator, student_id, make_row):
        """A+, B+, A, A-, A- -> (4.00+3.25+3.75+3.50+3.50)/5"""
        record = aggregator.build_student_record(
            student_id, [make_row("1121R", ["A+", "B+", "A", "A-", "A-"])]
        )

        semester = record.semesters["1-1"]
        assert semester.gpa == 3.600
        assert semester.total_credits == 15
        assert semester.total_points == pytest.approx(54.0)
        assert semester.display_name == "1st Year 1st Semester"

    def test_improvement_replaces_failing_grade(self, aggregator, student_id, make_row, scenario_rows):
        record = aggregator.build_student_record(student_id, scenario_rows)

        course = record.semesters["1-2"].get_course("111")
        assert course.grade_letter == "B-"
        assert course.grade_point == 2.75
        assert course.original_grade_letter == "F"
        assert course.improvement_applied is True
        assert course.has_improvement_opportunity is True
        assert record.semesters["1-2"].gpa == 2.950

    def test_cgpa_is_credit_weighted_over_all_semesters(self, aggregator, student_id, make_row, scenario_rows):
        record = aggregator.build_student_record(student_id, scenario_rows)

        assert record.semesters["1-1"].cgpa == 3.600
        # (54.00 + 44.25) / 30
        assert record.semesters["1-2"].cgpa == 3.275
        # (54.00 + 44.25 + 56.25) / 45
        assert record.semesters["2-1"].cgpa == 3.433
        assert record.overall_cgpa == 3.433

    def test_ygpa_resets_at_year_boundary(self, aggregator, student_id, make_row, scenario_rows):
        record = aggregator.build_student_record(student_id, scenario_rows)

        assert record.semesters["1-1"].ygpa == 3.600
        assert record.semesters["1-2"].ygpa == 3.275
        assert record.semesters["2-1"].ygpa == 3.750

    def test_histories_and_counters(self, aggregator, student_id, make_row, scenario_rows):
        record = aggregator.build_student_record(student_id, scenario_rows)

        assert record.gpa_history[:3] == [3.600, 2.950, 3.750]
        assert record.cgpa_history[:3] == [3.600, 3.275, 3.433]
        assert record.gpa_standard_deviation == pytest.approx(0.425, abs=1e-3)
        assert record.total_f_grades == 0
        assert record.total_improvements_applied == 1
        assert record.sum_of_grade_points == pytest.approx(51.5)
        assert record.cohort_tag == "19"
        assert record.name == "Nusrat Jahan"

    def test_single_semester_standard_deviation_is_zero(self, aggregator, student_id, make_row):
        record = aggregator.build_student_record(
            student_id, [make_row("1121R", ["A", "B", "C", "D", "F"])]
        )
        assert record.gpa_standard_deviation == 0.0


class TestPlaceholders:
    """Missing semesters and courses"""

    def test_horizon_covers_four_years(self, aggregator, student_id, make_row, scenario_rows):
        record = aggregator.build_student_record(student_id, scenario_rows)

        assert record.semester_keys == [
            "1-1", "1-2", "2-1", "2-2", "3-1", "3-2", "4-1", "4-2",
        ]
        placeholder = record.semesters["3-2"]
        assert placeholder.is_placeholder is True
        assert [c.course_code for c in placeholder.courses] == ["311", "312", "313", "314", "315"]
        assert all(c.grade_letter == "N/A" for c in placeholder.courses)
        assert placeholder.gpa == 0.0
        assert placeholder.ygpa == 0.0
        # Running CGPA carries through empty semesters
        assert placeholder.cgpa == record.overall_cgpa

    def test_horizon_extends_with_data(self, aggregator, student_id, make_row):
        record = aggregator.build_student_record(
            student_id, [make_row("5125R", ["A", "A", "A", "A", "A"])]
        )
        assert record.semester_keys[-1] == "5-2"
        assert len(record.semesters) == 10

    def test_missing_courses_carry_no_credits(self, aggregator, student_id, make_row):
        record = aggregator.build_student_record(
            student_id, [make_row("1121R", ["A", "A", None, None, None])]
        )
        semester = record.semesters["1-1"]
        assert semester.total_credits == 6
        assert semester.gpa == 3.750
        assert semester.get_course("105").grade_letter == "N/A"
        assert semester.get_course("105").has_improvement_opportunity is True

    def test_unknown_grade_letters_are_flagged(self, aggregator, student_id, make_row):
        record = aggregator.build_student_record(
            student_id, [make_row("1121R", ["A", "A", "A", "A", "X"])]
        )
        assert record.semesters["1-1"].get_course("105").grade_letter == "N/A"
        assert record.semesters["1-1"].gpa == 3.750
        assert any("X" in warning for warning in record.data_quality_warnings)

    def test_completeness_against_index_horizon(self, aggregator, student_id, make_row, scenario_rows):
        complete = aggregator.build_student_record(student_id, scenario_rows, index_horizon=(2, 1))
        assert complete.is_complete is True

        incomplete = aggregator.build_student_record(student_id, scenario_rows, index_horizon=(2, 2))
        assert incomplete.is_complete is False


class TestRegularSelection:
    """Latest regular sitting and data quality on ties"""

    def test_latest_regular_sitting_wins(self, aggregator, student_id, make_row):
        rows = [
            make_row("1121R", ["F", "F", "F", "F", "F"]),
            make_row("1122R", ["B", "B", "B", "B", "B"]),
        ]
        record = aggregator.build_student_record(student_id, rows)

        assert record.semesters["1-1"].gpa == 3.000
        assert record.semesters["1-1"].exam_year == 2022

    def test_duplicate_regular_sitting_is_flagged(self, aggregator, student_id, make_row):
        first = ResultTableMeta(
            table_name="1121R", academic_year=1, academic_semester=1, exam_year=2021, result_type="R"
        )
        second = ResultTableMeta(
            table_name="1121R_reissue", academic_year=1, academic_semester=1, exam_year=21, result_type="R"
        )
        rows = [
            RawResultRow(table=first, data={"101": "A", "102": "A", "103": "A", "104": "A", "105": "A"}),
            RawResultRow(table=second, data={"101": "F", "102": "F", "103": "F", "104": "F", "105": "F"}),
        ]
        record = aggregator.build_student_record(student_id, rows)

        assert record.semesters["1-1"].gpa == 3.750
        assert len(record.data_quality_warnings) == 1
        assert "1121R_reissue" in record.data_quality_warnings[0]


class TestImprovementRules:
    """Improvement eligibility and never-lowering substitution"""

    def test_grade_at_threshold_is_not_replaced(self, aggregator, student_id, make_row):
        rows = [
            make_row("1121R", ["B-", "B", "B", "B", "B"]),
            make_row("1122I", ["A+"]),
        ]
        course = aggregator.build_student_record(student_id, rows).semesters["1-1"].get_course("101")

        assert course.grade_letter == "B-"
        assert course.improvement_applied is False
        assert course.has_improvement_opportunity is False

    def test_lower_improvement_grade_is_ignored(self, aggregator, student_id, make_row):
        rows = [
            make_row("1121R", ["D", "B", "B", "B", "B"]),
            make_row("1122I", ["F"]),
        ]
        course = aggregator.build_student_record(student_id, rows).semesters["1-1"].get_course("101")

        assert course.grade_letter == "D"
        assert course.improvement_applied is False

    def test_successive_improvements_keep_the_best(self, aggregator, student_id, make_row):
        rows = [
            make_row("1121R", ["D", "B", "B", "B", "B"]),
            make_row("1124I", ["C+"]),
            make_row("1122I", ["C"]),
            make_row("1123I", ["B-"]),
        ]
        course = aggregator.build_student_record(student_id, rows).semesters["1-1"].get_course("101")

        assert course.grade_letter == "B-"
        assert course.original_grade_letter == "D"

    def test_improvement_without_regular_grade_is_accepted(self, aggregator, student_id, make_row):
        record = aggregator.build_student_record(student_id, [make_row("2123I", ["C"])])

        semester = record.semesters["2-1"]
        course = semester.get_course("201")
        assert course.grade_letter == "C"
        assert course.original_grade_letter == "C"
        assert course.improvement_applied is False
        assert record.total_improvements_applied == 0
        assert semester.is_placeholder is False
        assert semester.gpa == 2.250

    def test_later_improvement_over_accepted_grade(self, aggregator, student_id, make_row):
        rows = [make_row("2123I", ["D", "B"]), make_row("2124I", ["C", "A"])]
        record = aggregator.build_student_record(student_id, rows)

        # D stands in as the original and is below B-, so the later C replaces it
        raised = record.semesters["2-1"].get_course("201")
        assert raised.grade_letter == "C"
        assert raised.original_grade_letter == "D"
        assert raised.improvement_applied is True
        # B is at or above the threshold, the later A is not applied
        kept = record.semesters["2-1"].get_course("202")
        assert kept.grade_letter == "B"
        assert kept.improvement_applied is False
        assert record.total_improvements_applied == 1

    def test_improvement_never_lowers_effective_grade(self, aggregator, student_id, make_row):
        regular = make_row("1121R", ["F", "D", "C", "B-", "A"])
        improvement = make_row("1122I", ["D", "F", "B", "A+", "A+"])

        before = aggregator.build_student_record(student_id, [regular]).semesters["1-1"]
        after = aggregator.build_student_record(student_id, [regular, improvement]).semesters["1-1"]

        for old, new in zip(before.courses, after.courses):
            assert new.grade_point >= old.grade_point


class TestFailureModes:
    def test_no_rows_is_student_not_found(self, aggregator, student_id, make_row):
        with pytest.raises(StudentNotFoundError) as exc_info:
            aggregator.build_student_record(student_id, [])

        assert student_id in str(exc_info.value)

    def test_malformed_id_is_rejected(self, aggregator, student_id, make_row):
        with pytest.raises(MalformedInputError):
            aggregator.build_student_record("12345", [make_row("1121R", ["A"] * 5)])

    def test_calculation_log(self, aggregator, student_id, make_row, scenario_rows):
        aggregator.build_student_record(student_id, scenario_rows)
        log = aggregator.get_calculation_log()

        assert any("111: F -> B-" in entry for entry in log)
        assert any("CGPA" in entry for entry in log)
