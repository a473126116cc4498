from .awards import (
    AwardResult,
    calculate_deans_honours_list,
    calculate_deans_merit_list,
    required_gpa_for_target,
)
from .course import CourseAggregator, grade_distribution_frame
from .gpa import AcademicRecordAggregator, select_student_overrides
from .rank import (
    CohortRankCalculator,
    RankedStudent,
    gpa_standard_deviation,
    merge_year_grades,
    semester_standing,
    year_standing,
)

__all__ = [
    'AcademicRecordAggregator',
    'select_student_overrides',
    'CohortRankCalculator',
    'RankedStudent',
    'gpa_standard_deviation',
    'semester_standing',
    'merge_year_grades',
    'year_standing',
    'CourseAggregator',
    'grade_distribution_frame',
    'AwardResult',
    'calculate_deans_honours_list',
    'calculate_deans_merit_list',
    'required_gpa_for_target',
]
