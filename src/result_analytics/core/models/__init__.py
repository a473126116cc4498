from .records import (
    CourseRecord,
    RawResultRow,
    ResultTableMeta,
    SemesterRecord,
    StudentRecord,
)
from .summaries import CourseGradeEntry, CourseSummary, SemesterStanding, YearStanding

__all__ = [
    'ResultTableMeta',
    'RawResultRow',
    'CourseRecord',
    'SemesterRecord',
    'StudentRecord',
    'CourseGradeEntry',
    'CourseSummary',
    'SemesterStanding',
    'YearStanding',
]
