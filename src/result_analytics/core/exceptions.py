"""
Error types raised by the result analytics core and services.

Malformed input is rejected before any record-store request is issued.
Not-found conditions are reported to the caller instead of returning an
empty record. Record store failures are raised per request; callers that
fan out over many tables decide whether one failure is fatal.
"""


class ResultAnalyticsError(Exception):
    """Base class for all result analytics errors"""


class MalformedInputError(ResultAnalyticsError, ValueError):
    """Course code, student id or group input that cannot be parsed"""


class NotFoundError(ResultAnalyticsError):
    """Requested entity matched no rows in any scanned table"""


class StudentNotFoundError(NotFoundError):
    def __init__(self, student_id: str):
        self.student_id = student_id
        super().__init__(f"No results found for Student ID: {student_id}")


class CourseNotFoundError(NotFoundError):
    def __init__(self, course_code: str):
        self.course_code = course_code
        super().__init__(f"No results found for Course Code: {course_code}")


class RecordStoreError(ResultAnalyticsError):
    """A single request to the record store failed"""

    def __init__(self, message: str, table_name: str = None, status_code: int = None):
        self.table_name = table_name
        self.status_code = status_code
        super().__init__(message)


__all__ = [
    'ResultAnalyticsError',
    'MalformedInputError',
    'NotFoundError',
    'StudentNotFoundError',
    'CourseNotFoundError',
    'RecordStoreError',
]
