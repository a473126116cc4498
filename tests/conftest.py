"""
Pytest Configuration and Fixtures

Provides common fixtures for all tests including:
- Result table metadata and raw rows
- Settings and an in-memory record store
- API client
"""

from typing import Dict, List
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from result_analytics.api.services.record_store import SupabaseRecordStore
from result_analytics.api.services.result_service import ResultAnalyticsService
from result_analytics.config import Settings
from result_analytics.core.exceptions import RecordStoreError
from result_analytics.core.grading import subject_codes_for_semester
from result_analytics.core.models import RawResultRow, ResultTableMeta

STUDENT_ID = "1911000001"


def build_row(table_name: str, grades: List[str], name: str = None, **extra) -> RawResultRow:
    """Raw row whose course columns are filled in order from grades"""
    table = ResultTableMeta.from_table_name(table_name)
    codes = subject_codes_for_semester(table.academic_year, table.academic_semester)
    data = {"Roll no.": STUDENT_ID}
    data.update({code: grade for code, grade in zip(codes, grades) if grade is not None})
    if name:
        data["Name"] = name
    data.update(extra)
    return RawResultRow(table=table, data=data)


@pytest.fixture
def scenario_rows() -> List[RawResultRow]:
    """
    1-1 regular: A+, B+, A, A-, A-        -> GPA 3.600
    1-2 regular: F, B, B, B, B
    1-2 improvement: B- for the F         -> GPA 2.950
    2-1 regular: A x5                     -> GPA 3.750
    """
    return [
        build_row("1121R", ["A+", "B+", "A", "A-", "A-"], name="Nusrat Jahan"),
        build_row("1222R", ["F", "B", "B", "B", "B"]),
        build_row("1223I", ["B-"]),
        build_row("2122R", ["A", "A", "A", "A", "A"]),
    ]


@pytest.fixture
def settings() -> Settings:
    return Settings(supabase_url="http://store.test", supabase_key="test-key")


class InMemoryTables:
    """Result tables keyed by name, each a list of row dicts"""

    def __init__(self, tables: Dict[str, List[dict]], failing: tuple = ()):
        self.tables = tables
        self.failing = set(failing)

    def metadata(self, academic_year=None, academic_semester=None, result_type=None):
        metas = [ResultTableMeta.from_table_name(name) for name in sorted(self.tables)]
        if academic_year is not None:
            metas = [m for m in metas if m.academic_year == academic_year]
        if academic_semester is not None:
            metas = [m for m in metas if m.academic_semester == academic_semester]
        if result_type is not None:
            metas = [m for m in metas if m.result_type == result_type]
        return metas

    def _check(self, table_name):
        if table_name in self.failing:
            raise RecordStoreError(f"Query on {table_name} failed (500)", table_name=table_name, status_code=500)

    def student_row(self, table_name, student_id, columns):
        self._check(table_name)
        for row in self.tables.get(table_name, []):
            if row["Roll no."] == student_id:
                return {k: v for k, v in row.items() if k == "Roll no." or k in columns}
        return None

    def table(self, table_name, columns):
        self._check(table_name)
        return [
            {k: v for k, v in row.items() if k == "Roll no." or k in columns}
            for row in self.tables.get(table_name, [])
        ]


def make_store(tables: InMemoryTables):
    """Record store double backed by InMemoryTables"""
    store = MagicMock(spec=SupabaseRecordStore)
    store.list_result_tables = AsyncMock(side_effect=tables.metadata)
    store.fetch_student_row = AsyncMock(side_effect=tables.student_row)
    store.fetch_table = AsyncMock(side_effect=tables.table)
    return store


@pytest.fixture
def result_tables() -> InMemoryTables:
    return InMemoryTables({
        "1121R": [
            {"Roll no.": "1911000001", "Name": "Nusrat Jahan", "101": "A+", "102": "B+", "103": "A", "104": "A-", "105": "A-"},
            {"Roll no.": "1911000002", "Name": "Tanvir Hasan", "101": "B", "102": "B", "103": "B", "104": "B", "105": "B"},
            {"Roll no.": "2011000003", "Name": "Farhana Akter", "101": "A+", "102": "A+", "103": "A+", "104": "A+", "105": "A+"},
        ],
        "1222R": [
            {"Roll no.": "1911000001", "111": "F", "112": "B", "113": "B", "114": "B", "115": "B"},
            {"Roll no.": "1911000002", "111": "C", "112": "C", "113": "C", "114": "C", "115": "C"},
            {"Roll no.": "2011000003", "111": "A+", "112": "A+", "113": "A+", "114": "A+", "115": "A+"},
        ],
        "1223I": [
            {"Roll no.": "1911000001", "111": "B-"},
        ],
    })


@pytest.fixture
def store(result_tables):
    return make_store(result_tables)


@pytest.fixture
def service(store, settings) -> ResultAnalyticsService:
    return ResultAnalyticsService(store, settings)


@pytest.fixture
async def client(service):
    """Create async HTTP client for API testing"""
    from result_analytics.api.dependencies import get_result_service
    from result_analytics.api.main import app

    app.dependency_overrides[get_result_service] = lambda: service

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def student_id() -> str:
    return STUDENT_ID


@pytest.fixture
def make_row():
    """Factory for raw rows: make_row("1121R", ["A", "B", ...], name=...)"""
    return build_row


@pytest.fixture
def store_factory():
    """Factory for record store doubles: store_factory({"1121R": [...]}, failing=("1222R",))"""
    def _make(tables: Dict[str, List[dict]], failing: tuple = ()):
        return make_store(InMemoryTables(tables, failing))
    return _make
