"""
Tests for Student, Group and Course Endpoints
"""

import pytest
from httpx import AsyncClient

from result_analytics.core.exceptions import RecordStoreError


class TestStudentEndpoints:
    """Tests for student lookup endpoints"""

    @pytest.mark.asyncio
    async def test_get_student(self, client: AsyncClient):
        response = await client.get("/api/v1/students/1911000001")

        assert response.status_code == 200
        data = response.json()
        assert data["student_id"] == "1911000001"
        assert data["name"] == "Nusrat Jahan"
        assert data["overall_cgpa"] == 3.275
        assert list(data["semesters"])[:2] == ["1-1", "1-2"]

    @pytest.mark.asyncio
    async def test_student_not_found(self, client: AsyncClient):
        response = await client.get("/api/v1/students/1911999999")

        assert response.status_code == 404
        assert "1911999999" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_malformed_student_id(self, client: AsyncClient):
        response = await client.get("/api/v1/students/12345")

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_record_store_unavailable(self, client: AsyncClient, store):
        store.list_result_tables.side_effect = RecordStoreError("metadata down")

        response = await client.get("/api/v1/students/1911000001")

        assert response.status_code == 502

    @pytest.mark.asyncio
    async def test_what_if(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/students/1911000001/what-if",
            json={"overrides": [{"semester_key": "1-2", "course_code": "112", "grade_letter": "A+"}]},
        )

        assert response.status_code == 200
        semester = response.json()["semesters"]["1-2"]
        assert semester["gpa"] == 3.15

    @pytest.mark.asyncio
    async def test_semester_standing(self, client: AsyncClient):
        response = await client.get("/api/v1/students/1911000001/standing/1121R")

        assert response.status_code == 200
        data = response.json()
        assert data["rank"] == 2
        assert data["total_students"] == 3

    @pytest.mark.asyncio
    async def test_year_standing(self, client: AsyncClient):
        response = await client.get("/api/v1/students/1911000001/year-standing/1")

        assert response.status_code == 200
        data = response.json()
        assert data["academic_year"] == 1
        assert data["ygpa"] == 3.275
        assert data["rank"] == 2
        assert data["total_students"] == 3

    @pytest.mark.asyncio
    async def test_year_standing_unknown_year(self, client: AsyncClient):
        response = await client.get("/api/v1/students/1911000001/year-standing/3")

        assert response.status_code == 404


class TestGroupEndpoints:
    @pytest.mark.asyncio
    async def test_group_analysis(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/groups/analysis",
            json={"student_ids": ["1911000001", "2011000003", "1911999999"]},
        )

        assert response.status_code == 200
        data = response.json()
        assert [r["student_id"] for r in data["rankings"]] == ["2011000003", "1911000001"]
        assert data["missing_ids"] == ["1911999999"]

    @pytest.mark.asyncio
    async def test_group_too_large(self, client: AsyncClient):
        ids = [f"19110000{i:02d}" for i in range(11)]
        response = await client.post("/api/v1/groups/analysis", json={"student_ids": ids})

        assert response.status_code == 422


class TestCourseEndpoints:
    @pytest.mark.asyncio
    async def test_course_summary(self, client: AsyncClient):
        response = await client.get("/api/v1/courses/101")

        assert response.status_code == 200
        data = response.json()
        assert data["total_students"] == 3
        assert data["grade_distribution"]["A+"] == 2

    @pytest.mark.asyncio
    async def test_course_not_found(self, client: AsyncClient):
        response = await client.get("/api/v1/courses/405")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_reset_overall_average(self, client: AsyncClient, service):
        await client.get("/api/v1/courses/101")
        assert service._overall_average is not None

        response = await client.delete("/api/v1/courses/overall-average/cache")

        assert response.status_code == 204
        assert service._overall_average is None
