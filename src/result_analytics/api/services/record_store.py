"""
Supabase Record Store

Read-only access to the result tables and their metadata index through the
PostgREST endpoint of a Supabase project.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import ValidationError

from ...core.exceptions import RecordStoreError
from ...core.models import ResultTableMeta

logger = logging.getLogger(__name__)


def quote_column(column: str) -> str:
    """PostgREST identifier quoting for names with spaces or leading digits"""
    return '"' + column.replace('"', '\\"') + '"'


class SupabaseRecordStore:
    """Async client for result tables and the result table metadata index"""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        metadata_table: str = "result_tables_metadata",
        roll_column: str = "Roll no.",
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.metadata_table = metadata_table
        self.roll_column = roll_column

    @property
    def rest_url(self) -> str:
        return f"{self.base_url}/rest/v1"

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }

    async def _api_request(self, table_name: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        """
        GET one table through PostgREST

        Raises:
            RecordStoreError: on transport errors or non-2xx responses
        """
        url = f"{self.rest_url}/{table_name}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, params=params, headers=self._headers())
        except httpx.HTTPError as e:
            raise RecordStoreError(
                f"Request to {table_name} failed: {e}", table_name=table_name
            ) from e

        if response.status_code >= 300:
            raise RecordStoreError(
                f"Query on {table_name} failed ({response.status_code}): {response.text}",
                table_name=table_name,
                status_code=response.status_code,
            )

        data = response.json()
        if not isinstance(data, list):
            raise RecordStoreError(
                f"Unexpected response shape from {table_name}",
                table_name=table_name,
                status_code=response.status_code,
            )
        return data

    def _select(self, columns: Sequence[str]) -> str:
        return ",".join(quote_column(column) for column in columns)

    async def list_result_tables(
        self,
        academic_year: Optional[int] = None,
        academic_semester: Optional[int] = None,
        result_type: Optional[str] = None,
    ) -> List[ResultTableMeta]:
        """
        Enumerate existing result tables from the metadata index

        Entries that fail validation are logged and skipped.

        Returns:
            Tables ordered by (academic year, semester, exam year, result type)
        """
        params = {"select": "table_name,academic_year,academic_semester,exam_year,result_type"}
        if academic_year is not None:
            params["academic_year"] = f"eq.{academic_year}"
        if academic_semester is not None:
            params["academic_semester"] = f"eq.{academic_semester}"
        if result_type is not None:
            params["result_type"] = f"eq.{result_type}"

        rows = await self._api_request(self.metadata_table, params)

        tables = []
        for row in rows:
            try:
                tables.append(ResultTableMeta(**row))
            except (ValidationError, TypeError) as e:
                logger.warning(f"⚠️ Skipping metadata entry {row.get('table_name')!r}: {e}")

        tables.sort(
            key=lambda t: (t.academic_year, t.academic_semester, t.exam_year, t.result_type)
        )
        logger.info(f"📋 {len(tables)} result tables in metadata index")
        return tables

    async def fetch_student_row(
        self,
        table_name: str,
        student_id: str,
        columns: Sequence[str],
    ) -> Optional[Dict[str, Any]]:
        """One student's row from a result table, or None when absent"""
        params = {
            "select": self._select([self.roll_column, *columns]),
            quote_column(self.roll_column): f"eq.{student_id}",
        }
        rows = await self._api_request(table_name, params)
        return rows[0] if rows else None

    async def fetch_table(self, table_name: str, columns: Sequence[str]) -> List[Dict[str, Any]]:
        """Roll column plus the requested columns for every row of a table"""
        params = {"select": self._select([self.roll_column, *columns])}
        return await self._api_request(table_name, params)
