"""
FastAPI dependencies
"""

from functools import lru_cache

from ..config import get_settings
from .services.record_store import SupabaseRecordStore
from .services.result_service import ResultAnalyticsService


def get_record_store() -> SupabaseRecordStore:
    settings = get_settings()
    return SupabaseRecordStore(
        base_url=settings.supabase_url,
        api_key=settings.supabase_key,
        timeout=settings.request_timeout,
        metadata_table=settings.metadata_table,
        roll_column=settings.roll_column,
    )


@lru_cache
def get_result_service() -> ResultAnalyticsService:
    """One service per process so the overall-average baseline is computed once"""
    return ResultAnalyticsService(get_record_store(), get_settings())
