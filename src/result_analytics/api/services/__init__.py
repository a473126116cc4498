from .record_store import SupabaseRecordStore
from .result_service import GroupAnalysis, ResultAnalyticsService

__all__ = ['SupabaseRecordStore', 'GroupAnalysis', 'ResultAnalyticsService']
