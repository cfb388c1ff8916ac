"""Application services: record store adapter, aggregation engine, mutation pipeline."""

from catalog.application.services.aggregation_engine import AggregationEngine
from catalog.application.services.analytics_service import AnalyticsService
from catalog.application.services.integrity_check import IntegrityCheck
from catalog.application.services.mutation_pipeline import MutationPipeline
from catalog.application.services.record_store import RecordStoreAdapter

__all__ = [
    "AggregationEngine",
    "AnalyticsService",
    "IntegrityCheck",
    "MutationPipeline",
    "RecordStoreAdapter",
]
