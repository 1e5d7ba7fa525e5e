"""
app/domain package marker.
"""

from app.domain.analytics import (
    AttributionChannel,
    ColumnMapping,
    ColumnRole,
    ColumnStats,
    ColumnType,
    DataPoint,
    FunnelStep,
    FunnelStepDefinition,
    KPICard,
    MappingRole,
    RetentionData,
    RevenueTimePoint,
    Row,
    Scalar,
    SegmentSlice,
    SessionMetrics,
    SpenderTier,
    TimeSeries,
)

__all__ = [
    "AttributionChannel",
    "ColumnMapping",
    "ColumnRole",
    "ColumnStats",
    "ColumnType",
    "DataPoint",
    "FunnelStep",
    "FunnelStepDefinition",
    "KPICard",
    "MappingRole",
    "RetentionData",
    "RevenueTimePoint",
    "Row",
    "Scalar",
    "SegmentSlice",
    "SessionMetrics",
    "SpenderTier",
    "TimeSeries",
]
