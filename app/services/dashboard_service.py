"""
app/services/dashboard_service.py

Evaluates every provider query once and bundles the results.

Works with any :class:`~app.services.data_providers.DataProvider`; the column
profile is only available when the provider analyzed real rows.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Mapping

from app.domain.analytics import (
    AttributionChannel,
    ColumnRole,
    ColumnStats,
    FunnelStep,
    KPICard,
    RetentionData,
    RevenueTimePoint,
    Scalar,
    SegmentSlice,
    SessionMetrics,
    SpenderTier,
    TimeSeries,
)
from app.services.data_providers import DataProvider, EmptyDataProvider, has_data
from app.services.demo_providers import DemoDataProvider
from app.services.real_data_provider import RealDataProvider, RevenuePeriod

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnProfile:
    name: str
    type: str
    role: str
    unique_value_count: int
    sample_values: list[Scalar]
    min_value: float | None = None
    max_value: float | None = None
    avg: float | None = None


@dataclass(frozen=True)
class DashboardSnapshot:
    source: str
    row_count: int
    has_data: bool
    retention: RetentionData
    funnel: list[FunnelStep]
    kpis: list[KPICard]
    revenue: list[TimeSeries]
    segments: list[SegmentSlice]
    dau: int
    mau: int
    arpu: float
    total_revenue: float
    avg_session_length: float
    payer_conversion: float
    historical_growth_rate: float
    spender_tiers: list[SpenderTier]
    revenue_time_series: list[RevenueTimePoint]
    attribution_channels: list[AttributionChannel]
    session_metrics: SessionMetrics
    columns: list[ColumnProfile] = field(default_factory=list)
    rows_dropped: int = 0


def provider_source(provider: DataProvider) -> str:
    if isinstance(provider, RealDataProvider):
        return "real"
    if isinstance(provider, DemoDataProvider):
        return "demo"
    if isinstance(provider, EmptyDataProvider):
        return "empty"
    return "real"


def build_column_profiles(
    stats: Mapping[str, ColumnStats],
    roles: Mapping[str, ColumnRole],
) -> list[ColumnProfile]:
    profiles: list[ColumnProfile] = []
    for name, column_stats in stats.items():
        profiles.append(
            ColumnProfile(
                name=name,
                type=column_stats.type.value,
                role=roles.get(name, ColumnRole.UNKNOWN).value,
                unique_value_count=column_stats.unique_value_count,
                sample_values=[_json_scalar(value) for value in column_stats.sample_values],
                min_value=column_stats.min_value,
                max_value=column_stats.max_value,
                avg=column_stats.avg,
            )
        )
    return profiles


def build_dashboard(
    provider: DataProvider,
    *,
    period: RevenuePeriod = "daily",
    rows_dropped: int = 0,
) -> DashboardSnapshot:
    """
    Run every dashboard query against ``provider``.

    Raises ValueError for an unsupported revenue ``period``.
    """

    columns: list[ColumnProfile] = []
    row_count = 0
    if isinstance(provider, RealDataProvider):
        columns = build_column_profiles(provider.column_stats, provider.column_roles)
        row_count = provider.row_count

    snapshot = DashboardSnapshot(
        source=provider_source(provider),
        row_count=row_count,
        rows_dropped=rows_dropped,
        has_data=has_data(provider),
        columns=columns,
        retention=provider.get_retention_data(),
        funnel=provider.get_funnel_data(),
        kpis=provider.get_kpi_data(),
        revenue=provider.get_revenue_data(),
        segments=provider.get_segment_data(),
        dau=provider.get_dau(),
        mau=provider.get_mau(),
        arpu=provider.calculate_arpu(),
        total_revenue=provider.get_total_revenue(),
        avg_session_length=provider.get_avg_session_length(),
        payer_conversion=provider.get_payer_conversion(),
        historical_growth_rate=provider.get_historical_growth_rate(),
        spender_tiers=provider.get_spender_tiers(),
        revenue_time_series=provider.get_revenue_time_series(period),
        attribution_channels=provider.get_attribution_channels(),
        session_metrics=provider.get_session_metrics(),
    )
    logger.debug(
        "Built %s dashboard: %d columns, %d KPI cards, %d funnel steps",
        snapshot.source,
        len(columns),
        len(snapshot.kpis),
        len(snapshot.funnel),
    )
    return snapshot


def _json_scalar(value: Scalar) -> Scalar:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value
