"""
app/schemas/analytics.py

Request and response schemas for dataset analysis endpoints.
"""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from app.domain.analytics import ColumnMapping, ColumnType, FunnelStepDefinition, MappingRole

CellValue = Union[bool, int, float, str, None]


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class ColumnMappingInput(BaseModel):
    """
    Role assigned to one column by an earlier mapping step.
    """

    original_name: str = Field(..., min_length=1)
    role: MappingRole
    data_type: str = "string"

    def to_domain(self) -> ColumnMapping:
        return ColumnMapping(
            original_name=self.original_name,
            role=self.role,
            data_type=self.data_type,
        )


class FunnelStepDefinitionInput(BaseModel):
    name: str = Field(..., min_length=1)
    event: str | None = None
    condition: dict[str, CellValue] | None = None

    def to_domain(self) -> FunnelStepDefinition:
        return FunnelStepDefinition(name=self.name, event=self.event, condition=self.condition)


class DatasetAnalysisRequest(BaseModel):
    """
    Inline dataset plus optional column mappings.
    """

    rows: list[dict[str, CellValue]] = Field(default_factory=list)
    column_mappings: list[ColumnMappingInput] = Field(default_factory=list)
    category: str | None = Field(
        default=None,
        description="Game genre whose demo data is shown when no rows are supplied",
    )
    period: Literal["daily", "weekly", "monthly"] = "daily"

    def domain_mappings(self) -> list[ColumnMapping]:
        return [mapping.to_domain() for mapping in self.column_mappings]


class FunnelRequest(DatasetAnalysisRequest):
    steps: list[FunnelStepDefinitionInput] = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class _FromDomain(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ColumnProfileResponse(_FromDomain):
    name: str
    type: ColumnType
    role: str
    unique_value_count: int = Field(..., ge=0)
    sample_values: list[CellValue] = Field(default_factory=list)
    min_value: float | None = None
    max_value: float | None = None
    avg: float | None = None


class RetentionResponse(_FromDomain):
    days: list[str]
    values: list[int]
    benchmark: list[int] = Field(default_factory=list)


class FunnelStepResponse(_FromDomain):
    name: str
    value: int
    percentage: int
    drop_off: int = 0


class KPICardResponse(_FromDomain):
    label: str
    value: float
    display: str
    unit: str
    change: float = 0.0
    change_type: str = "neutral"


class DataPointResponse(_FromDomain):
    timestamp: str
    value: float
    label: str | None = None


class TimeSeriesResponse(_FromDomain):
    name: str
    data: list[DataPointResponse]


class SegmentSliceResponse(_FromDomain):
    name: str
    value: int
    percentage: float


class SpenderTierResponse(_FromDomain):
    tier: str
    users: int
    revenue: float
    percentage: float


class AttributionChannelResponse(_FromDomain):
    name: str
    users: int
    revenue: float
    percentage: float


class RevenueTimePointResponse(_FromDomain):
    date: str
    value: float


class SessionMetricsResponse(_FromDomain):
    avg_session_length: float
    sessions_per_user: float


class DashboardResponse(_FromDomain):
    """
    Every dashboard query evaluated once against one provider.
    """

    source: Literal["real", "demo", "empty"]
    row_count: int = Field(..., ge=0)
    rows_dropped: int = Field(0, ge=0)
    has_data: bool
    columns: list[ColumnProfileResponse] = Field(default_factory=list)
    retention: RetentionResponse
    funnel: list[FunnelStepResponse]
    kpis: list[KPICardResponse]
    revenue: list[TimeSeriesResponse]
    segments: list[SegmentSliceResponse]
    dau: int
    mau: int
    arpu: float
    total_revenue: float
    avg_session_length: float
    payer_conversion: float
    historical_growth_rate: float
    spender_tiers: list[SpenderTierResponse]
    revenue_time_series: list[RevenueTimePointResponse]
    attribution_channels: list[AttributionChannelResponse]
    session_metrics: SessionMetricsResponse


class FunnelResponse(BaseModel):
    steps: list[FunnelStepResponse]


class GameCategoryResponse(_FromDomain):
    id: str
    name: str
    description: str
