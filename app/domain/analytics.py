"""
app/domain/analytics.py

Domain models shared by the column analyzer, role detector and metrics engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Mapping, Union

Scalar = Union[int, float, str, bool, datetime, date, None]
"""One uploaded cell value. Any column may hold any scalar."""

Row = Mapping[str, Scalar]
"""One uploaded record, keyed by column name."""


class ColumnType(str, Enum):
    """Value shape of a column as seen by the analyzer."""

    NUMERIC = "numeric"
    CATEGORICAL = "categorical"
    DATE = "date"
    UNKNOWN = "unknown"


class ColumnRole(str, Enum):
    """Semantic meaning inferred for a column."""

    USER_ID = "user_id"
    TIMESTAMP = "timestamp"
    INSTALL_DATE = "install_date"
    RETENTION = "retention"
    COHORT = "cohort"
    EVENT = "event"
    LEVEL = "level"
    SESSION = "session"
    REVENUE = "revenue"
    PURCHASE = "purchase"
    LTV = "ltv"
    DURATION = "duration"
    COUNT = "count"
    GEO = "geo"
    PLATFORM = "platform"
    SEGMENT = "segment"
    SOURCE = "source"
    UNKNOWN = "unknown"


class MappingRole(str, Enum):
    """Coarse role assigned to a column by an upstream mapping step."""

    IDENTIFIER = "identifier"
    TIMESTAMP = "timestamp"
    METRIC = "metric"
    DIMENSION = "dimension"
    NOISE = "noise"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ColumnMapping:
    """
    Column role supplied by a previous mapping step (wizard or schema analysis).
    """

    original_name: str
    role: MappingRole
    data_type: str = "string"


@dataclass(frozen=True)
class ColumnStats:
    """
    Read-only summary of one column.

    ``min_value``, ``max_value`` and ``avg`` are only populated for numeric columns.
    """

    name: str
    type: ColumnType
    unique_value_count: int
    sample_values: tuple[Scalar, ...] = ()
    min_value: float | None = None
    max_value: float | None = None
    avg: float | None = None


# ---------------------------------------------------------------------------
# Query results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RetentionData:
    days: list[str]
    values: list[int]
    benchmark: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class FunnelStep:
    name: str
    value: int
    percentage: int
    drop_off: int = 0


@dataclass(frozen=True)
class KPICard:
    """
    One dashboard KPI.

    ``value`` is exact; ``display`` is the abbreviated human-readable form.
    """

    label: str
    value: float
    display: str
    unit: str
    change: float = 0.0
    change_type: str = "neutral"


@dataclass(frozen=True)
class DataPoint:
    timestamp: str
    value: float
    label: str | None = None


@dataclass(frozen=True)
class TimeSeries:
    name: str
    data: list[DataPoint]


@dataclass(frozen=True)
class SegmentSlice:
    name: str
    value: int
    percentage: float


@dataclass(frozen=True)
class SpenderTier:
    tier: str
    users: int
    revenue: float
    percentage: float


@dataclass(frozen=True)
class AttributionChannel:
    name: str
    users: int
    revenue: float
    percentage: float


@dataclass(frozen=True)
class RevenueTimePoint:
    date: str
    value: float


@dataclass(frozen=True)
class SessionMetrics:
    avg_session_length: float
    sessions_per_user: float


@dataclass(frozen=True)
class FunnelStepDefinition:
    """
    One step of an explicit funnel.

    A step matches rows whose event equals ``event`` (case-insensitive) or,
    when no event is given, rows where every ``condition`` field is equal.
    A step with neither matches every row.
    """

    name: str
    event: str | None = None
    condition: Mapping[str, Scalar] | None = None
