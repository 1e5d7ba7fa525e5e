"""
app/services/real_data_provider.py

Metrics engine over uploaded rows of unknown schema.

At construction every column is analyzed once and assigned a semantic role
(from an external mapping when one exists, otherwise from its name).  Each
query method afterwards is a pure aggregation over ``(rows, roles)``; when a
role it needs is missing it returns its documented fallback instead of
raising, so a dashboard can always render something.

Fallbacks
---------
get_retention_data   retention columns -> user activity span -> placeholder
get_funnel_data      level -> event -> any categorical (3-10 values) -> []
get_segment_data     segment/platform/geo -> any categorical (2-8 values) -> []
get_dau / get_mau    time window -> all-time unique users -> row count

Aggregations run on one object-dtype DataFrame built from the snapshot, so
raw values keep their Python types and the scalar coercion helpers apply
cell by cell before grouping.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Callable, Iterable, Literal, Mapping, Sequence

import pandas as pd

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
    RetentionData,
    RevenueTimePoint,
    Row,
    SegmentSlice,
    SessionMetrics,
    SpenderTier,
    TimeSeries,
)
from app.mappers.column_analyzer import DEFAULT_TYPE_THRESHOLD, analyze_column, collect_columns
from app.mappers.role_detector import SOURCE_KEYWORDS, detect_column_role, resolve_mapped_role
from app.services.formatting import (
    format_column_name,
    format_currency,
    format_duration,
    format_label,
    format_number,
)
from app.validators.mapping_validator import MappingValidator
from app.validators.scalar_parser import is_blank, number_or_zero, parse_date
from kpi.monetization import (
    NON_PAYER,
    SPENDER_TIER_ORDER,
    arpu,
    classify_spender,
    growth_rate,
    payer_conversion,
    percentage,
    round_half_up,
)

logger = logging.getLogger(__name__)

RevenuePeriod = Literal["daily", "weekly", "monthly"]
Clock = Callable[[], datetime]

DEFAULT_SAMPLE_SIZE = 10_000
INDUSTRY_RETENTION_BENCHMARK: tuple[int, ...] = (100, 40, 28, 20, 12, 7)
RETENTION_DAY_TARGETS: tuple[int, ...] = (0, 1, 3, 7, 14, 30)
PLACEHOLDER_RETENTION = RetentionData(
    days=["Day 0", "Day 1", "Day 7", "Day 30"],
    values=[100, 0, 0, 0],
    benchmark=[100, 40, 20, 10],
)
MAX_KPI_CARDS = 4
MAX_FUNNEL_STEPS = 6
MAX_SEGMENTS = 6
MAX_CHANNELS = 10
REVENUE_CHART_POINTS = 7
MAU_WINDOW_DAYS = 30
UNKNOWN_LABEL = "Unknown"


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _strict_equals(actual: object, expected: object) -> bool:
    # Booleans never equal numbers; ints and floats compare by value.
    numeric = (int, float)
    if (
        isinstance(actual, numeric)
        and isinstance(expected, numeric)
        and not isinstance(actual, bool)
        and not isinstance(expected, bool)
    ):
        return actual == expected
    return type(actual) is type(expected) and actual == expected


def _matches_condition(row: Mapping[str, object], condition: Mapping[str, object]) -> bool:
    """True when every condition field is present in ``row`` with an equal value."""
    return all(
        key in row and _strict_equals(row[key], value)
        for key, value in condition.items()
    )


class RealDataProvider:
    """
    Analytics queries over one immutable snapshot of uploaded rows.

    Usage::

        provider = RealDataProvider(rows)
        provider.get_kpi_data()
        provider.get_retention_day(1)
    """

    def __init__(
        self,
        rows: Iterable[Row],
        column_mappings: Sequence[ColumnMapping] | None = None,
        *,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
        type_threshold: float = DEFAULT_TYPE_THRESHOLD,
        clock: Clock = _utc_now,
    ) -> None:
        self._rows: tuple[Mapping[str, object], ...] = tuple(
            MappingProxyType(dict(row)) for row in rows
        )
        self._clock = clock

        row_columns = collect_columns(self._rows)
        mappings_by_column: dict[str, ColumnMapping] = {}
        if column_mappings:
            MappingValidator().validate(mappings=column_mappings, dataset_columns=row_columns)
            mappings_by_column = {mapping.original_name: mapping for mapping in column_mappings}

        # Mapped columns keep the mapping order; unmapped ones follow in row order.
        columns = list(mappings_by_column)
        columns.extend(column for column in row_columns if column not in mappings_by_column)

        sample = self._rows[: max(1, sample_size)]
        stats: dict[str, ColumnStats] = {}
        roles: dict[str, ColumnRole] = {}
        for column in columns:
            analysis_rows = sample if any(column in row for row in sample) else self._rows
            column_stats = analyze_column(analysis_rows, column, type_threshold=type_threshold)
            stats[column] = column_stats

            mapping = mappings_by_column.get(column)
            if mapping is not None:
                roles[column] = resolve_mapped_role(mapping.role, column, column_stats)
            else:
                roles[column] = detect_column_role(column, column_stats)
            logger.debug(
                "Column %r type=%s role=%s",
                column,
                column_stats.type.value,
                roles[column].value,
            )

        self._column_stats: Mapping[str, ColumnStats] = MappingProxyType(stats)
        self._column_roles: Mapping[str, ColumnRole] = MappingProxyType(roles)
        self._frame = pd.DataFrame(
            {column: [row.get(column) for row in self._rows] for column in columns},
            index=pd.RangeIndex(len(self._rows)),
            dtype=object,
        )
        logger.info(
            "RealDataProvider ready rows=%d columns=%d sampled=%d",
            len(self._rows),
            len(columns),
            len(sample),
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def column_stats(self) -> Mapping[str, ColumnStats]:
        return self._column_stats

    @property
    def column_roles(self) -> Mapping[str, ColumnRole]:
        return self._column_roles

    def find_column_by_role(self, *roles: ColumnRole) -> str | None:
        """
        Return the first column carrying the first role (in argument order) present.
        """

        for role in roles:
            for column, column_role in self._column_roles.items():
                if column_role is role:
                    return column
        return None

    # ------------------------------------------------------------------
    # Retention
    # ------------------------------------------------------------------

    def get_retention_data(self) -> RetentionData:
        """
        Retention curve in percent per day label.

        Explicit retention columns (``d1``, ``retention_d7`` ...) are read as
        fractions and averaged.  Without them, retention is derived from each
        user's first-seen/last-seen span.
        """

        retention_columns = sorted(
            column for column, role in self._column_roles.items() if role is ColumnRole.RETENTION
        )
        days: list[str] = []
        values: list[int] = []
        for column in retention_columns:
            stats = self._column_stats[column]
            if stats.type is ColumnType.NUMERIC and stats.avg is not None:
                days.append(column)
                values.append(round_half_up(stats.avg * 100))
        if days:
            return RetentionData(
                days=days,
                values=values,
                benchmark=list(INDUSTRY_RETENTION_BENCHMARK[: len(days)]),
            )

        user_column = self.find_column_by_role(ColumnRole.USER_ID)
        date_column = self._temporal_column()
        if user_column and date_column:
            derived = self._retention_from_activity(user_column, date_column)
            if derived is not None:
                return derived

        logger.debug("No retention signal; returning placeholder curve")
        return PLACEHOLDER_RETENTION

    def get_retention_day(self, day: int) -> float:
        """
        Retention for ``Day N`` / ``dN`` as a fraction 0-1, or 0.0 when absent.
        """

        wanted = {f"day {day}", f"day_{day}", f"d{day}"}
        retention = self.get_retention_data()
        for label, value in zip(retention.days, retention.values):
            if label.strip().lower() in wanted:
                return value / 100
        return 0.0

    def _retention_from_activity(self, user_column: str, date_column: str) -> RetentionData | None:
        seen_at = self._dates(date_column)
        activity = pd.DataFrame({"user": self._frame[user_column], "seen_at": seen_at})
        activity = activity[self._present(user_column) & seen_at.notna()]
        if activity.empty:
            return None

        span = activity.groupby("user", sort=False)["seen_at"].agg(["min", "max"])
        days_active = (span["max"] - span["min"]).dt.days
        total_users = len(span)
        values = [
            round_half_up(percentage(int((days_active >= target).sum()), total_users))
            for target in RETENTION_DAY_TARGETS
        ]
        return RetentionData(
            days=[f"Day {target}" for target in RETENTION_DAY_TARGETS],
            values=values,
            benchmark=list(INDUSTRY_RETENTION_BENCHMARK[: len(RETENTION_DAY_TARGETS)]),
        )

    # ------------------------------------------------------------------
    # Funnels
    # ------------------------------------------------------------------

    def get_funnel_data(self) -> list[FunnelStep]:
        level_column = self.find_column_by_role(ColumnRole.LEVEL)
        if level_column:
            return self._level_funnel(level_column)

        event_column = self.find_column_by_role(ColumnRole.EVENT)
        if event_column:
            return self._frequency_funnel(event_column)

        for column, stats in self._column_stats.items():
            if stats.type is ColumnType.CATEGORICAL and 3 <= stats.unique_value_count <= 10:
                logger.debug("Funnel falls back to categorical column %r", column)
                return self._frequency_funnel(column)

        return []

    def _level_funnel(self, level_column: str) -> list[FunnelStep]:
        """
        Share of users (or rows) that reached at least each representative level.
        """

        levels = self._numbers(level_column)
        user_column = self.find_column_by_role(ColumnRole.USER_ID)
        if user_column:
            present = self._present(user_column)
            users = self._frame.loc[present, user_column]
            levels = levels[present].groupby(users, sort=False).max()

        level_counts = levels.value_counts()
        sorted_levels = sorted(float(level) for level in level_counts.index)
        total = int(level_counts.sum())
        stride = max(1, len(sorted_levels) // 5)
        selected = sorted_levels[::stride][:MAX_FUNNEL_STEPS]

        steps: list[FunnelStep] = []
        previous = 100
        for index, level in enumerate(selected):
            at_or_above = int(level_counts[level_counts.index >= level].sum())
            share = round_half_up(percentage(at_or_above, total))
            steps.append(
                FunnelStep(
                    name=f"Level {format_label(level)}",
                    value=at_or_above,
                    percentage=share,
                    drop_off=0 if index == 0 else previous - share,
                )
            )
            previous = share
        return steps

    def _frequency_funnel(self, column: str) -> list[FunnelStep]:
        """
        Most frequent values of ``column``, relative to the most frequent one.

        Ties keep first-seen order.
        """

        labels = self._frame.loc[self._present(column), column].map(format_label)
        ranked = self._rank_counts(labels).head(MAX_FUNNEL_STEPS)
        if ranked.empty:
            return []

        top = int(ranked.iloc[0])
        steps: list[FunnelStep] = []
        previous = 100
        for index, (name, value) in enumerate(ranked.items()):
            share = round_half_up(percentage(int(value), top))
            steps.append(
                FunnelStep(
                    name=str(name),
                    value=int(value),
                    percentage=share,
                    drop_off=0 if index == 0 else previous - share,
                )
            )
            previous = share
        return steps

    def calculate_funnel_steps(self, step_definitions: Sequence[FunnelStepDefinition]) -> list[FunnelStep]:
        """
        Unique-user funnel over explicit steps.

        Each step's percentage is relative to the previous step (first = 100).
        Requires both an event and a user id column.
        """

        event_column = self.find_column_by_role(ColumnRole.EVENT)
        user_column = self.find_column_by_role(ColumnRole.USER_ID)
        if not event_column or not user_column:
            return []

        events = self._frame[event_column]
        steps: list[FunnelStep] = []
        previous_count = 0
        for index, definition in enumerate(step_definitions):
            if definition.event:
                wanted = definition.event.lower()
                mask = events.map(lambda value: format_label(value).lower() == wanted).astype(bool)
            elif definition.condition:
                mask = pd.Series(
                    [_matches_condition(row, definition.condition) for row in self._rows],
                    index=self._frame.index,
                    dtype=bool,
                )
            else:
                mask = None

            count = self._distinct_count(user_column, mask)
            if index == 0:
                share = 100.0
            else:
                share = percentage(count, previous_count)
            steps.append(
                FunnelStep(
                    name=definition.name,
                    value=count,
                    percentage=round_half_up(share),
                    drop_off=0 if index == 0 else round_half_up(100 - share),
                )
            )
            previous_count = count
        return steps

    # ------------------------------------------------------------------
    # KPIs
    # ------------------------------------------------------------------

    def get_kpi_data(self) -> list[KPICard]:
        """
        Up to four KPI cards in fixed priority order.

        Users (or rows) always come first; revenue, duration and level cards
        follow when those roles exist; any unused numeric column fills the rest.
        """

        if not self._rows:
            return []

        cards: list[KPICard] = []
        used_columns: set[str] = set()

        user_column = self.find_column_by_role(ColumnRole.USER_ID)
        if user_column:
            used_columns.add(user_column)
            users = self._distinct_count(user_column)
            cards.append(KPICard(label="Total Users", value=users, display=format_number(users), unit="users"))
        else:
            rows = len(self._rows)
            cards.append(KPICard(label="Total Rows", value=rows, display=format_number(rows), unit="rows"))

        revenue_column = self._revenue_column()
        if revenue_column:
            stats = self._column_stats[revenue_column]
            if stats.type is ColumnType.NUMERIC:
                used_columns.add(revenue_column)
                total_revenue = self._column_sum(revenue_column)
                cards.append(
                    KPICard(
                        label="Total Revenue",
                        value=total_revenue,
                        display=format_currency(round_half_up(total_revenue)),
                        unit="currency",
                    )
                )
                if stats.avg is not None:
                    cards.append(
                        KPICard(
                            label="Avg Revenue",
                            value=stats.avg,
                            display=f"${stats.avg:.2f}",
                            unit="currency",
                        )
                    )

        duration_column = self.find_column_by_role(ColumnRole.DURATION)
        if duration_column:
            stats = self._column_stats[duration_column]
            if stats.type is ColumnType.NUMERIC and stats.avg is not None:
                used_columns.add(duration_column)
                cards.append(
                    KPICard(
                        label="Avg Duration",
                        value=stats.avg,
                        display=format_duration(stats.avg),
                        unit="seconds",
                    )
                )

        level_column = self.find_column_by_role(ColumnRole.LEVEL)
        if level_column:
            stats = self._column_stats[level_column]
            if stats.type is ColumnType.NUMERIC and stats.max_value is not None:
                used_columns.add(level_column)
                cards.append(
                    KPICard(
                        label="Max Level",
                        value=stats.max_value,
                        display=str(round_half_up(stats.max_value)),
                        unit="level",
                    )
                )

        for column, stats in self._column_stats.items():
            if len(cards) >= MAX_KPI_CARDS:
                break
            if column in used_columns or stats.type is not ColumnType.NUMERIC or stats.avg is None:
                continue
            used_columns.add(column)
            cards.append(
                KPICard(
                    label=format_column_name(column),
                    value=stats.avg,
                    display=format_number(round_half_up(stats.avg)),
                    unit="average",
                )
            )

        return cards[:MAX_KPI_CARDS]

    # ------------------------------------------------------------------
    # Revenue
    # ------------------------------------------------------------------

    def get_total_revenue(self) -> float:
        revenue_column = self._revenue_column()
        if not revenue_column:
            return 0.0
        return self._column_sum(revenue_column)

    def calculate_arpu(self) -> float:
        """
        Total revenue divided by unique users (or rows without a user id column).
        """

        revenue_column = self._revenue_column()
        if not revenue_column:
            return 0.0
        return arpu(self._column_sum(revenue_column), self._user_count())

    def get_revenue_data(self) -> list[TimeSeries]:
        """
        Revenue for the last seven days with data, or one ``Total`` point
        when the dataset has no time column.
        """

        revenue_column = self._revenue_column()
        if not revenue_column:
            return []

        date_column = self._temporal_column()
        if date_column:
            daily = self._revenue_by_period(revenue_column, date_column, "daily")
            points = [
                DataPoint(timestamp=day, value=value, label=format_currency(round_half_up(value)))
                for day, value in daily[-REVENUE_CHART_POINTS:]
            ]
            return [TimeSeries(name="Revenue", data=points)]

        total_revenue = self._column_sum(revenue_column)
        return [
            TimeSeries(
                name="Revenue",
                data=[
                    DataPoint(
                        timestamp="Total",
                        value=total_revenue,
                        label=format_currency(round_half_up(total_revenue)),
                    )
                ],
            )
        ]

    def get_revenue_time_series(self, period: RevenuePeriod = "daily") -> list[RevenueTimePoint]:
        """
        Revenue summed per day, ISO week (Monday start) or calendar month.
        """

        if period not in ("daily", "weekly", "monthly"):
            raise ValueError(f"Unsupported revenue period {period!r}.")

        revenue_column = self._revenue_column()
        date_column = self._temporal_column()
        if not revenue_column or not date_column:
            return []
        return [
            RevenueTimePoint(date=key, value=value)
            for key, value in self._revenue_by_period(revenue_column, date_column, period)
        ]

    def get_historical_growth_rate(self) -> float:
        daily = self.get_revenue_time_series("daily")
        return growth_rate([point.value for point in daily])

    def get_payer_conversion(self) -> float:
        """
        Fraction of unique users with at least one positive revenue/purchase value.
        """

        revenue_column = self.find_column_by_role(ColumnRole.REVENUE, ColumnRole.PURCHASE)
        user_column = self.find_column_by_role(ColumnRole.USER_ID)
        if not revenue_column or not user_column:
            return 0.0

        payers = self._distinct_count(user_column, self._numbers(revenue_column) > 0)
        return payer_conversion(payers, self._distinct_count(user_column))

    def get_spender_tiers(self) -> list[SpenderTier]:
        """
        Users bucketed by lifetime revenue into Whale/Dolphin/Minnow/Non-Payer.
        """

        revenue_column = self._revenue_column()
        user_column = self.find_column_by_role(ColumnRole.USER_ID)
        if not revenue_column or not user_column:
            return []

        present = self._present(user_column)
        users = self._frame.loc[present, user_column]
        user_revenue = self._numbers(revenue_column)[present].groupby(users, sort=False).sum()
        tiers = user_revenue.map(classify_spender)
        users_by_tier = tiers.value_counts()
        revenue_by_tier = user_revenue.groupby(tiers).sum()

        total_users = len(user_revenue)
        result: list[SpenderTier] = []
        for tier in SPENDER_TIER_ORDER:
            tier_users = int(users_by_tier.get(tier, 0))
            tier_revenue = 0.0 if tier == NON_PAYER else float(revenue_by_tier.get(tier, 0.0))
            result.append(
                SpenderTier(
                    tier=tier,
                    users=tier_users,
                    revenue=tier_revenue,
                    percentage=percentage(tier_users, total_users),
                )
            )
        return result

    def _revenue_by_period(
        self,
        revenue_column: str,
        date_column: str,
        period: RevenuePeriod,
    ) -> list[tuple[str, float]]:
        moments = self._dates(date_column)
        valid = moments.notna()
        days = moments[valid].dt.floor("D")
        revenue = self._numbers(revenue_column)[valid]
        if period == "weekly":
            # ISO weeks start on Monday.
            keys = (days - pd.to_timedelta(days.dt.weekday, unit="D")).dt.strftime("%Y-%m-%d")
        elif period == "monthly":
            keys = days.dt.strftime("%Y-%m")
        else:
            keys = days.dt.strftime("%Y-%m-%d")
        grouped = revenue.groupby(keys).sum()
        return [(str(key), float(value)) for key, value in grouped.items()]

    # ------------------------------------------------------------------
    # Audience
    # ------------------------------------------------------------------

    def get_dau(self) -> int:
        """
        Unique users active since midnight UTC today.
        """

        now = self._clock()
        midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
        return self._active_users_since(midnight)

    def get_mau(self) -> int:
        """
        Unique users active in the last 30 days.
        """

        return self._active_users_since(self._clock() - timedelta(days=MAU_WINDOW_DAYS))

    def _active_users_since(self, start: datetime) -> int:
        user_column = self.find_column_by_role(ColumnRole.USER_ID)
        if not user_column:
            return len(self._rows)

        date_column = self._temporal_column()
        if not date_column:
            return self._distinct_count(user_column)

        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        active = self._distinct_count(user_column, self._dates(date_column) >= pd.Timestamp(start))
        if not active:
            # No activity in the window: report all-time users instead.
            return self._distinct_count(user_column)
        return active

    def get_segment_data(self) -> list[SegmentSlice]:
        segment_column = self.find_column_by_role(ColumnRole.SEGMENT, ColumnRole.PLATFORM, ColumnRole.GEO)
        if segment_column is None:
            for column, stats in self._column_stats.items():
                if stats.type is ColumnType.CATEGORICAL and 2 <= stats.unique_value_count <= 8:
                    segment_column = column
                    break
        if segment_column is None:
            return []

        labels = self._frame[segment_column].map(self._label_or_unknown)
        ranked = self._rank_counts(labels).head(MAX_SEGMENTS)
        total = len(labels)
        return [
            SegmentSlice(name=str(name), value=int(value), percentage=percentage(int(value), total))
            for name, value in ranked.items()
        ]

    def get_attribution_channels(self) -> list[AttributionChannel]:
        """
        Users and revenue per acquisition channel, top ten by users.

        Without a user id column every row counts as one user.  Channel
        revenue reads the ``revenue`` role only, never ``ltv``.
        """

        source_column = self.find_column_by_role(ColumnRole.SOURCE)
        if source_column is None:
            source_column = next(
                (
                    column for column in self._column_roles
                    if any(keyword in column.lower() for keyword in SOURCE_KEYWORDS)
                ),
                None,
            )
        if source_column is None:
            return []

        user_column = self.find_column_by_role(ColumnRole.USER_ID)
        revenue_column = self.find_column_by_role(ColumnRole.REVENUE)

        names = self._frame[source_column].map(self._label_or_unknown)
        if revenue_column:
            revenue = self._numbers(revenue_column)
        else:
            revenue = pd.Series(0.0, index=self._frame.index)
        revenue_by_channel = revenue.groupby(names, sort=False).sum()
        if user_column:
            users = self._frame[user_column].where(self._present(user_column))
            users_by_channel = users.groupby(names, sort=False).nunique()
        else:
            users_by_channel = names.groupby(names, sort=False).size()

        total_users = self._user_count()
        channels = []
        for name, user_total in users_by_channel.items():
            channels.append(
                AttributionChannel(
                    name=str(name),
                    users=int(user_total),
                    revenue=float(revenue_by_channel[name]),
                    percentage=percentage(int(user_total), total_users),
                )
            )
        channels.sort(key=lambda channel: channel.users, reverse=True)
        return channels[:MAX_CHANNELS]

    # ------------------------------------------------------------------
    # Engagement
    # ------------------------------------------------------------------

    def get_avg_session_length(self) -> float:
        duration_column = self.find_column_by_role(ColumnRole.DURATION)
        if not duration_column:
            return 0.0
        avg = self._column_stats[duration_column].avg
        return 0.0 if avg is None else avg

    def get_session_metrics(self) -> SessionMetrics:
        sessions_per_user = 0.0
        session_column = self.find_column_by_role(ColumnRole.SESSION)
        user_column = self.find_column_by_role(ColumnRole.USER_ID)
        if session_column and user_column:
            users = self._distinct_count(user_column)
            sessions = self._distinct_count(session_column)
            sessions_per_user = sessions / users if users else 0.0
        return SessionMetrics(
            avg_session_length=self.get_avg_session_length(),
            sessions_per_user=sessions_per_user,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _revenue_column(self) -> str | None:
        return self.find_column_by_role(ColumnRole.REVENUE, ColumnRole.LTV)

    def _temporal_column(self) -> str | None:
        return self.find_column_by_role(ColumnRole.TIMESTAMP, ColumnRole.INSTALL_DATE)

    def _column_sum(self, column: str) -> float:
        return float(self._numbers(column).sum())

    def _user_count(self) -> int:
        user_column = self.find_column_by_role(ColumnRole.USER_ID)
        if not user_column:
            return len(self._rows)
        return self._distinct_count(user_column)

    def _present(self, column: str) -> pd.Series:
        """Boolean mask of rows holding a non-blank ``column`` value."""
        return ~self._frame[column].map(is_blank).astype(bool)

    def _numbers(self, column: str) -> pd.Series:
        return self._frame[column].map(number_or_zero).astype(float)

    def _dates(self, column: str) -> pd.Series:
        """UTC timestamps for ``column``; unparseable cells become ``NaT``."""
        return pd.to_datetime(self._frame[column].map(parse_date), utc=True, errors="coerce")

    def _distinct_count(self, column: str, mask: pd.Series | None = None) -> int:
        """Distinct non-blank values of ``column``, optionally within ``mask``."""
        selected = self._present(column)
        if mask is not None:
            selected &= mask
        return int(self._frame.loc[selected, column].nunique())

    @staticmethod
    def _rank_counts(labels: pd.Series) -> pd.Series:
        # Most frequent first; ties keep first-seen order.
        return labels.value_counts(sort=False).sort_values(ascending=False, kind="stable")

    @staticmethod
    def _label_or_unknown(value: object) -> str:
        if is_blank(value):
            return UNKNOWN_LABEL
        return format_label(value)
