"""
app/services/demo_providers.py

Canned analytics per game genre for the no-data dashboard state.

These providers hold no data and perform no analysis; they return fixed
figures typical of each genre so the dashboard can be explored before a
dataset is connected.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Callable, Sequence

from app.domain.analytics import (
    AttributionChannel,
    DataPoint,
    FunnelStep,
    FunnelStepDefinition,
    KPICard,
    RetentionData,
    RevenueTimePoint,
    SegmentSlice,
    SessionMetrics,
    SpenderTier,
    TimeSeries,
)

_DEMO_BENCHMARK = [100, 42, 28, 18, 12, 7]
_DEMO_POINT_COUNTS = {"daily": 30, "weekly": 12, "monthly": 6}


def _retention_curve(d1: int, d7: int, d30: int) -> RetentionData:
    return RetentionData(
        days=["Day 0", "Day 1", "Day 3", "Day 7", "Day 14", "Day 30"],
        values=[100, d1, int(d1 * 0.7), d7, int(d7 * 0.7), d30],
        benchmark=list(_DEMO_BENCHMARK),
    )


def _steps(*steps: tuple[str, int, float, float]) -> list[FunnelStep]:
    return [
        FunnelStep(name=name, value=value, percentage=round(share), drop_off=round(drop))
        for name, value, share, drop in steps
    ]


def _card(label: str, value: float, display: str, unit: str, change: float) -> KPICard:
    if change > 0:
        change_type = "up"
    elif change < 0:
        change_type = "down"
    else:
        change_type = "neutral"
    return KPICard(
        label=label,
        value=value,
        display=display,
        unit=unit,
        change=change,
        change_type=change_type,
    )


def _series(name: str, *points: tuple[str, float]) -> list[TimeSeries]:
    return [TimeSeries(name=name, data=[DataPoint(timestamp=label, value=value) for label, value in points])]


def _slices(*slices: tuple[str, int]) -> list[SegmentSlice]:
    return [SegmentSlice(name=name, value=value, percentage=float(value)) for name, value in slices]


class DemoDataProvider(ABC):
    """
    Shared canned values for the extended metrics of every demo genre.
    """

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(tz=timezone.utc))

    @abstractmethod
    def get_retention_data(self) -> RetentionData:
        """Canned retention curve."""

    @abstractmethod
    def get_funnel_data(self) -> list[FunnelStep]:
        """Canned progression funnel."""

    @abstractmethod
    def get_kpi_data(self) -> list[KPICard]:
        """Canned KPI cards."""

    @abstractmethod
    def get_revenue_data(self) -> list[TimeSeries]:
        """Canned revenue chart."""

    @abstractmethod
    def get_segment_data(self) -> list[SegmentSlice]:
        """Canned segment split."""

    def get_dau(self) -> int:
        return 50_000

    def get_mau(self) -> int:
        return 250_000

    def calculate_arpu(self) -> float:
        return 0.15

    def get_total_revenue(self) -> float:
        return 105_000.0

    def get_retention_day(self, day: int) -> float:
        wanted = f"day {day}"
        retention = self.get_retention_data()
        for label, value in zip(retention.days, retention.values):
            if label.lower() == wanted:
                return value / 100
        return 0.0

    def get_avg_session_length(self) -> float:
        return 8.5

    def get_payer_conversion(self) -> float:
        return 0.035

    def get_spender_tiers(self) -> list[SpenderTier]:
        return [
            SpenderTier(tier="Whale", users=300, revenue=45_000.0, percentage=0.6),
            SpenderTier(tier="Dolphin", users=1_200, revenue=42_000.0, percentage=2.4),
            SpenderTier(tier="Minnow", users=3_500, revenue=12_250.0, percentage=7.0),
            SpenderTier(tier="Non-Payer", users=45_000, revenue=0.0, percentage=90.0),
        ]

    def get_revenue_time_series(self, period: str = "daily") -> list[RevenueTimePoint]:
        """
        Smooth synthetic series ending today; deterministic for a fixed clock.
        """

        if period not in _DEMO_POINT_COUNTS:
            raise ValueError(f"Unsupported revenue period {period!r}.")

        today = self._clock().date()
        count = _DEMO_POINT_COUNTS[period]
        points: list[RevenueTimePoint] = []
        for offset in range(count - 1, -1, -1):
            if period == "daily":
                key = (today - timedelta(days=offset)).isoformat()
            elif period == "weekly":
                key = (today - timedelta(days=offset * 7)).isoformat()
            else:
                month_index = today.year * 12 + today.month - 1 - offset
                key = f"{month_index // 12:04d}-{month_index % 12 + 1:02d}"
            wave = ((count - offset) * 7) % 10
            points.append(RevenueTimePoint(date=key, value=3_000.0 + wave * 150.0))
        return points

    def get_attribution_channels(self) -> list[AttributionChannel]:
        return [
            AttributionChannel(name="Organic", users=12_500, revenue=18_750.0, percentage=28.0),
            AttributionChannel(name="Facebook Ads", users=8_200, revenue=24_600.0, percentage=22.0),
            AttributionChannel(name="Google Ads", users=6_800, revenue=20_400.0, percentage=18.0),
            AttributionChannel(name="Apple Search", users=4_500, revenue=11_250.0, percentage=12.0),
            AttributionChannel(name="Referral", users=3_200, revenue=9_600.0, percentage=10.0),
            AttributionChannel(name="Direct", users=2_800, revenue=8_400.0, percentage=10.0),
        ]

    def calculate_funnel_steps(self, step_definitions: Sequence[FunnelStepDefinition]) -> list[FunnelStep]:
        return self.get_funnel_data()

    def get_historical_growth_rate(self) -> float:
        return 0.052

    def get_session_metrics(self) -> SessionMetrics:
        return SessionMetrics(avg_session_length=self.get_avg_session_length(), sessions_per_user=3.2)


class PuzzleGameDataProvider(DemoDataProvider):
    def get_retention_data(self) -> RetentionData:
        return _retention_curve(42, 18, 5)

    def get_funnel_data(self) -> list[FunnelStep]:
        return _steps(
            ("Level 1", 10_000, 100, 0),
            ("Level 5", 7_500, 75, 25),
            ("Level 10", 5_200, 52, 23),
            ("Level 15", 2_800, 28, 24),
            ("Level 20", 1_500, 15, 13),
            ("Level 30", 800, 8, 7),
        )

    def get_kpi_data(self) -> list[KPICard]:
        return [
            _card("Daily Active Users", 50_421, "50,421", "users", 12.5),
            _card("Day 1 Retention", 42, "42%", "percent", 5.2),
            _card("Level 15 Pass Rate", 45, "45%", "percent", -8.3),
            _card("Avg Session Length", 504, "8m 24s", "seconds", 2.1),
        ]

    def get_revenue_data(self) -> list[TimeSeries]:
        return _series(
            "Ad Revenue",
            ("Mon", 2_400), ("Tue", 2_100), ("Wed", 2_800), ("Thu", 3_200),
            ("Fri", 4_100), ("Sat", 3_800), ("Sun", 3_500),
        )

    def get_segment_data(self) -> list[SegmentSlice]:
        return _slices(("Color Bomb", 45), ("Extra Moves", 32), ("Rainbow", 23))


class IdleGameDataProvider(DemoDataProvider):
    def get_retention_data(self) -> RetentionData:
        return _retention_curve(55, 25, 12)

    def get_funnel_data(self) -> list[FunnelStep]:
        return _steps(
            ("Never Prestiged", 4_500, 45, 0),
            ("Prestige 1x", 3_000, 30, 15),
            ("Prestige 2-5x", 1_800, 18, 12),
            ("Prestige 5+", 700, 7, 11),
        )

    def get_kpi_data(self) -> list[KPICard]:
        return [
            _card("Daily Active Users", 120_847, "120,847", "users", 8.3),
            _card("D1 Retention", 55, "55%", "percent", 3.1),
            _card("Avg Offline Time", 30_600, "8.5h", "seconds", 0),
            _card("Sessions/Day", 6.2, "6.2", "sessions", 1.2),
        ]

    def get_revenue_data(self) -> list[TimeSeries]:
        return _series(
            "IAP Revenue",
            ("6am", 800), ("9am", 2_200), ("12pm", 1_500), ("3pm", 1_800),
            ("6pm", 3_500), ("9pm", 2_800), ("12am", 1_200),
        )

    def get_segment_data(self) -> list[SegmentSlice]:
        return _slices(("Offline", 78), ("Online", 22))


class BattleRoyaleDataProvider(DemoDataProvider):
    def get_retention_data(self) -> RetentionData:
        return _retention_curve(38, 15, 6)

    def get_funnel_data(self) -> list[FunnelStep]:
        return _steps(
            ("Bronze", 2_500, 25, 0),
            ("Silver", 3_000, 30, -5),
            ("Gold", 2_500, 25, 5),
            ("Diamond", 1_500, 15, 10),
            ("Legendary", 500, 5, 10),
        )

    def get_kpi_data(self) -> list[KPICard]:
        return [
            _card("Daily Active Users", 524_821, "524,821", "users", 15.2),
            _card("D1 Retention", 38, "38%", "percent", 2.1),
            _card("Avg Match Time", 1_080, "18m", "seconds", -1.5),
            _card("Matches/Session", 3.2, "3.2", "matches", 0.8),
        ]

    def get_revenue_data(self) -> list[TimeSeries]:
        return _series(
            "Battle Pass",
            ("Week 1", 45_000), ("Week 2", 32_000), ("Week 3", 28_000), ("Week 4", 52_000),
        )

    def get_segment_data(self) -> list[SegmentSlice]:
        return _slices(("AK-47", 32), ("Shotgun", 28), ("SMG", 22), ("Sniper", 18))


class Match3MetaDataProvider(DemoDataProvider):
    def get_retention_data(self) -> RetentionData:
        return _retention_curve(48, 20, 8)

    def get_funnel_data(self) -> list[FunnelStep]:
        return _steps(
            ("Chapter 1", 10_000, 100, 0),
            ("Chapter 3", 6_500, 65, 35),
            ("Chapter 5", 3_500, 35, 30),
            ("Chapter 7", 1_200, 12, 23),
        )

    def get_kpi_data(self) -> list[KPICard]:
        return [
            _card("Daily Active Users", 198_421, "198,421", "users", 5.8),
            _card("D1 Retention", 48, "48%", "percent", 4.2),
            _card("Meta Engagement", 72, "72%", "percent", 8.5),
            _card("IAP Conv Rate", 4.2, "4.2%", "percent", 0.3),
        ]

    def get_revenue_data(self) -> list[TimeSeries]:
        return _series(
            "IAP (Stars)",
            ("Mon", 8_500), ("Tue", 7_200), ("Wed", 9_100), ("Thu", 8_800),
            ("Fri", 11_200), ("Sat", 14_500), ("Sun", 12_800),
        )

    def get_segment_data(self) -> list[SegmentSlice]:
        return _slices(("Modern Style", 45), ("Classic Style", 30), ("Cozy Style", 25))


class GachaRPGDataProvider(DemoDataProvider):
    def get_retention_data(self) -> RetentionData:
        return _retention_curve(52, 28, 22)

    def get_funnel_data(self) -> list[FunnelStep]:
        return _steps(
            ("F2P", 7_500, 75, 0),
            ("Minnow ($1-10)", 1_500, 15, 60),
            ("Dolphin ($10-100)", 750, 7.5, 7.5),
            ("Whale ($100+)", 250, 2.5, 5),
        )

    def get_kpi_data(self) -> list[KPICard]:
        return [
            _card("Daily Active Users", 82_547, "82,547", "users", 3.2),
            _card("D30 Retention", 22, "22%", "percent", 1.8),
            _card("ARPPU", 85, "$85", "currency", 12.5),
            _card("Whale Count", 2_064, "2,064", "users", 5.2),
        ]

    def get_revenue_data(self) -> list[TimeSeries]:
        return _series(
            "Banner Revenue",
            ("Luna Banner", 45_000), ("Kai Banner", 32_000),
            ("Nova Banner", 28_000), ("Limited Collab", 78_000),
        )

    def get_segment_data(self) -> list[SegmentSlice]:
        return _slices(("Limited Banner", 55), ("Battle Pass", 25), ("Direct Packs", 20))
