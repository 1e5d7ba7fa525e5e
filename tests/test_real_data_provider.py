"""
tests/test_real_data_provider.py

Pytest unit tests for RealDataProvider.

All tests are pure Python over in-memory rows with a fixed clock.

Coverage
--------
- Column analysis and role assignment at construction (incl. mappings)
- Retention: explicit columns, activity span, placeholder
- Funnels: level, event frequency, categorical fallback, explicit steps
- KPI card priority and cap
- Revenue, ARPU, payer conversion, spender tiers, growth rate
- DAU / MAU windows and fallbacks
- Segments, attribution, session metrics
- Empty dataset behaviour
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.domain.analytics import (
    ColumnMapping,
    ColumnRole,
    ColumnType,
    FunnelStep,
    FunnelStepDefinition,
    MappingRole,
)
from app.services.real_data_provider import PLACEHOLDER_RETENTION, RealDataProvider
from app.validators.mapping_validator import ColumnMappingError

NOW = datetime(2024, 1, 31, 12, 0, tzinfo=timezone.utc)


def make_provider(rows, mappings=None, **kwargs) -> RealDataProvider:
    return RealDataProvider(rows, mappings, clock=lambda: NOW, **kwargs)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def spender_rows() -> list[dict]:
    return [
        {"user_id": "u1", "revenue": 0},
        {"user_id": "u2", "revenue": 0},
        {"user_id": "u3", "revenue": 50},
        {"user_id": "u4", "revenue": 150},
    ]


@pytest.fixture()
def event_rows() -> list[dict]:
    return [
        {"user_id": "u1", "event": "install"},
        {"user_id": "u1", "event": "tutorial"},
        {"user_id": "u2", "event": "install"},
        {"user_id": "u3", "event": "install"},
        {"user_id": "u3", "event": "tutorial"},
        {"user_id": "u3", "event": "purchase"},
    ]


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_roles_and_stats_per_column(self, spender_rows: list[dict]) -> None:
        provider = make_provider(spender_rows)

        assert provider.row_count == 4
        assert provider.column_roles == {"user_id": ColumnRole.USER_ID, "revenue": ColumnRole.REVENUE}
        assert provider.column_stats["revenue"].type is ColumnType.NUMERIC
        assert provider.column_stats["user_id"].type is ColumnType.CATEGORICAL

    def test_mapping_takes_precedence(self) -> None:
        rows = [{"player": "a", "price_paid": 5, "revenue": 9}]
        provider = make_provider(
            rows,
            [
                ColumnMapping(original_name="player", role=MappingRole.IDENTIFIER),
                ColumnMapping(original_name="price_paid", role=MappingRole.METRIC),
                ColumnMapping(original_name="revenue", role=MappingRole.NOISE),
            ],
        )

        assert provider.column_roles["player"] is ColumnRole.USER_ID
        assert provider.column_roles["price_paid"] is ColumnRole.REVENUE
        assert provider.column_roles["revenue"] is ColumnRole.UNKNOWN
        assert provider.get_total_revenue() == 5.0

    def test_mapping_for_unknown_column_is_rejected(self) -> None:
        with pytest.raises(ColumnMappingError):
            make_provider(
                [{"a": 1}],
                [ColumnMapping(original_name="b", role=MappingRole.METRIC)],
            )

    def test_columns_missing_from_sample_are_analyzed_on_all_rows(self) -> None:
        rows = [{"a": 1}, {"a": 2}, {"a": 3, "late_count": 7}]
        provider = make_provider(rows, sample_size=2)

        assert provider.column_stats["late_count"].type is ColumnType.NUMERIC
        assert provider.column_roles["late_count"] is ColumnRole.COUNT

    def test_input_rows_are_snapshotted(self, spender_rows: list[dict]) -> None:
        provider = make_provider(spender_rows)
        spender_rows[3]["revenue"] = 0

        assert provider.get_total_revenue() == 200.0

    def test_views_are_read_only(self, spender_rows: list[dict]) -> None:
        provider = make_provider(spender_rows)
        with pytest.raises(TypeError):
            provider.column_roles["revenue"] = ColumnRole.UNKNOWN  # type: ignore[index]


# ---------------------------------------------------------------------------
# Retention
# ---------------------------------------------------------------------------


class TestRetention:
    def test_explicit_retention_columns(self) -> None:
        rows = [{"d7": 0.2, "d1": 0.4}, {"d7": 0.2, "d1": 0.5}]
        retention = make_provider(rows).get_retention_data()

        assert retention.days == ["d1", "d7"]
        assert retention.values == [45, 20]
        assert retention.benchmark == [100, 40]

    def test_retention_day_lookup_on_column_labels(self) -> None:
        rows = [{"d7": 0.2, "d1": 0.4}, {"d7": 0.2, "d1": 0.5}]
        provider = make_provider(rows)

        assert provider.get_retention_day(7) == pytest.approx(0.2)
        assert provider.get_retention_day(30) == 0.0

    def test_derived_from_user_activity(self) -> None:
        rows = [
            {"user_id": "u1", "timestamp": "2024-01-01"},
            {"user_id": "u1", "timestamp": "2024-01-08"},
            {"user_id": "u2", "timestamp": "2024-01-01"},
        ]
        provider = make_provider(rows)
        retention = provider.get_retention_data()

        assert retention.days == ["Day 0", "Day 1", "Day 3", "Day 7", "Day 14", "Day 30"]
        assert retention.values == [100, 50, 50, 50, 0, 0]
        assert provider.get_retention_day(0) == 1.0
        assert provider.get_retention_day(1) == 0.5

    def test_placeholder_without_signal(self) -> None:
        retention = make_provider([{"score": 1}, {"score": 2}]).get_retention_data()

        assert retention == PLACEHOLDER_RETENTION
        assert retention.days == ["Day 0", "Day 1", "Day 7", "Day 30"]
        assert retention.values == [100, 0, 0, 0]


# ---------------------------------------------------------------------------
# Funnels
# ---------------------------------------------------------------------------


class TestFunnel:
    def test_event_frequency_funnel(self) -> None:
        rows = [
            {"user_id": "u1", "event": "level_1"},
            {"user_id": "u1", "event": "level_2"},
            {"user_id": "u2", "event": "level_1"},
        ]
        provider = make_provider(rows)

        assert provider.column_roles == {"user_id": ColumnRole.USER_ID, "event": ColumnRole.EVENT}
        assert provider.get_funnel_data() == [
            FunnelStep(name="level_1", value=2, percentage=100, drop_off=0),
            FunnelStep(name="level_2", value=1, percentage=50, drop_off=50),
        ]

    def test_ties_keep_first_seen_order(self) -> None:
        rows = [{"event": "b"}, {"event": "a"}, {"event": "a"}, {"event": "b"}, {"event": "c"}]
        names = [step.name for step in make_provider(rows).get_funnel_data()]

        assert names == ["b", "a", "c"]

    def test_event_funnel_is_capped_at_six_steps(self) -> None:
        rows = [{"event": f"e{index}"} for index in range(10)]
        assert len(make_provider(rows).get_funnel_data()) == 6

    def test_level_funnel_counts_users_at_or_above(self) -> None:
        rows = [
            {"user_id": "u1", "level": 1},
            {"user_id": "u2", "level": 2},
            {"user_id": "u3", "level": 3},
            {"user_id": "u4", "level": 1},
            {"user_id": "u4", "level": 3},
        ]
        steps = make_provider(rows).get_funnel_data()

        assert steps == [
            FunnelStep(name="Level 1", value=4, percentage=100, drop_off=0),
            FunnelStep(name="Level 2", value=3, percentage=75, drop_off=25),
            FunnelStep(name="Level 3", value=2, percentage=50, drop_off=25),
        ]

    def test_level_funnel_samples_evenly_spaced_levels(self) -> None:
        rows = [{"user_id": f"u{level}", "level": level} for level in range(1, 21)]
        steps = make_provider(rows).get_funnel_data()

        assert [step.name for step in steps] == ["Level 1", "Level 5", "Level 9", "Level 13", "Level 17"]
        assert all(steps[i].percentage >= steps[i + 1].percentage for i in range(len(steps) - 1))

    def test_categorical_fallback(self) -> None:
        rows = [{"color": color} for color in ("red", "red", "blue", "red", "blue", "green")]
        steps = make_provider(rows).get_funnel_data()

        assert [(step.name, step.value, step.percentage, step.drop_off) for step in steps] == [
            ("red", 3, 100, 0),
            ("blue", 2, 67, 33),
            ("green", 1, 33, 34),
        ]

    def test_no_funnel_signal(self) -> None:
        assert make_provider([{"score": 1}, {"score": 2}]).get_funnel_data() == []

    def test_explicit_steps(self, event_rows: list[dict]) -> None:
        provider = make_provider(event_rows)
        steps = provider.calculate_funnel_steps(
            [
                FunnelStepDefinition(name="Install", event="INSTALL"),
                FunnelStepDefinition(name="Tutorial", event="tutorial"),
                FunnelStepDefinition(name="Purchase", condition={"event": "purchase"}),
            ]
        )

        assert steps == [
            FunnelStep(name="Install", value=3, percentage=100, drop_off=0),
            FunnelStep(name="Tutorial", value=2, percentage=67, drop_off=33),
            FunnelStep(name="Purchase", value=1, percentage=50, drop_off=50),
        ]

    def test_condition_keeps_booleans_and_numbers_apart(self) -> None:
        rows = [
            {"user_id": "u1", "event": "login", "is_payer": 1},
            {"user_id": "u2", "event": "login", "is_payer": True},
            {"user_id": "u3", "event": "login"},
        ]
        steps = make_provider(rows).calculate_funnel_steps(
            [
                FunnelStepDefinition(name="All"),
                FunnelStepDefinition(name="Flagged", condition={"is_payer": True}),
            ]
        )

        assert steps == [
            FunnelStep(name="All", value=3, percentage=100, drop_off=0),
            FunnelStep(name="Flagged", value=1, percentage=33, drop_off=67),
        ]

    def test_condition_requires_the_field_to_be_present(self) -> None:
        rows = [
            {"user_id": "u1", "event": "login", "is_payer": 1},
            {"user_id": "u2", "event": "login", "is_payer": None},
            {"user_id": "u3", "event": "login"},
        ]
        provider = make_provider(rows)

        [missing] = provider.calculate_funnel_steps(
            [FunnelStepDefinition(name="Missing", condition={"is_payer": None})]
        )
        [numeric] = provider.calculate_funnel_steps(
            [FunnelStepDefinition(name="Numeric", condition={"is_payer": 1.0})]
        )

        assert missing.value == 1
        assert numeric.value == 1

    def test_explicit_steps_require_event_and_user_roles(self) -> None:
        provider = make_provider([{"event": "install"}])
        assert provider.calculate_funnel_steps([FunnelStepDefinition(name="x", event="install")]) == []


# ---------------------------------------------------------------------------
# KPIs
# ---------------------------------------------------------------------------


class TestKPIs:
    def test_priority_order_and_cap(self) -> None:
        rows = [
            {"user_id": "u1", "revenue": 10, "playtime": 100, "level": 3},
            {"user_id": "u2", "revenue": 20, "playtime": 200, "level": 5},
            {"user_id": "u3", "revenue": 0, "playtime": 300, "level": 1},
        ]
        cards = make_provider(rows).get_kpi_data()

        assert [card.label for card in cards] == ["Total Users", "Total Revenue", "Avg Revenue", "Avg Duration"]
        assert cards[0].value == 3
        assert cards[1].value == 30.0
        assert cards[1].display == "$30"
        assert cards[2].value == pytest.approx(10.0)
        assert cards[3].display == "3m"

    def test_backfills_with_numeric_columns(self) -> None:
        rows = [
            {"user_id": "u1", "level": 5, "coins": 100},
            {"user_id": "u2", "level": 2, "coins": 300},
        ]
        cards = make_provider(rows).get_kpi_data()

        assert [card.label for card in cards] == ["Total Users", "Max Level", "Coins"]
        assert cards[1].display == "5"
        assert cards[2].value == pytest.approx(200.0)

    def test_rows_card_without_user_column(self) -> None:
        rows = [{"coins": 1_500}, {"coins": 2_500}]
        cards = make_provider(rows).get_kpi_data()

        assert cards[0].label == "Total Rows"
        assert cards[0].value == 2
        assert cards[1].display == "2.0K"
        assert cards[1].value == 2_000.0

    def test_never_more_than_four_cards(self) -> None:
        rows = [{f"metric_{index}": index for index in range(10)}]
        assert len(make_provider(rows).get_kpi_data()) == 4


# ---------------------------------------------------------------------------
# Revenue & monetization
# ---------------------------------------------------------------------------


class TestMonetization:
    def test_spender_tiers(self, spender_rows: list[dict]) -> None:
        tiers = {tier.tier: tier for tier in make_provider(spender_rows).get_spender_tiers()}

        assert list(tiers) == ["Whale", "Dolphin", "Minnow", "Non-Payer"]
        assert (tiers["Whale"].users, tiers["Whale"].revenue, tiers["Whale"].percentage) == (1, 150.0, 25.0)
        assert (tiers["Dolphin"].users, tiers["Dolphin"].percentage) == (1, 25.0)
        assert (tiers["Minnow"].users, tiers["Minnow"].percentage) == (0, 0.0)
        assert (tiers["Non-Payer"].users, tiers["Non-Payer"].percentage) == (2, 50.0)

    def test_spender_tiers_partition_users(self) -> None:
        rows = [{"user_id": f"u{index % 7}", "revenue": index * 3} for index in range(30)]
        tiers = make_provider(rows).get_spender_tiers()

        assert sum(tier.users for tier in tiers) == 7
        assert sum(tier.percentage for tier in tiers) == pytest.approx(100.0)

    def test_spender_revenue_is_summed_per_user(self) -> None:
        rows = [
            {"user_id": "u1", "revenue": 15},
            {"user_id": "u1", "revenue": 10},
        ]
        tiers = {tier.tier: tier for tier in make_provider(rows).get_spender_tiers()}

        assert tiers["Dolphin"].users == 1
        assert tiers["Dolphin"].revenue == 25.0

    def test_arpu_and_payer_conversion(self, spender_rows: list[dict]) -> None:
        provider = make_provider(spender_rows)

        assert provider.calculate_arpu() == pytest.approx(50.0)
        assert provider.get_payer_conversion() == pytest.approx(0.5)

    def test_arpu_without_user_column_uses_rows(self) -> None:
        provider = make_provider([{"revenue": 10}, {"revenue": 30}])
        assert provider.calculate_arpu() == pytest.approx(20.0)

    def test_missing_revenue_role(self) -> None:
        provider = make_provider([{"user_id": "u1"}])

        assert provider.calculate_arpu() == 0.0
        assert provider.get_payer_conversion() == 0.0
        assert provider.get_spender_tiers() == []
        assert provider.get_revenue_data() == []

    def test_revenue_chart_keeps_last_seven_days(self) -> None:
        rows = [{"date": f"2024-01-{day:02d}", "revenue": day} for day in range(1, 10)]
        series = make_provider(rows).get_revenue_data()

        points = series[0].data
        assert len(points) == 7
        assert points[0].timestamp == "2024-01-03"
        assert points[-1].value == 9.0

    def test_revenue_chart_total_without_time_column(self) -> None:
        series = make_provider([{"revenue": 10}, {"revenue": 5}]).get_revenue_data()

        assert len(series[0].data) == 1
        assert series[0].data[0].timestamp == "Total"
        assert series[0].data[0].value == 15.0

    def test_revenue_time_series_periods(self) -> None:
        rows = [
            {"timestamp": "2024-01-03", "revenue": 10},
            {"timestamp": "2024-01-07", "revenue": 5},
            {"timestamp": "2024-01-08", "revenue": 1},
            {"timestamp": "2024-02-01", "revenue": 4},
        ]
        provider = make_provider(rows)

        daily = provider.get_revenue_time_series("daily")
        assert [point.date for point in daily] == ["2024-01-03", "2024-01-07", "2024-01-08", "2024-02-01"]

        weekly = provider.get_revenue_time_series("weekly")
        assert [(point.date, point.value) for point in weekly] == [
            ("2024-01-01", 15.0),
            ("2024-01-08", 1.0),
            ("2024-01-29", 4.0),
        ]

        monthly = provider.get_revenue_time_series("monthly")
        assert [(point.date, point.value) for point in monthly] == [("2024-01", 16.0), ("2024-02", 4.0)]

    def test_unknown_period_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            make_provider([{"revenue": 1}]).get_revenue_time_series("yearly")  # type: ignore[arg-type]

    def test_historical_growth_rate(self) -> None:
        rows = [
            {"timestamp": "2024-01-01", "revenue": 100},
            {"timestamp": "2024-01-02", "revenue": 110},
        ]
        assert make_provider(rows).get_historical_growth_rate() == pytest.approx(0.05)

    def test_growth_rate_default_without_series(self) -> None:
        assert make_provider([{"revenue": 1}]).get_historical_growth_rate() == 0.02


# ---------------------------------------------------------------------------
# Audience
# ---------------------------------------------------------------------------


class TestAudience:
    def test_dau_and_mau_windows(self) -> None:
        rows = [
            {"user_id": "u1", "timestamp": "2024-01-31T08:00:00Z"},
            {"user_id": "u2", "timestamp": "2024-01-15"},
            {"user_id": "u3", "timestamp": "2023-11-01"},
        ]
        provider = make_provider(rows)

        assert provider.get_dau() == 1
        assert provider.get_mau() == 2

    def test_empty_windows_fall_back_to_all_time_users(self) -> None:
        rows = [
            {"user_id": "u1", "timestamp": "2020-01-01"},
            {"user_id": "u2", "timestamp": "2020-01-02"},
        ]
        provider = make_provider(rows)

        assert provider.get_dau() == 2
        assert provider.get_mau() == 2

    def test_no_user_column_counts_rows(self) -> None:
        provider = make_provider([{"timestamp": "2024-01-31"}, {"timestamp": "2024-01-30"}])

        assert provider.get_dau() == 2
        assert provider.get_mau() == 2

    def test_mixed_time_cells_and_missing_users(self) -> None:
        rows = [
            {"user_id": "u1", "timestamp": 1_706_659_200_000},
            {"user_id": "u2", "timestamp": "not a date"},
            {"user_id": "  ", "timestamp": "2024-01-31"},
            {"timestamp": "2024-01-31T08:00:00Z"},
        ]
        provider = make_provider(rows)

        assert provider.get_dau() == 1
        assert provider.get_mau() == 1
        assert provider.get_retention_data().values == [100, 0, 0, 0, 0, 0]

    def test_install_date_column_is_a_plain_timestamp(self) -> None:
        rows = [
            {"user_id": "u1", "install_date": "2024-01-31"},
            {"user_id": "u2", "install_date": "2023-06-01"},
        ]
        provider = make_provider(rows)

        assert provider.column_roles["install_date"] is ColumnRole.TIMESTAMP
        assert provider.get_dau() == 1

    def test_created_column_is_the_fallback_time_column(self) -> None:
        rows = [
            {"user_id": "u1", "created_at": "2024-01-31"},
            {"user_id": "u2", "created_at": "2023-06-01"},
        ]
        provider = make_provider(rows)

        assert provider.column_roles["created_at"] is ColumnRole.INSTALL_DATE
        assert provider.get_dau() == 1

    def test_segments(self) -> None:
        rows = [{"platform": value} for value in ("ios", "ios", "android", "ios", None)]
        segments = make_provider(rows).get_segment_data()

        assert [(s.name, s.value, s.percentage) for s in segments] == [
            ("ios", 3, 60.0),
            ("android", 1, 20.0),
            ("Unknown", 1, 20.0),
        ]

    def test_segment_percentages_never_exceed_hundred(self) -> None:
        rows = [{"segment": f"s{index % 9}"} for index in range(100)]
        segments = make_provider(rows).get_segment_data()

        assert len(segments) == 6
        assert sum(s.percentage for s in segments) <= 100.0

    def test_attribution_by_keyword_column(self) -> None:
        rows = [
            {"user_id": "u1", "utm_source": "facebook", "revenue": 5},
            {"user_id": "u1", "utm_source": "facebook", "revenue": 5},
            {"user_id": "u2", "utm_source": "google", "revenue": 1},
            {"user_id": "u3", "utm_source": "facebook", "revenue": 0},
        ]
        channels = make_provider(rows).get_attribution_channels()

        assert [(c.name, c.users, c.revenue) for c in channels] == [
            ("facebook", 2, 10.0),
            ("google", 1, 1.0),
        ]
        assert channels[0].percentage == pytest.approx(200 / 3)

    def test_attribution_from_mapped_dimension(self) -> None:
        rows = [{"acq": "organic"}, {"acq": "paid"}, {"acq": "organic"}]
        provider = make_provider(rows, [ColumnMapping(original_name="acq", role=MappingRole.DIMENSION)])

        # "acq" has no channel keyword, so the dimension defaults to segment.
        assert provider.column_roles["acq"] is ColumnRole.SEGMENT
        assert provider.get_attribution_channels() == []

    def test_attribution_without_users_counts_rows(self) -> None:
        rows = [{"channel": "organic"}, {"channel": "paid"}, {"channel": "organic"}]
        channels = make_provider(rows).get_attribution_channels()

        assert [(c.name, c.users) for c in channels] == [("organic", 2), ("paid", 1)]

    def test_attribution_revenue_ignores_lifetime_value(self) -> None:
        rows = [
            {"player_id": "p1", "channel": "organic", "ltv": 40},
            {"player_id": "p2", "channel": "paid", "ltv": 15},
        ]
        provider = make_provider(rows)

        assert provider.get_total_revenue() == 55.0
        assert [(c.name, c.revenue) for c in provider.get_attribution_channels()] == [
            ("organic", 0.0),
            ("paid", 0.0),
        ]

    def test_session_metrics(self) -> None:
        rows = [
            {"user_id": "u1", "session_id": "s1", "playtime": 100},
            {"user_id": "u1", "session_id": "s2", "playtime": 300},
            {"user_id": "u2", "session_id": "s3", "playtime": 200},
        ]
        provider = make_provider(rows)
        metrics = provider.get_session_metrics()

        assert provider.column_roles["session_id"] is ColumnRole.SESSION
        assert metrics.avg_session_length == pytest.approx(200.0)
        assert metrics.sessions_per_user == pytest.approx(1.5)
        assert provider.get_avg_session_length() == pytest.approx(200.0)


# ---------------------------------------------------------------------------
# Empty dataset
# ---------------------------------------------------------------------------


class TestEmptyRows:
    def test_every_query_returns_its_empty_value(self) -> None:
        provider = make_provider([])

        assert provider.row_count == 0
        assert provider.get_retention_data() == PLACEHOLDER_RETENTION
        assert provider.get_funnel_data() == []
        assert provider.get_kpi_data() == []
        assert provider.get_revenue_data() == []
        assert provider.get_segment_data() == []
        assert provider.get_dau() == 0
        assert provider.get_mau() == 0
        assert provider.calculate_arpu() == 0.0
        assert provider.get_total_revenue() == 0.0
        assert provider.get_retention_day(1) == 0.0
        assert provider.get_payer_conversion() == 0.0
        assert provider.get_spender_tiers() == []
        assert provider.get_revenue_time_series("weekly") == []
        assert provider.get_attribution_channels() == []
        assert provider.calculate_funnel_steps([FunnelStepDefinition(name="a")]) == []
        assert provider.get_historical_growth_rate() == 0.02
        assert provider.get_session_metrics().sessions_per_user == 0.0
