"""
app/services/data_providers.py

The analytics query contract and the factories that pick an implementation.

Three implementations satisfy :class:`DataProvider`:

* :class:`~app.services.real_data_provider.RealDataProvider` - uploaded rows
* :class:`EmptyDataProvider` - no rows; every query returns zero/empty
* :mod:`app.services.demo_providers` - canned figures per game genre
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, Protocol, Sequence, runtime_checkable

from app.config import get_analytics_settings
from app.domain.analytics import (
    AttributionChannel,
    ColumnMapping,
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
from app.services.demo_providers import (
    BattleRoyaleDataProvider,
    DemoDataProvider,
    GachaRPGDataProvider,
    IdleGameDataProvider,
    Match3MetaDataProvider,
    PuzzleGameDataProvider,
)
from app.services.real_data_provider import RealDataProvider

logger = logging.getLogger(__name__)


@runtime_checkable
class DataProvider(Protocol):
    """
    Query surface consumed by dashboard charts and KPI cards.

    No method raises for missing data; absence is an empty list or zero.
    """

    def get_retention_data(self) -> RetentionData: ...

    def get_funnel_data(self) -> list[FunnelStep]: ...

    def get_kpi_data(self) -> list[KPICard]: ...

    def get_revenue_data(self) -> list[TimeSeries]: ...

    def get_segment_data(self) -> list[SegmentSlice]: ...

    def get_dau(self) -> int: ...

    def get_mau(self) -> int: ...

    def calculate_arpu(self) -> float: ...

    def get_total_revenue(self) -> float: ...

    def get_retention_day(self, day: int) -> float: ...

    def get_avg_session_length(self) -> float: ...

    def get_payer_conversion(self) -> float: ...

    def get_spender_tiers(self) -> list[SpenderTier]: ...

    def get_revenue_time_series(self, period: str = "daily") -> list[RevenueTimePoint]: ...

    def get_attribution_channels(self) -> list[AttributionChannel]: ...

    def calculate_funnel_steps(self, step_definitions: Sequence[FunnelStepDefinition]) -> list[FunnelStep]: ...

    def get_historical_growth_rate(self) -> float: ...

    def get_session_metrics(self) -> SessionMetrics: ...


class EmptyDataProvider:
    """
    Null object used when no rows are available.
    """

    def get_retention_data(self) -> RetentionData:
        return RetentionData(days=[], values=[], benchmark=[])

    def get_funnel_data(self) -> list[FunnelStep]:
        return []

    def get_kpi_data(self) -> list[KPICard]:
        return []

    def get_revenue_data(self) -> list[TimeSeries]:
        return []

    def get_segment_data(self) -> list[SegmentSlice]:
        return []

    def get_dau(self) -> int:
        return 0

    def get_mau(self) -> int:
        return 0

    def calculate_arpu(self) -> float:
        return 0.0

    def get_total_revenue(self) -> float:
        return 0.0

    def get_retention_day(self, day: int) -> float:
        return 0.0

    def get_avg_session_length(self) -> float:
        return 0.0

    def get_payer_conversion(self) -> float:
        return 0.0

    def get_spender_tiers(self) -> list[SpenderTier]:
        return []

    def get_revenue_time_series(self, period: str = "daily") -> list[RevenueTimePoint]:
        return []

    def get_attribution_channels(self) -> list[AttributionChannel]:
        return []

    def calculate_funnel_steps(self, step_definitions: Sequence[FunnelStepDefinition]) -> list[FunnelStep]:
        return []

    def get_historical_growth_rate(self) -> float:
        return 0.0

    def get_session_metrics(self) -> SessionMetrics:
        return SessionMetrics(avg_session_length=0.0, sessions_per_user=0.0)


class GameCategory(str, Enum):
    PUZZLE = "puzzle"
    IDLE = "idle"
    BATTLE_ROYALE = "battle_royale"
    MATCH3_META = "match3_meta"
    GACHA_RPG = "gacha_rpg"
    CUSTOM = "custom"


@dataclass(frozen=True)
class GameCategoryInfo:
    id: GameCategory
    name: str
    description: str


GAME_CATEGORIES: tuple[GameCategoryInfo, ...] = (
    GameCategoryInfo(GameCategory.PUZZLE, "Puzzle Game", "Match-3, puzzle solving, level-based games"),
    GameCategoryInfo(GameCategory.IDLE, "Idle / Clicker", "Incremental, idle mining, factory games"),
    GameCategoryInfo(GameCategory.BATTLE_ROYALE, "Battle Royale", "FPS, competitive shooters, survival games"),
    GameCategoryInfo(GameCategory.MATCH3_META, "Match-3 + Meta", "Match-3 with story/decoration meta layer"),
    GameCategoryInfo(GameCategory.GACHA_RPG, "Gacha RPG", "Hero collectors, turn-based RPGs with gacha"),
)

_DEMO_PROVIDERS: dict[GameCategory, type[DemoDataProvider]] = {
    GameCategory.PUZZLE: PuzzleGameDataProvider,
    GameCategory.IDLE: IdleGameDataProvider,
    GameCategory.BATTLE_ROYALE: BattleRoyaleDataProvider,
    GameCategory.MATCH3_META: Match3MetaDataProvider,
    GameCategory.GACHA_RPG: GachaRPGDataProvider,
}


def create_data_provider(
    category: GameCategory | str,
    *,
    clock: Callable[[], datetime] | None = None,
) -> DataProvider:
    """
    Return the demo provider for ``category``; unknown genres get the puzzle demo.
    """

    try:
        resolved = GameCategory(category)
    except ValueError:
        resolved = GameCategory.PUZZLE
    provider_cls = _DEMO_PROVIDERS.get(resolved, PuzzleGameDataProvider)
    return provider_cls(clock=clock)


def create_smart_data_provider(
    category: GameCategory | str,
    rows: Iterable[Row] | None,
    column_mappings: Sequence[ColumnMapping] | None = None,
    *,
    clock: Callable[[], datetime] | None = None,
) -> DataProvider:
    """
    Use uploaded rows when there are any, otherwise the genre's demo data.

    Raises ColumnMappingError when ``column_mappings`` name unknown columns.
    """

    materialized = list(rows or [])
    if not materialized:
        logger.debug("No rows supplied; using demo provider for %s", category)
        return create_data_provider(category, clock=clock)
    return _build_real_provider(materialized, column_mappings, clock)


def create_dataset_provider(
    rows: Iterable[Row] | None,
    column_mappings: Sequence[ColumnMapping] | None = None,
    *,
    clock: Callable[[], datetime] | None = None,
) -> DataProvider:
    """
    Real provider over ``rows``, or the empty provider when there are none.
    """

    materialized = list(rows or [])
    if not materialized:
        return EmptyDataProvider()
    return _build_real_provider(materialized, column_mappings, clock)


def _build_real_provider(
    rows: list[Row],
    column_mappings: Sequence[ColumnMapping] | None,
    clock: Callable[[], datetime] | None,
) -> RealDataProvider:
    settings = get_analytics_settings()
    options = {"clock": clock} if clock is not None else {}
    return RealDataProvider(
        rows,
        column_mappings,
        sample_size=settings.sample_size,
        type_threshold=settings.type_threshold,
        **options,
    )


def create_empty_data_provider() -> DataProvider:
    return EmptyDataProvider()


def has_data(provider: DataProvider) -> bool:
    """
    True when the provider has KPI cards or funnel steps to show.
    """

    return bool(provider.get_kpi_data()) or bool(provider.get_funnel_data())
