"""
app/api/routers/dataset_router.py

Dataset analysis and demo dashboard HTTP endpoints.
"""

from __future__ import annotations

import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, status

from app.api.dependencies import get_dataset_upload
from app.schemas.analytics import (
    ColumnProfileResponse,
    DashboardResponse,
    DatasetAnalysisRequest,
    FunnelRequest,
    FunnelResponse,
    FunnelStepResponse,
    GameCategoryResponse,
)
from app.services.csv_ingestion_service import (
    CSVIngestionService,
    DatasetParseError,
    get_csv_ingestion_service,
)
from app.services.dashboard_service import build_column_profiles, build_dashboard
from app.services.data_providers import (
    GAME_CATEGORIES,
    DataProvider,
    create_data_provider,
    create_dataset_provider,
    create_smart_data_provider,
)
from app.services.real_data_provider import RealDataProvider
from app.validators.mapping_validator import ColumnMappingError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["datasets"])

Period = Literal["daily", "weekly", "monthly"]


def _provider_for(body: DatasetAnalysisRequest) -> DataProvider:
    """
    Build the provider for an inline request, translating mapping errors to 400.
    """

    try:
        if body.category:
            return create_smart_data_provider(body.category, body.rows, body.domain_mappings())
        return create_dataset_provider(body.rows, body.domain_mappings())
    except ColumnMappingError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.to_dict(),
        ) from exc


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/datasets/analyze", response_model=DashboardResponse)
def analyze_dataset(body: DatasetAnalysisRequest) -> DashboardResponse:
    """
    Analyze inline rows and return the full dashboard.
    """

    provider = _provider_for(body)
    snapshot = build_dashboard(provider, period=body.period)
    return DashboardResponse.model_validate(snapshot)


@router.post("/datasets/columns", response_model=list[ColumnProfileResponse])
def profile_columns(body: DatasetAnalysisRequest) -> list[ColumnProfileResponse]:
    """
    Return the inferred type and role of every column.
    """

    provider = _provider_for(body)
    if not isinstance(provider, RealDataProvider):
        return []
    return [
        ColumnProfileResponse.model_validate(profile)
        for profile in build_column_profiles(provider.column_stats, provider.column_roles)
    ]


@router.post("/datasets/upload", response_model=DashboardResponse)
def upload_dataset(
    file: UploadFile = Depends(get_dataset_upload),
    period: Period = Query(default="daily", description="Bucket size of the revenue time series"),
    ingestion_service: CSVIngestionService = Depends(get_csv_ingestion_service),
) -> DashboardResponse:
    """
    Parse one CSV or JSON file and return the full dashboard.
    """

    try:
        dataset = ingestion_service.parse_upload(
            stream=file.file,
            filename=file.filename,
            content_type=file.content_type,
        )
    except DatasetParseError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    finally:
        file.file.close()

    provider = create_dataset_provider(dataset.rows)
    snapshot = build_dashboard(provider, period=period, rows_dropped=dataset.rows_dropped)
    logger.info("Analyzed upload %s with %d rows", file.filename, snapshot.row_count)
    return DashboardResponse.model_validate(snapshot)


@router.post("/datasets/funnel", response_model=FunnelResponse)
def calculate_funnel(body: FunnelRequest) -> FunnelResponse:
    """
    Count distinct users reaching each explicitly defined funnel step.
    """

    provider = _provider_for(body)
    steps = provider.calculate_funnel_steps([step.to_domain() for step in body.steps])
    return FunnelResponse(steps=[FunnelStepResponse.model_validate(step) for step in steps])


@router.get("/demo/categories", response_model=list[GameCategoryResponse])
def list_demo_categories() -> list[GameCategoryResponse]:
    return [
        GameCategoryResponse(id=info.id.value, name=info.name, description=info.description)
        for info in GAME_CATEGORIES
    ]


@router.get("/demo/{category}", response_model=DashboardResponse)
def demo_dashboard(
    category: str,
    period: Period = Query(default="daily", description="Bucket size of the revenue time series"),
) -> DashboardResponse:
    """
    Canned dashboard for one game genre; unknown genres get the puzzle demo.
    """

    snapshot = build_dashboard(create_data_provider(category), period=period)
    return DashboardResponse.model_validate(snapshot)
