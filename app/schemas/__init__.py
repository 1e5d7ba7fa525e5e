"""
app/schemas package marker.
"""

from app.schemas.analytics import (
    ColumnMappingInput,
    ColumnProfileResponse,
    DashboardResponse,
    DatasetAnalysisRequest,
    FunnelRequest,
    FunnelResponse,
    FunnelStepDefinitionInput,
    GameCategoryResponse,
)

__all__ = [
    "ColumnMappingInput",
    "ColumnProfileResponse",
    "DashboardResponse",
    "DatasetAnalysisRequest",
    "FunnelRequest",
    "FunnelResponse",
    "FunnelStepDefinitionInput",
    "GameCategoryResponse",
]
