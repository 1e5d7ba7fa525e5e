"""
app/services package marker.
"""

from app.services.csv_ingestion_service import (
    CSVIngestionService,
    DatasetParseError,
    ParsedDataset,
    get_csv_ingestion_service,
)
from app.services.dashboard_service import DashboardSnapshot, build_dashboard
from app.services.data_providers import (
    GAME_CATEGORIES,
    DataProvider,
    EmptyDataProvider,
    GameCategory,
    create_data_provider,
    create_dataset_provider,
    create_empty_data_provider,
    create_smart_data_provider,
    has_data,
)
from app.services.real_data_provider import RealDataProvider

__all__ = [
    "CSVIngestionService",
    "DatasetParseError",
    "ParsedDataset",
    "get_csv_ingestion_service",
    "DashboardSnapshot",
    "build_dashboard",
    "GAME_CATEGORIES",
    "DataProvider",
    "EmptyDataProvider",
    "GameCategory",
    "create_data_provider",
    "create_dataset_provider",
    "create_empty_data_provider",
    "create_smart_data_provider",
    "has_data",
    "RealDataProvider",
]
