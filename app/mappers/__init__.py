"""
app/mappers package marker.
"""

from app.mappers.column_analyzer import ColumnNotFoundError, analyze_column, collect_columns
from app.mappers.role_detector import ROLE_RULES, detect_column_role, resolve_mapped_role

__all__ = [
    "ColumnNotFoundError",
    "ROLE_RULES",
    "analyze_column",
    "collect_columns",
    "detect_column_role",
    "resolve_mapped_role",
]
