"""
app/validators package marker.
"""

from app.validators.mapping_validator import ColumnMappingError, ColumnMappingErrorDetail, MappingValidator
from app.validators.scalar_parser import is_blank, is_date_string, parse_date, to_number

__all__ = [
    "ColumnMappingError",
    "ColumnMappingErrorDetail",
    "MappingValidator",
    "is_blank",
    "is_date_string",
    "parse_date",
    "to_number",
]
