"""
app/validators/mapping_validator.py

Validation of externally supplied column mappings against an uploaded dataset.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from app.domain.analytics import ColumnMapping


@dataclass(frozen=True)
class ColumnMappingErrorDetail:
    """
    Structured mapping error detail.
    """

    code: str
    message: str
    column: str | None = None
    context: dict[str, Any] | None = None


class ColumnMappingError(ValueError):
    """
    Raised when column mappings do not describe the dataset they came with.
    """

    def __init__(self, *, message: str, errors: Sequence[ColumnMappingErrorDetail]) -> None:
        super().__init__(message)
        self.message = message
        self.errors = tuple(errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "errors": [
                {
                    "code": error.code,
                    "message": error.message,
                    "column": error.column,
                    "context": error.context,
                }
                for error in self.errors
            ],
        }


class MappingValidator:
    """
    Checks that every mapping points at a real, distinct dataset column.
    """

    def validate(
        self,
        *,
        mappings: Sequence[ColumnMapping],
        dataset_columns: Sequence[str],
    ) -> None:
        """
        Validate mappings and raise structured errors if invalid.
        """

        errors: list[ColumnMappingErrorDetail] = []
        columns_set = set(dataset_columns)
        seen: set[str] = set()

        for mapping in mappings:
            name = mapping.original_name
            if name in seen:
                errors.append(
                    ColumnMappingErrorDetail(
                        code="duplicate_mapping",
                        message="Column is mapped more than once.",
                        column=name,
                    )
                )
                continue
            seen.add(name)

            if name not in columns_set:
                errors.append(
                    ColumnMappingErrorDetail(
                        code="unknown_source_column",
                        message="Mapped column does not exist in any row.",
                        column=name,
                        context={"dataset_columns": list(dataset_columns)},
                    )
                )

        if errors:
            bad_columns = ", ".join(sorted({error.column for error in errors if error.column}))
            raise ColumnMappingError(
                message=f"Column mapping validation failed for: {bad_columns}.",
                errors=errors,
            )
