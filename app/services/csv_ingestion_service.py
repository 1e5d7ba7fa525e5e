"""
app/services/csv_ingestion_service.py

Parses uploaded CSV / JSON datasets into rows for the metrics engine.

Cell coercion mirrors what a spreadsheet user expects: values are trimmed,
empty cells and ``null`` become ``None``, ``true``/``false`` become
booleans, numeric strings become ``int`` or ``float`` and everything else
stays text.
Dates are left as text; the engine parses them on demand.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import math
from dataclasses import dataclass
from functools import lru_cache
from typing import BinaryIO, Mapping

from app.config import get_analytics_settings
from app.domain.analytics import Row, Scalar

logger = logging.getLogger(__name__)

_BOOLEAN_LITERALS = {"true": True, "false": False}
_NULL_LITERALS = frozenset({"null"})


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class DatasetParseError(ValueError):
    """
    Raised when an uploaded dataset cannot be decoded into rows.
    """


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParsedDataset:
    """
    Rows decoded from one upload.

    ``rows_dropped`` counts rows cut by the upload row limit.
    """

    columns: tuple[str, ...]
    rows: tuple[Row, ...]
    rows_dropped: int = 0


def coerce_cell(raw_value: object) -> Scalar:
    """
    Convert one raw cell into a typed scalar.
    """

    if raw_value is None:
        return None
    if isinstance(raw_value, bool):
        return raw_value
    if isinstance(raw_value, (int, float)):
        return raw_value
    text = str(raw_value).strip()
    if not text:
        return None

    lowered = text.lower()
    if lowered in _NULL_LITERALS:
        return None
    if lowered in _BOOLEAN_LITERALS:
        return _BOOLEAN_LITERALS[lowered]

    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return text
    # "nan" / "inf" are labels in a spreadsheet, not numbers.
    return number if math.isfinite(number) else text


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class CSVIngestionService:
    """
    Decodes CSV or JSON payloads with an upper bound on accepted rows.
    """

    def __init__(self, *, max_rows: int) -> None:
        self._max_rows = max(1, max_rows)

    def parse_upload(
        self,
        *,
        stream: BinaryIO,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> ParsedDataset:
        """
        Parse a file upload, choosing JSON for ``.json`` files or JSON MIME types and CSV otherwise.
        """

        name = (filename or "").strip().lower()
        mime = (content_type or "").strip().lower()
        stream.seek(0)
        if name.endswith(".json") or mime.endswith("/json"):
            try:
                payload = json.loads(stream.read().decode("utf-8-sig"))
            except UnicodeDecodeError as exc:
                raise DatasetParseError("JSON upload is not valid UTF-8.") from exc
            except json.JSONDecodeError as exc:
                raise DatasetParseError(f"JSON upload is malformed: {exc.msg}.") from exc
            return self.parse_records(payload)
        return self.parse_csv_stream(stream)

    def parse_csv_stream(self, stream: BinaryIO) -> ParsedDataset:
        text_stream = io.TextIOWrapper(stream, encoding="utf-8-sig", newline="")
        try:
            return self._parse_csv(text_stream)
        except UnicodeDecodeError as exc:
            raise DatasetParseError("CSV upload is not valid UTF-8.") from exc
        finally:
            # Leave the caller's stream open.
            text_stream.detach()

    def parse_csv_text(self, text: str) -> ParsedDataset:
        return self._parse_csv(io.StringIO(text, newline=""))

    def parse_records(self, payload: object) -> ParsedDataset:
        """
        Accept a JSON array of objects, or an object holding one under ``rows``.
        """

        if isinstance(payload, Mapping) and "rows" in payload:
            payload = payload["rows"]
        if not isinstance(payload, list):
            raise DatasetParseError("JSON upload must be a list of objects.")

        columns: dict[str, None] = {}
        rows: list[Row] = []
        for index, record in enumerate(payload):
            if not isinstance(record, Mapping):
                raise DatasetParseError(f"JSON record {index} is not an object.")
            row = {str(key): coerce_cell(value) for key, value in record.items() if _is_scalar(value)}
            for key in row:
                columns.setdefault(key, None)
            rows.append(row)
        return self._finalize(tuple(columns), rows)

    def _parse_csv(self, text_stream: io.TextIOBase) -> ParsedDataset:
        reader = csv.DictReader(text_stream)
        headers = [header.strip() for header in (reader.fieldnames or []) if header and header.strip()]
        if not headers:
            raise DatasetParseError("CSV header row is missing.")

        rows: list[Row] = []
        try:
            for raw_row in reader:
                row = {
                    key.strip(): coerce_cell(value)
                    for key, value in raw_row.items()
                    if key is not None and key.strip()
                }
                if all(value is None for value in row.values()):
                    continue
                rows.append(row)
        except csv.Error as exc:
            raise DatasetParseError(f"CSV upload is malformed: {exc}.") from exc
        return self._finalize(tuple(headers), rows)

    def _finalize(self, columns: tuple[str, ...], rows: list[Row]) -> ParsedDataset:
        dropped = max(0, len(rows) - self._max_rows)
        if dropped:
            logger.warning(
                "Upload exceeds %d rows; dropping %d trailing rows",
                self._max_rows,
                dropped,
            )
            rows = rows[: self._max_rows]
        logger.info("Parsed upload with %d rows and %d columns", len(rows), len(columns))
        return ParsedDataset(columns=columns, rows=tuple(rows), rows_dropped=dropped)


def _is_scalar(value: object) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_csv_ingestion_service() -> CSVIngestionService:
    """
    Build and cache the ingestion service with env-driven settings.
    """
    settings = get_analytics_settings()
    return CSVIngestionService(max_rows=settings.max_upload_rows)
