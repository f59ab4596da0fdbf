"""
Spreadsheet row parsing for fund reports.

Each data row holds, in fixed column order: fund code, fund name, umbrella type,
then the 1M, 3M, 6M, YTD, 1Y, 3Y and 5Y returns. Malformed rows are skipped
rather than aborting the file.
"""

import io
import logging
import zipfile
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, BinaryIO, Iterable, Sequence

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from app.core.errors import InvalidInput
from app.models.fund import FundRecord, RETURN_FIELDS
from app.utils.normalization import normalize_numeric_cell

logger = logging.getLogger(__name__)

TEXT_COLUMNS = ("fund_code", "fund_name", "umbrella_type")
COLUMN_COUNT = len(TEXT_COLUMNS) + len(RETURN_FIELDS)


class SkipReason(str, Enum):
    """Why a row did not produce a record."""
    MALFORMED_ROW = "malformed_row"
    BLANK_FUND_CODE = "blank_fund_code"


@dataclass(frozen=True)
class RowParseResult:
    """Either a parsed record or the reason the row was skipped."""
    row_index: int
    record: FundRecord | None = None
    skip_reason: SkipReason | None = None
    detail: str | None = None
    
    @property
    def accepted(self) -> bool:
        return self.record is not None


@dataclass
class ParsedSheet:
    """Records accepted from a sheet plus per-row skip results."""
    records: list[FundRecord] = field(default_factory=list)
    skipped: list[RowParseResult] = field(default_factory=list)


def cell_to_text(value: Any) -> str:
    """Render a text column cell as a trimmed string (empty when missing)."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        # Codes typed as numbers come back as floats, e.g. 123.0
        return str(int(value))
    return str(value).strip()


def parse_row(row: Sequence[Any] | None, row_index: int) -> RowParseResult:
    """
    Map one spreadsheet row into a FundRecord.
    
    Missing cells become "" (text columns) or None (returns). Any exception
    while extracting cells skips the row.
    
    Args:
        row: Cell values in column order (may be shorter than 10 columns)
        row_index: Zero-based sheet row index, used for logging
    """
    try:
        cells = list(row) if row is not None else []
        cells = cells[:COLUMN_COUNT] + [None] * (COLUMN_COUNT - len(cells))
        
        values: dict[str, Any] = {
            name: cell_to_text(cells[i]) for i, name in enumerate(TEXT_COLUMNS)
        }
        for offset, name in enumerate(RETURN_FIELDS, start=len(TEXT_COLUMNS)):
            values[name] = normalize_numeric_cell(cells[offset])
        
        record = FundRecord(**values)
    except Exception as e:
        logger.warning(f"Row parse error (Row {row_index}): {e}")
        return RowParseResult(
            row_index=row_index,
            skip_reason=SkipReason.MALFORMED_ROW,
            detail=str(e),
        )
    
    if not record.fund_code.strip():
        return RowParseResult(row_index=row_index, skip_reason=SkipReason.BLANK_FUND_CODE)
    
    return RowParseResult(row_index=row_index, record=record)


def parse_rows(rows: Iterable[Sequence[Any] | None], start_index: int = 0) -> ParsedSheet:
    """Parse data rows, collecting accepted records and skip results."""
    parsed = ParsedSheet()
    
    for row_index, row in enumerate(rows, start=start_index):
        result = parse_row(row, row_index)
        if result.accepted:
            parsed.records.append(result.record)
        else:
            parsed.skipped.append(result)
    
    blank = sum(1 for r in parsed.skipped if r.skip_reason == SkipReason.BLANK_FUND_CODE)
    logger.info(
        f"Parsed {len(parsed.records)} valid rows "
        f"({len(parsed.skipped)} skipped, {blank} with blank fund code)"
    )
    return parsed


def read_fund_sheet(source: bytes | BinaryIO, data_start_row: int = 2) -> ParsedSheet:
    """
    Read the first worksheet of an .xlsx report and parse its data rows.
    
    Args:
        source: Workbook bytes or a readable binary stream
        data_start_row: Zero-based index of the first data row
        
    Raises:
        InvalidInput: If the source is not a readable workbook
    """
    stream = io.BytesIO(source) if isinstance(source, (bytes, bytearray)) else source
    
    try:
        workbook = load_workbook(stream, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as e:
        raise InvalidInput(f"Failed to read the file: {e}") from e
    
    try:
        sheet = workbook.worksheets[0]
        rows = sheet.iter_rows(min_row=data_start_row + 1, values_only=True)
        return parse_rows(rows, start_index=data_start_row)
    finally:
        workbook.close()
