"""Shared fixtures: in-memory fund report workbooks."""

import io

import pytest
from openpyxl import Workbook


def build_workbook(rows: list[list], header_rows: int = 2) -> bytes:
    """Build an .xlsx report with ``header_rows`` metadata rows before the data."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Funds"
    
    for i in range(header_rows):
        sheet.append([f"Header {i}"])
    for row in rows:
        sheet.append(row)
    
    out = io.BytesIO()
    workbook.save(out)
    return out.getvalue()


DLZ_ROW = [
    "DLZ",
    "DENİZ PORTFÖY ALİZE HİSSE SENEDİ SERBEST (TL) FON",
    "Serbest Şemsiye Fonu",
    86.4372, -34.0917, -6.8773, 156.7887, 157.8626,
]

# returnYtd onwards left blank
UHS_ROW = [
    "UHS",
    "ATLAS PORTFÖY ÜÇÜNCÜ HİSSE SENEDİ SERBEST FON",
    "Serbest Şemsiye Fonu",
    75.7093, 101.4648, 324.0403,
]


@pytest.fixture
def valid_workbook() -> bytes:
    return build_workbook([DLZ_ROW, UHS_ROW])


@pytest.fixture
def workbook_with_blank_code() -> bytes:
    return build_workbook([
        DLZ_ROW,
        ["", "NO CODE FUND", "Hisse Senedi Şemsiye Fonu", 1.0],
        UHS_ROW,
    ])


@pytest.fixture
def make_workbook():
    """Factory fixture for custom report workbooks."""
    return build_workbook
