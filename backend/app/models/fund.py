"""Pydantic schemas for fund records, search requests and ingestion results."""

from decimal import Decimal, ROUND_HALF_UP
from pydantic import BaseModel, Field, field_validator


RETURN_SCALE = 4
RETURN_QUANTUM = Decimal(1).scaleb(-RETURN_SCALE)  # Decimal("0.0001")

# Column order of the return metrics in the spreadsheet (columns 3-9)
RETURN_FIELDS = (
    "return_1_month",
    "return_3_month",
    "return_6_month",
    "return_ytd",
    "return_1_year",
    "return_3_year",
    "return_5_year",
)


def scale_return(value: Decimal | None) -> Decimal | None:
    """Scale a return value to exactly four fractional digits, rounding half-up."""
    if value is None:
        return None
    return value.quantize(RETURN_QUANTUM, rounding=ROUND_HALF_UP)


class FundRecord(BaseModel):
    """Canonical fund entity, keyed by fund_code in both stores."""
    
    fund_code: str = Field(..., description="Fund code (natural identifier)")
    fund_name: str = Field("", description="Fund name")
    umbrella_type: str = Field("", description="Umbrella fund type (category label)")
    return_1_month: Decimal | None = Field(None, description="1 month return (%)")
    return_3_month: Decimal | None = Field(None, description="3 month return (%)")
    return_6_month: Decimal | None = Field(None, description="6 month return (%)")
    return_ytd: Decimal | None = Field(None, description="Year-to-date return (%)")
    return_1_year: Decimal | None = Field(None, description="1 year return (%)")
    return_3_year: Decimal | None = Field(None, description="3 year return (%)")
    return_5_year: Decimal | None = Field(None, description="5 year return (%)")
    
    @field_validator(*RETURN_FIELDS, mode="after")
    @classmethod
    def scale_returns(cls, value: Decimal | None) -> Decimal | None:
        return scale_return(value)
    
    @field_validator("fund_name", "umbrella_type", mode="before")
    @classmethod
    def none_to_empty(cls, value):
        return "" if value is None else value
    
    class Config:
        from_attributes = True


class FundDocument(FundRecord):
    """
    Search-index projection of a FundRecord.
    
    Same fields as the record; the index maps fund_code/umbrella_type as
    keywords, fund_name as analyzed text and the returns as scaled floats.
    """
    
    @classmethod
    def from_record(cls, record: FundRecord) -> "FundDocument":
        """Project a stored record into its search-document shape."""
        return cls(**record.model_dump())
    
    def to_index_source(self) -> dict:
        """Render the document body sent to the search engine."""
        source = self.model_dump()
        for field in RETURN_FIELDS:
            if source[field] is not None:
                source[field] = float(source[field])
        return source


class Pagination(BaseModel):
    """Page selection; page_number is 1-based."""
    
    page_number: int = Field(1, description="1-based page number")
    page_size: int = Field(10, description="Number of results per page")


class SearchFilter(BaseModel):
    """Optional filter criteria; blank values are ignored."""
    
    fund_code: str | None = Field(None, description="Exact fund code")
    fund_name: str | None = Field(None, description="Text match on fund name")
    umbrella_type: str | None = Field(None, description="Contains match on umbrella type")
    min_return_1_year: Decimal | None = Field(None, description="Inclusive lower bound for 1 year return")
    max_return_1_year: Decimal | None = Field(None, description="Inclusive upper bound for 1 year return")


class Sorting(BaseModel):
    """Sort property and direction (ASC/DESC, case-insensitive)."""
    
    property: str | None = Field(None, description="Document field to sort by")
    direction: str | None = Field("ASC", description="ASC or DESC")


class SearchRequest(BaseModel):
    """Structured fund search request."""
    
    pagination: Pagination | None = None
    filter: SearchFilter | None = None
    sorting: Sorting | None = None
    
    class Config:
        json_schema_extra = {
            "example": {
                "pagination": {"page_number": 1, "page_size": 10},
                "filter": {
                    "fund_name": "DENIZ",
                    "umbrella_type": "Serbest",
                    "min_return_1_year": 50.0,
                },
                "sorting": {"property": "return_1_year", "direction": "DESC"},
            }
        }


class IngestionResult(BaseModel):
    """Outcome of one ingestion call."""
    
    accepted: int = Field(0, description="Records written to the primary store")
    skipped: int = Field(0, description="Rows dropped during parsing")
    indexed: int = Field(0, description="Records written to the search index")
    failed_index_batches: int = Field(0, description="Batches whose index write failed")
    batches: int = Field(0, description="Batches processed")


class ResyncResult(BaseModel):
    """Outcome of a full re-projection of the primary store into the index."""
    
    indexed: int = Field(0, description="Documents written to the search index")
    batches: int = Field(0, description="Batches processed")
