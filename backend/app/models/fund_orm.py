"""SQLAlchemy ORM model for the funds table (primary store)."""

from decimal import Decimal
from sqlalchemy import String, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class Fund(Base):
    """Fund record as persisted in the primary store.
    
    fund_code is the natural key shared with the search index, so re-ingesting
    a code overwrites the stored row.
    """
    
    __tablename__ = "funds"
    
    fund_code: Mapped[str] = mapped_column(String(50), primary_key=True)
    fund_name: Mapped[str | None] = mapped_column(String(500))
    umbrella_type: Mapped[str | None] = mapped_column(String(255))
    
    # Returns are percentages scaled to 4 fractional digits; NULL = not reported
    return_1_month: Mapped[Decimal | None] = mapped_column(Numeric(20, 4))
    return_3_month: Mapped[Decimal | None] = mapped_column(Numeric(20, 4))
    return_6_month: Mapped[Decimal | None] = mapped_column(Numeric(20, 4))
    return_ytd: Mapped[Decimal | None] = mapped_column(Numeric(20, 4))
    return_1_year: Mapped[Decimal | None] = mapped_column(Numeric(20, 4))
    return_3_year: Mapped[Decimal | None] = mapped_column(Numeric(20, 4))
    return_5_year: Mapped[Decimal | None] = mapped_column(Numeric(20, 4))
    
    def __repr__(self) -> str:
        return f"<Fund {self.fund_code}: {self.fund_name}>"
