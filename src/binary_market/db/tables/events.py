"""SQLAlchemy ORM model for the market event journal."""

from sqlalchemy import BigInteger, Index, Integer, JSON, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import DateTime

from binary_market.db.base import Base


class MarketEventRow(Base):
    __tablename__ = "market_events"
    __table_args__ = (
        Index("ix_market_events_market_ts", "market", "ts"),
    )

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True,
    )
    ts: Mapped[DateTime] = mapped_column(DateTime(timezone=True), nullable=False)
    market: Mapped[str] = mapped_column(Text, nullable=False)
    source: Mapped[str] = mapped_column(Text, nullable=False)
    event_type: Mapped[str] = mapped_column(Text, nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
