"""Import all table modules so Base.metadata knows about them."""

from binary_market.db.tables.events import MarketEventRow

__all__ = ["MarketEventRow"]
