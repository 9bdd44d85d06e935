"""Configuration schema: Pydantic models for config.yaml."""

from __future__ import annotations

from datetime import datetime, timedelta

from pydantic import BaseModel, Field

from binary_market.decimal_math import to_unit
from binary_market.models.market import Durations, FeeSchedule, Times


class DatabaseConfig(BaseModel):
    url: str = "sqlite:///binary_market.db"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "json"


class MarketConfig(BaseModel):
    """Defaults applied to newly created markets."""

    pool_fee: float = 0.008
    creator_fee: float = 0.002
    refund_fee: float = 0.02
    capital_requirement: float = 100
    bidding_duration_s: int = 86400
    time_to_maturity_s: int = 7 * 86400

    def fee_schedule(self) -> FeeSchedule:
        return FeeSchedule(
            pool_fee=to_unit(self.pool_fee),
            creator_fee=to_unit(self.creator_fee),
            refund_fee=to_unit(self.refund_fee),
        )

    def times_from(self, start: datetime, expiry_duration: timedelta) -> Times:
        """Lifecycle boundaries for a market opened at *start*."""
        maturity = start + timedelta(seconds=self.time_to_maturity_s)
        return Times(
            bidding_end=start + timedelta(seconds=self.bidding_duration_s),
            maturity=maturity,
            destruction=maturity + expiry_duration,
        )


class ManagerConfig(BaseModel):
    max_oracle_price_age_s: int = 120 * 60
    expiry_duration_s: int = 26 * 7 * 86400
    max_time_to_maturity_s: int = 365 * 86400

    def durations(self) -> Durations:
        return Durations(
            max_oracle_price_age=timedelta(seconds=self.max_oracle_price_age_s),
            expiry_duration=timedelta(seconds=self.expiry_duration_s),
            max_time_to_maturity=timedelta(seconds=self.max_time_to_maturity_s),
        )


class ApiConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000


class AppConfig(BaseModel):
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    market: MarketConfig = Field(default_factory=MarketConfig)
    manager: ManagerConfig = Field(default_factory=ManagerConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
