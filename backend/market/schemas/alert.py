"""Webhook alert schemas"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AlertType(str, Enum):
    ENTRY = "entry"
    EXIT = "exit"
    SCALE = "scale"


class OrderSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


class OrderType(str, Enum):
    MARKET = "market"
    LIMIT = "limit"
    STOP = "stop"
    STOP_LIMIT = "stop_limit"
    TRAILING_STOP = "trailing_stop"


class Bar(BaseModel):
    """OHLCV bar the alert fired on."""

    model_config = ConfigDict(frozen=True)

    time: datetime
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: int = Field(ge=0)

    @model_validator(mode="after")
    def check_range(self) -> "Bar":
        if self.low > self.high:
            raise ValueError("bar low must not exceed bar high")
        return self


class AlertData(BaseModel):
    """
    Alert as posted by the signal source.

    Immutable once received. `side`, `quantity` and `order_type` are
    optional order hints; when absent the side follows alert_type and the
    quantity comes from the strategy.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    ticker: str = Field(min_length=1)
    timeframe: str
    exchange: str
    alert_type: AlertType
    bar: Bar
    fire_time: datetime = Field(alias="time")
    strategy_id: UUID

    side: Optional[OrderSide] = None
    quantity: Optional[Decimal] = Field(default=None, gt=0)
    order_type: OrderType = OrderType.MARKET

    @field_validator("ticker")
    @classmethod
    def normalize_ticker(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("alert_type", "side", "order_type", mode="before")
    @classmethod
    def lowercase_enums(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("order_type")
    @classmethod
    def check_order_type(cls, v: OrderType) -> OrderType:
        if v not in (OrderType.MARKET, OrderType.LIMIT):
            raise ValueError("alerts may only request market or limit orders")
        return v

    @property
    def order_side(self) -> OrderSide:
        if self.side is not None:
            return self.side
        return OrderSide.SELL if self.alert_type == AlertType.EXIT else OrderSide.BUY


class AlertReceipt(BaseModel):
    """Response body for an accepted webhook alert."""

    alert_id: str
    dispatched: bool
    reason: Optional[str] = None
