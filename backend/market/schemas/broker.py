"""Broker-facing Pydantic schemas (orders, account, assets, positions)"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .alert import OrderSide, OrderType


class Broker(str, Enum):
    ALPACA = "alpaca"


class AssetClass(str, Enum):
    US_EQUITY = "us_equity"
    CRYPTO = "crypto"
    US_OPTION = "us_option"


class TimeInForce(str, Enum):
    DAY = "day"
    GTC = "gtc"
    IOC = "ioc"
    FOK = "fok"
    OPG = "opg"
    CLS = "cls"


class OrderQueryStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    ALL = "all"


class Order(BaseModel):
    """
    One trade intent.

    `id` is generated once per logical trade and sent to the broker as the
    client order id, so every retry submits the same identity. The broker_*
    and fill fields are only populated on orders read back from the broker.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID
    symbol: str
    side: OrderSide
    order_type: OrderType = OrderType.MARKET
    quantity: Decimal
    limit_price: Optional[Decimal] = None
    time_in_force: TimeInForce = TimeInForce.DAY
    strategy_id: Optional[UUID] = None

    broker_order_id: Optional[str] = None
    status: Optional[str] = None
    filled_qty: Optional[Decimal] = None
    filled_avg_price: Optional[Decimal] = None
    submitted_at: Optional[datetime] = None

    def __str__(self) -> str:
        return f"{{ id: {self.id} }}"


class OrdersQuery(BaseModel):
    status: OrderQueryStatus = OrderQueryStatus.OPEN
    limit: int = Field(default=50, ge=1, le=500)
    symbols: List[str] = Field(default_factory=list)
    direction: str = "desc"


class Account(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    account_number: Optional[str] = None
    status: str
    currency: str = "USD"
    cash: Decimal
    buying_power: Decimal
    equity: Decimal
    portfolio_value: Optional[Decimal] = None
    pattern_day_trader: bool = False
    trading_blocked: bool = False


class Asset(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    symbol: str
    name: Optional[str] = None
    asset_class: AssetClass
    exchange: Optional[str] = None
    status: str
    tradable: bool
    fractionable: bool = False
    shortable: bool = False


class Position(BaseModel):
    model_config = ConfigDict(frozen=True)

    asset_id: Optional[str] = None
    symbol: str
    asset_class: Optional[AssetClass] = None
    side: str
    qty: Decimal
    avg_entry_price: Decimal
    market_value: Optional[Decimal] = None
    current_price: Optional[Decimal] = None
    unrealized_pl: Optional[Decimal] = None
