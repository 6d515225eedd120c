"""Strategy configuration record"""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from market.schemas.broker import Broker


class Strategy(BaseModel):
    """
    A configured strategy: which broker its alerts trade on and how hard to
    retry a failed order.

    Loaded once at startup and never mutated afterwards.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    enabled: bool = True
    broker: Broker = Broker.ALPACA
    max_retries: int = Field(ge=0, le=255)  # retries after the first attempt
    retry_delay: float = Field(ge=0, allow_inf_nan=False)  # seconds
    order_quantity: Decimal = Field(default=Decimal("1"), gt=0)
