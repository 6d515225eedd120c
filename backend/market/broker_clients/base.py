"""
BrokerClient Abstract Base Class

This module defines the interface that every broker integration must implement.
The trade executor, the webhook pipeline and the broker query endpoints only
ever talk to this interface; the concrete client is picked once, from the
strategy's broker tag, when a trade signal is built.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List
from uuid import UUID

from market.schemas.alert import OrderType
from market.schemas.broker import (
    Account,
    Asset,
    AssetClass,
    Broker,
    Order,
    OrdersQuery,
    Position,
    TimeInForce,
)

if TYPE_CHECKING:
    from market.trading_engine.trade_signal import TradeSignal


def order_from_signal(signal: "TradeSignal", time_in_force: TimeInForce = TimeInForce.DAY) -> Order:
    """
    Build the broker-agnostic Order for a trade signal.

    Deterministic: the order id is the signal's order id, the side and
    quantity come from the alert (falling back to the strategy), and limit
    orders are priced at the bar close.
    """
    alert = signal.alert
    quantity = alert.quantity if alert.quantity is not None else signal.strategy.order_quantity
    limit_price = alert.bar.close if alert.order_type == OrderType.LIMIT else None

    return Order(
        id=signal.order_id,
        symbol=alert.ticker,
        side=alert.order_side,
        order_type=alert.order_type,
        quantity=quantity,
        limit_price=limit_price,
        time_in_force=time_in_force,
        strategy_id=signal.strategy.id,
    )


class BrokerClient(ABC):
    """
    Abstract base class for all broker clients.

    Design Philosophy:
    - Every method is async; network-bound calls suspend, never block
    - Failures raise market.exceptions.BrokerError with a kind
      (connection, rejected, not_found, ...), never raw HTTP errors
    - Instances are shared between concurrent dispatch tasks and must be
      safe for concurrent use (pooled HTTP client underneath)
    - execute_order is at-least-once from the caller's point of view;
      resubmitting the same Order must not double-fill where the broker
      supports client order ids
    """

    # ========================================
    # ORDER METHODS
    # ========================================

    @abstractmethod
    async def create_order(self, signal: "TradeSignal") -> Order:
        """
        Build the Order for a trade signal.

        Pure construction with no network effect. Calling it twice with the
        same signal yields an equal Order.
        """
        pass

    @abstractmethod
    async def execute_order(self, order: Order) -> Order:
        """
        Submit an order to the broker.

        Returns:
            The order as accepted by the broker (broker id, status filled in)

        Raises:
            BrokerError: submission failed
        """
        pass

    @abstractmethod
    async def cancel_order(self, order: Order) -> None:
        """Cancel a previously submitted order."""
        pass

    @abstractmethod
    async def get_order(self, order_id: UUID) -> Order:
        """Get one order by id."""
        pass

    @abstractmethod
    async def get_orders(self, query: OrdersQuery) -> List[Order]:
        """List orders matching the query."""
        pass

    # ========================================
    # ACCOUNT & ASSET METHODS
    # ========================================

    @abstractmethod
    async def get_account(self) -> Account:
        """Get the trading account snapshot."""
        pass

    @abstractmethod
    async def get_asset(self, symbol: str) -> Asset:
        """Get one tradable asset by symbol."""
        pass

    @abstractmethod
    async def get_assets(self, asset_class: AssetClass) -> List[Asset]:
        """List active assets of one class."""
        pass

    @abstractmethod
    async def get_positions(self) -> List[Position]:
        """List open positions."""
        pass

    # ========================================
    # BROKER METADATA
    # ========================================

    @abstractmethod
    def get_broker(self) -> Broker:
        """Return the broker tag this client serves."""
        pass

    async def close(self) -> None:
        """Release network resources. Default: nothing to release."""
        return None
