"""
Trade signal dataclass and builder: an alert bound to the enabled strategy
and broker client that will execute it.
"""

import logging
from dataclasses import dataclass, field
from uuid import UUID, uuid4

from market.broker_clients.base import BrokerClient
from market.broker_clients.factory import BrokerClients
from market.exceptions import StrategyDisabled, UnknownStrategy
from market.schemas.alert import AlertData
from market.strategies import Strategy, StrategyTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TradeSignal:
    """A validated alert, ready for dispatch."""
    alert: AlertData
    strategy: Strategy
    client: BrokerClient
    order_id: UUID = field(default_factory=uuid4)  # one per logical trade


def build_trade_signal(
    alert: AlertData,
    strategies: StrategyTable,
    clients: BrokerClients,
) -> TradeSignal:
    """
    Resolve an alert's strategy and broker client.

    Raises:
        UnknownStrategy: no strategy has the alert's strategy_id
        StrategyDisabled: the strategy exists but is disabled
    """
    strategy = strategies.find(alert.strategy_id)
    if strategy is None:
        raise UnknownStrategy(alert.strategy_id)
    if not strategy.enabled:
        raise StrategyDisabled(alert.strategy_id)

    client = clients.get(strategy.broker)
    signal = TradeSignal(alert=alert, strategy=strategy, client=client)
    logger.debug(
        f"Built trade signal {signal.order_id} for {alert.ticker} "
        f"(strategy={strategy.name}, broker={strategy.broker.value})"
    )
    return signal
