"""
Strategy-driven trade handler: the dispatcher's handler for trade signals.
"""

import logging
from typing import Optional

from market.events.base import EventHandler
from market.trading_engine.executor import ExecutionResult, TradeExecutor
from market.trading_engine.trade_signal import TradeSignal

logger = logging.getLogger(__name__)


class TradeSignalHandler(EventHandler[TradeSignal]):
    """
    Runs each trade signal through the TradeExecutor.

    MaxRetriesReached and OrderCreationError propagate to the dispatcher,
    which logs them. No
    compensating action (such as cancelling) is taken on failure.
    """

    def __init__(self, executor: Optional[TradeExecutor] = None):
        self.executor = executor or TradeExecutor()

    async def handle(self, payload: TradeSignal) -> None:
        strategy = payload.strategy
        logger.info(
            f"Executing {payload.alert.alert_type.value} signal for {payload.alert.ticker} "
            f"(strategy={strategy.name}, max_retries={strategy.max_retries}, "
            f"retry_delay={strategy.retry_delay}s)"
        )
        result: ExecutionResult = await self.executor.execute(payload)
        broker_status = result.broker_order.status if result.broker_order else None
        logger.info(
            f"Trade signal {payload.order_id} succeeded after {result.attempts} attempt(s) "
            f"(broker status={broker_status})"
        )
