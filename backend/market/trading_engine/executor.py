"""
Trade executor: the retry state machine for one order.

    PENDING -> EXECUTING -> SUCCEEDED
                         -> RETRY_SCHEDULED -> EXECUTING ...
                         -> FAILED

The Order is created once and the same Order is resubmitted on every
attempt. `max_retries` counts attempts after the first, so a strategy with
max_retries=n makes at most n+1 attempts. All loop state lives in locals;
nothing is locked across the retry sleep.
"""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from market.exceptions import BrokerError, MaxRetriesReached, OrderCreationError
from market.schemas.broker import Order
from market.strategies import Strategy
from market.trading_engine.trade_signal import TradeSignal

logger = logging.getLogger(__name__)


class ExecutionState(str, Enum):
    PENDING = "pending"
    EXECUTING = "executing"
    RETRY_SCHEDULED = "retry_scheduled"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class RetryPolicy:
    """
    How often and how long to wait between attempts.

    backoff=1.0 (the default) is a fixed delay; anything larger multiplies
    the delay on each further retry, capped at max_delay.
    """
    max_retries: int
    delay: float
    backoff: float = 1.0
    max_delay: Optional[float] = None

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")
        if not math.isfinite(self.delay) or self.delay < 0:
            raise ValueError("delay must be a finite, non-negative number of seconds")
        if self.backoff < 1.0:
            raise ValueError("backoff must be >= 1.0")

    @classmethod
    def for_strategy(cls, strategy: Strategy, backoff: float = 1.0, max_delay: Optional[float] = None) -> "RetryPolicy":
        return cls(
            max_retries=strategy.max_retries,
            delay=strategy.retry_delay,
            backoff=backoff,
            max_delay=max_delay,
        )

    def delay_for(self, retry_number: int) -> float:
        """Seconds to wait before retry number `retry_number` (1-based)."""
        delay = self.delay * (self.backoff ** (retry_number - 1))
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay


@dataclass
class ExecutionResult:
    order: Order
    state: ExecutionState
    attempts: int
    broker_order: Optional[Order] = None
    history: List[ExecutionState] = field(default_factory=list)


class TradeExecutor:
    """Runs a trade signal's order through its broker client with bounded retry."""

    def __init__(
        self,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        backoff: float = 1.0,
        max_delay: Optional[float] = None,
    ):
        self._sleep = sleep
        self._backoff = backoff
        self._max_delay = max_delay

    def policy_for(self, signal: TradeSignal) -> RetryPolicy:
        return RetryPolicy.for_strategy(signal.strategy, backoff=self._backoff, max_delay=self._max_delay)

    async def execute(self, signal: TradeSignal, policy: Optional[RetryPolicy] = None) -> ExecutionResult:
        """
        Execute the signal's order until it succeeds or retries run out.

        Returns:
            ExecutionResult in state SUCCEEDED

        Raises:
            OrderCreationError: the client failed to build the order (no attempt made)
            MaxRetriesReached: every allowed attempt failed with a BrokerError
        """
        policy = policy or self.policy_for(signal)
        client = signal.client
        history = [ExecutionState.PENDING]

        try:
            order = await client.create_order(signal)
        except BrokerError as e:
            history.append(ExecutionState.FAILED)
            logger.error(f"Order {signal.order_id} could not be created: {e}")
            raise OrderCreationError(signal.order_id, e) from e
        failures = 0

        while True:
            history.append(ExecutionState.EXECUTING)
            attempt = failures + 1
            logger.debug(f"Order {order.id}: attempt {attempt}/{policy.max_retries + 1}")

            try:
                broker_order = await client.execute_order(order)
            except BrokerError as e:
                failures += 1

                if failures > policy.max_retries:
                    history.append(ExecutionState.FAILED)
                    logger.error(
                        f"Order {order.id} ({order.side.value} {order.quantity} {order.symbol}) "
                        f"failed after {failures} attempt(s), giving up: {e}"
                    )
                    raise MaxRetriesReached(order, failures, e) from e

                delay = policy.delay_for(failures)
                history.append(ExecutionState.RETRY_SCHEDULED)
                logger.warning(
                    f"Order {order.id} attempt {attempt} failed ({e.kind.value}: {e.message}) - "
                    f"retry {failures}/{policy.max_retries} in {delay}s"
                )
                await self._sleep(delay)
                continue

            history.append(ExecutionState.SUCCEEDED)
            logger.info(
                f"Order {order.id} ({order.side.value} {order.quantity} {order.symbol}) "
                f"executed on attempt {attempt}"
            )
            return ExecutionResult(
                order=order,
                state=ExecutionState.SUCCEEDED,
                attempts=attempt,
                broker_order=broker_order,
                history=history,
            )
