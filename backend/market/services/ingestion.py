"""
Alert ingestion

Records an incoming alert, then hands its trade signal to the dispatcher.
Returns as soon as the event is queued - execution results only ever show up
in the logs, never in the response to the alert source.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from market.broker_clients.factory import BrokerClients
from market.events import Event, EventDispatcher, EventKind
from market.exceptions import DispatchQueueFull, TradeSignalError
from market.schemas.alert import AlertData
from market.services.alert_service import record_alert
from market.strategies import StrategyTable
from market.trading_engine.trade_signal import build_trade_signal

logger = logging.getLogger(__name__)


@dataclass
class IngestionResult:
    alert_id: str
    dispatched: bool
    reason: Optional[str] = None


async def ingest_alert(
    alert: AlertData,
    db: AsyncSession,
    strategies: StrategyTable,
    clients: BrokerClients,
    dispatcher: EventDispatcher,
) -> IngestionResult:
    """
    Record the alert, then schedule its execution.

    The alert is recorded even when its strategy is unknown or disabled;
    in that case nothing is dispatched and the reason is returned.

    Raises:
        AlertRecordingError: the alert couldn't be recorded (nothing dispatched)
        DispatchQueueFull: the dispatcher rejected the event (alert already recorded)
    """
    row = await record_alert(db, alert)

    try:
        signal = build_trade_signal(alert, strategies, clients)
    except TradeSignalError as e:
        logger.warning(f"Alert {row.alert_id} not dispatched: {e.message}")
        return IngestionResult(alert_id=row.alert_id, dispatched=False, reason=e.message)

    try:
        queued = dispatcher.submit(Event(kind=EventKind.TRADE_SIGNAL, payload=signal))
    except DispatchQueueFull:
        logger.info(f"Alert {row.alert_id} recorded but rejected by the full dispatch queue")
        raise
    if not queued:
        logger.info(f"Alert {row.alert_id} recorded but dropped by the full dispatch queue")
        return IngestionResult(alert_id=row.alert_id, dispatched=False, reason="Dispatch queue full - alert dropped")

    logger.info(f"Alert {row.alert_id} dispatched as order {signal.order_id}")
    return IngestionResult(alert_id=row.alert_id, dispatched=True)
