"""
Alert Service

Durable, append-only log of received webhook alerts.
"""

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from uuid6 import uuid7

from market.exceptions import AlertRecordingError
from market.models import Alert
from market.schemas.alert import AlertData

logger = logging.getLogger(__name__)


async def record_alert(db: AsyncSession, alert: AlertData) -> Alert:
    """
    Insert one alert row and commit.

    Raises:
        AlertRecordingError: the insert or commit failed (transaction rolled back)
    """
    now = datetime.utcnow()
    row = Alert(
        alert_id=str(uuid7()),
        ticker=alert.ticker,
        timeframe=alert.timeframe,
        exchange=alert.exchange,
        alert_type=alert.alert_type.value,
        strategy_id=str(alert.strategy_id),
        bar_time=alert.bar.time,
        bar_open=alert.bar.open,
        bar_high=alert.bar.high,
        bar_low=alert.bar.low,
        bar_close=alert.bar.close,
        bar_volume=alert.bar.volume,
        alert_fire_time=alert.fire_time,
        created_at=now,
        modified_at=now,
    )

    try:
        db.add(row)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to record {alert.ticker} alert for strategy {alert.strategy_id}: {e}")
        raise AlertRecordingError(f"Failed to record alert: {e.__class__.__name__}") from e

    logger.info(f"Recorded alert {row.alert_id} ({alert.ticker} {alert.alert_type.value}, strategy={alert.strategy_id})")
    return row
