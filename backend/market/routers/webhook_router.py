"""
Webhook Router - alert ingestion

The response only says whether the alert was recorded (and whether it was
handed to the dispatcher). Order execution happens in the background.
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from market.auth.dependencies import require_api_key
from market.broker_clients.factory import BrokerClients
from market.database import get_db
from market.dependencies import get_broker_clients, get_dispatcher, get_strategies
from market.events import EventDispatcher
from market.schemas.alert import AlertData, AlertReceipt
from market.services.ingestion import ingest_alert
from market.strategies import StrategyTable

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["webhook"], dependencies=[Depends(require_api_key)])


@router.post("/alert", status_code=status.HTTP_201_CREATED, response_model=AlertReceipt)
async def receive_alert(
    alert: AlertData,
    db: AsyncSession = Depends(get_db),
    strategies: StrategyTable = Depends(get_strategies),
    clients: BrokerClients = Depends(get_broker_clients),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
) -> AlertReceipt:
    """Record a webhook alert and schedule its trade."""
    result = await ingest_alert(alert, db, strategies, clients, dispatcher)
    return AlertReceipt(alert_id=result.alert_id, dispatched=result.dispatched, reason=result.reason)
