"""
Broker API routes

Read-only views of broker state:
- Account snapshot
- Assets (one symbol, or all of a class)
- Orders (list or one)
- Open positions

Broker errors propagate and are turned into HTTP responses by the global
AppError handler in main.py.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from market.auth.dependencies import require_api_key
from market.broker_clients.factory import BrokerClients
from market.dependencies import get_broker_clients
from market.schemas.broker import (
    Account,
    Asset,
    AssetClass,
    Broker,
    Order,
    OrderQueryStatus,
    OrdersQuery,
    Position,
)
from market.services import broker_queries

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/broker", tags=["broker"], dependencies=[Depends(require_api_key)])


@router.get("/account", response_model=Account)
async def get_account(
    broker: Broker = Query(Broker.ALPACA),
    clients: BrokerClients = Depends(get_broker_clients),
):
    return await broker_queries.get_account(clients, broker)


@router.get("/assets", response_model=List[Asset])
async def get_assets(
    broker: Broker = Query(Broker.ALPACA),
    asset_class: AssetClass = Query(AssetClass.US_EQUITY),
    clients: BrokerClients = Depends(get_broker_clients),
):
    return await broker_queries.get_assets(clients, broker, asset_class)


@router.get("/assets/{symbol}", response_model=Asset)
async def get_asset(
    symbol: str,
    broker: Broker = Query(Broker.ALPACA),
    clients: BrokerClients = Depends(get_broker_clients),
):
    return await broker_queries.get_asset(clients, broker, symbol)


@router.get("/orders", response_model=List[Order])
async def get_orders(
    broker: Broker = Query(Broker.ALPACA),
    status: OrderQueryStatus = Query(OrderQueryStatus.OPEN),
    limit: int = Query(50, ge=1, le=500),
    symbols: Optional[str] = Query(None, description="Comma-separated symbols"),
    clients: BrokerClients = Depends(get_broker_clients),
):
    query = OrdersQuery(
        status=status,
        limit=limit,
        symbols=[s.strip() for s in symbols.split(",") if s.strip()] if symbols else [],
    )
    return await broker_queries.get_orders(clients, broker, query)


@router.get("/orders/{order_id}", response_model=Order)
async def get_order(
    order_id: UUID,
    broker: Broker = Query(Broker.ALPACA),
    clients: BrokerClients = Depends(get_broker_clients),
):
    return await broker_queries.get_order(clients, broker, order_id)


@router.get("/positions", response_model=List[Position])
async def get_positions(
    broker: Broker = Query(Broker.ALPACA),
    clients: BrokerClients = Depends(get_broker_clients),
):
    return await broker_queries.get_positions(clients, broker)
