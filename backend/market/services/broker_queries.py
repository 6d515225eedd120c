"""
Broker query service

Read-only pass-through to a broker client. No retry and no transformation:
results come back as the client returns them and BrokerErrors propagate to
the caller.
"""

from typing import List
from uuid import UUID

from market.broker_clients.factory import BrokerClients
from market.schemas.broker import (
    Account,
    Asset,
    AssetClass,
    Broker,
    Order,
    OrdersQuery,
    Position,
)


async def get_account(clients: BrokerClients, broker: Broker) -> Account:
    return await clients.get(broker).get_account()


async def get_asset(clients: BrokerClients, broker: Broker, symbol: str) -> Asset:
    return await clients.get(broker).get_asset(symbol.upper())


async def get_assets(clients: BrokerClients, broker: Broker, asset_class: AssetClass) -> List[Asset]:
    return await clients.get(broker).get_assets(asset_class)


async def get_order(clients: BrokerClients, broker: Broker, order_id: UUID) -> Order:
    return await clients.get(broker).get_order(order_id)


async def get_orders(clients: BrokerClients, broker: Broker, query: OrdersQuery) -> List[Order]:
    return await clients.get(broker).get_orders(query)


async def get_positions(clients: BrokerClients, broker: Broker) -> List[Position]:
    return await clients.get(broker).get_positions()
