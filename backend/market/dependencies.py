"""
FastAPI dependencies for the components built in the app lifespan.

Everything lives on app.state; nothing here is a process-wide global.
"""

from fastapi import Request

from market.broker_clients.factory import BrokerClients
from market.events import EventDispatcher
from market.strategies import StrategyTable


def get_strategies(request: Request) -> StrategyTable:
    return request.app.state.strategies


def get_broker_clients(request: Request) -> BrokerClients:
    return request.app.state.broker_clients


def get_dispatcher(request: Request) -> EventDispatcher:
    return request.app.state.dispatcher
