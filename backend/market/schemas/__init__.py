"""Centralized Pydantic schemas for API requests/responses"""

from .alert import AlertData, AlertReceipt, AlertType, Bar, OrderSide, OrderType
from .broker import (
    Account,
    Asset,
    AssetClass,
    Broker,
    Order,
    OrderQueryStatus,
    OrdersQuery,
    Position,
    TimeInForce,
)

__all__ = [
    # Alert schemas
    "AlertData",
    "AlertReceipt",
    "AlertType",
    "Bar",
    "OrderSide",
    "OrderType",
    # Broker schemas
    "Account",
    "Asset",
    "AssetClass",
    "Broker",
    "Order",
    "OrderQueryStatus",
    "OrdersQuery",
    "Position",
    "TimeInForce",
]
