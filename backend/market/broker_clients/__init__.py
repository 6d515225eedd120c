"""
Broker Client Abstraction Layer

This package provides a unified interface for the brokers strategies trade
on. All broker clients must implement the BrokerClient abstract base class.

Supported Brokers:
- Alpaca (via AlpacaClient)

Usage:
    from market.broker_clients.factory import BrokerClients

    clients = BrokerClients.from_settings(settings, [Broker.ALPACA])
    client = clients.get(strategy.broker)
"""

from market.broker_clients.base import BrokerClient

__all__ = ["BrokerClient"]
