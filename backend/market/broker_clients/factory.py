"""
Broker Client Factory

Creates broker clients from settings and bundles them into the registry the
rest of the app resolves strategies against.

Adding a broker means: a new Broker enum member, a new BrokerClient
subclass, and a branch in create_broker_client().
"""

import logging
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping

from market.broker_clients.base import BrokerClient
from market.config import Settings
from market.exceptions import ConfigurationError
from market.schemas.broker import Broker

logger = logging.getLogger(__name__)


def create_broker_client(broker: Broker, settings: Settings) -> BrokerClient:
    """
    Factory function to create the client for one broker.

    Raises:
        ConfigurationError: If the broker's credentials are missing
    """
    if broker == Broker.ALPACA:
        if not settings.alpaca_api_key_id or not settings.alpaca_api_secret_key:
            raise ConfigurationError(
                "Alpaca requires alpaca_api_key_id and alpaca_api_secret_key"
            )

        from market.broker_clients.alpaca_client import AlpacaClient

        return AlpacaClient(
            base_url=settings.alpaca_api_base_url,
            api_key_id=settings.alpaca_api_key_id,
            api_secret_key=settings.alpaca_api_secret_key,
            timeout=settings.alpaca_timeout,
        )

    raise ConfigurationError(f"Unknown broker: {broker}")


def configured_brokers(settings: Settings) -> List[Broker]:
    """Brokers whose credentials are present in settings."""
    brokers = []
    if settings.alpaca_api_key_id and settings.alpaca_api_secret_key:
        brokers.append(Broker.ALPACA)
    return brokers


class BrokerClients:
    """
    Read-only mapping of broker tag to its shared client.

    Resolution is a pure lookup - it never creates clients or touches the
    network.
    """

    def __init__(self, clients: Mapping[Broker, BrokerClient]):
        self._clients: Mapping[Broker, BrokerClient] = MappingProxyType(dict(clients))

    @classmethod
    def from_settings(cls, settings: Settings, brokers: Iterable[Broker]) -> "BrokerClients":
        """Create one client per broker in `brokers` (duplicates collapse)."""
        clients: Dict[Broker, BrokerClient] = {}
        for broker in brokers:
            if broker not in clients:
                clients[broker] = create_broker_client(broker, settings)
                logger.info(f"Broker client ready: {broker.value}")
        return cls(clients)

    def get(self, broker: Broker) -> BrokerClient:
        try:
            return self._clients[broker]
        except KeyError:
            raise ConfigurationError(f"No client configured for broker {broker.value}")

    def __contains__(self, broker) -> bool:
        return broker in self._clients

    def __iter__(self) -> Iterator[Broker]:
        return iter(self._clients)

    def __len__(self) -> int:
        return len(self._clients)

    async def close(self):
        for broker, client in self._clients.items():
            try:
                await client.close()
            except Exception as e:
                logger.error(f"Failed to close {broker.value} client: {e}")
