"""
Tests for backend/market/broker_clients/factory.py
"""

from unittest.mock import AsyncMock

import pytest

from market.broker_clients.alpaca_client import AlpacaClient
from market.broker_clients.factory import BrokerClients, configured_brokers, create_broker_client
from market.config import Settings
from market.exceptions import ConfigurationError
from market.schemas.broker import Broker


def _settings(**overrides):
    fields = dict(
        alpaca_api_key_id="key-id",
        alpaca_api_secret_key="secret",
        alpaca_api_base_url="https://paper-api.alpaca.markets",
    )
    fields.update(overrides)
    return Settings(_env_file=None, **fields)


class TestCreateBrokerClient:
    """Tests for create_broker_client()"""

    @pytest.mark.asyncio
    async def test_creates_alpaca_client(self):
        """Happy path: Alpaca settings produce an AlpacaClient."""
        client = create_broker_client(Broker.ALPACA, _settings())
        assert isinstance(client, AlpacaClient)
        assert client.get_broker() == Broker.ALPACA
        await client.close()

    @pytest.mark.parametrize("missing", ["alpaca_api_key_id", "alpaca_api_secret_key"])
    def test_missing_credentials(self, missing):
        """Failure: missing credentials is a startup error."""
        with pytest.raises(ConfigurationError, match="Alpaca requires"):
            create_broker_client(Broker.ALPACA, _settings(**{missing: ""}))


class TestBrokerClients:
    """Tests for the BrokerClients registry."""

    def test_get_configured(self, stub_client):
        client = stub_client()
        clients = BrokerClients({Broker.ALPACA: client})

        assert clients.get(Broker.ALPACA) is client
        assert Broker.ALPACA in clients
        assert list(clients) == [Broker.ALPACA]
        assert len(clients) == 1

    def test_get_unconfigured_raises(self):
        """Failure: a strategy naming an unconfigured broker can't resolve."""
        with pytest.raises(ConfigurationError, match="No client configured"):
            BrokerClients({}).get(Broker.ALPACA)

    def test_read_only(self, stub_client):
        clients = BrokerClients({})
        with pytest.raises(TypeError):
            clients._clients[Broker.ALPACA] = stub_client()

    @pytest.mark.asyncio
    async def test_from_settings_collapses_duplicates(self):
        """Edge case: many strategies on one broker share one client."""
        clients = BrokerClients.from_settings(_settings(), [Broker.ALPACA, Broker.ALPACA])
        assert len(clients) == 1
        await clients.close()

    def test_from_settings_no_brokers(self):
        """Edge case: no enabled strategies means no clients and no credentials needed."""
        clients = BrokerClients.from_settings(_settings(alpaca_api_key_id=""), [])
        assert len(clients) == 0

    @pytest.mark.asyncio
    async def test_close_closes_every_client(self, stub_client):
        client = stub_client()
        await BrokerClients({Broker.ALPACA: client}).close()
        assert client.closed is True

    @pytest.mark.asyncio
    async def test_close_logs_errors(self, stub_client):
        """Failure: a client failing to close doesn't raise."""
        client = stub_client()
        client.close = AsyncMock(side_effect=RuntimeError("already closed"))
        await BrokerClients({Broker.ALPACA: client}).close()
        client.close.assert_awaited_once()


class TestConfiguredBrokers:
    """Tests for configured_brokers()"""

    def test_credentials_present(self):
        assert configured_brokers(_settings()) == [Broker.ALPACA]

    @pytest.mark.parametrize("missing", ["alpaca_api_key_id", "alpaca_api_secret_key"])
    def test_credentials_missing(self, missing):
        """Edge case: half-configured credentials don't count."""
        assert configured_brokers(_settings(**{missing: ""})) == []
