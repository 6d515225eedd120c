"""
Shared test fixtures for market backend tests.

Provides reusable fixtures for:
- Async database sessions (in-memory SQLite)
- Stub broker clients with configurable fault schedules
- Sample alerts and strategies
"""

import time
import uuid
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncSession,
    async_sessionmaker,
)

from market.broker_clients.base import BrokerClient, order_from_signal
from market.broker_clients.factory import BrokerClients
from market.exceptions import BrokerError, BrokerErrorKind
from market.schemas.alert import AlertData
from market.schemas.broker import Account, Broker
from market.strategies import Strategy, StrategyTable

STRATEGY_ID = uuid.UUID("0190a8e2-5c4b-7d11-9a3e-6f2b1c8d4e01")
DISABLED_STRATEGY_ID = uuid.UUID("0190a8e2-5c4b-7d11-9a3e-6f2b1c8d4e02")


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def async_engine():
    """Create an in-memory async SQLite engine for testing."""
    from market.models import Base

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(async_engine):
    """Provide an async database session for tests."""
    session_factory = async_sessionmaker(
        async_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Stub broker client
# ---------------------------------------------------------------------------


class StubBrokerClient(BrokerClient):
    """
    In-memory broker client.

    execute_order fails `failures` times (or forever if None) with a
    BrokerError, then succeeds. Every submitted order and the monotonic time
    of each attempt are recorded.
    """

    def __init__(self, failures=0, kind=BrokerErrorKind.CONNECTION):
        self.failures = failures
        self.kind = kind
        self.submitted = []
        self.attempt_times = []
        self.created = 0
        self.closed = False

    async def create_order(self, signal):
        self.created += 1
        return order_from_signal(signal)

    async def execute_order(self, order):
        self.submitted.append(order)
        self.attempt_times.append(time.monotonic())
        if self.failures is None or len(self.submitted) <= self.failures:
            raise BrokerError(f"stub failure #{len(self.submitted)}", self.kind)
        return order.model_copy(update={"broker_order_id": f"broker-{order.id}", "status": "accepted"})

    async def cancel_order(self, order):
        return None

    async def get_order(self, order_id):
        for order in self.submitted:
            if order.id == order_id:
                return order
        raise BrokerError(f"order {order_id} not found", BrokerErrorKind.NOT_FOUND)

    async def get_orders(self, query):
        return list(self.submitted)[: query.limit]

    async def get_account(self):
        return Account(
            id="stub-account",
            status="ACTIVE",
            cash=Decimal("100000"),
            buying_power=Decimal("200000"),
            equity=Decimal("100000"),
        )

    async def get_asset(self, symbol):
        raise BrokerError(f"asset {symbol} not found", BrokerErrorKind.NOT_FOUND)

    async def get_assets(self, asset_class):
        return []

    async def get_positions(self):
        return []

    def get_broker(self):
        return Broker.ALPACA

    async def close(self):
        self.closed = True


@pytest.fixture
def stub_client():
    """Factory for StubBrokerClient instances with a given fault schedule."""
    def _make(failures=0, kind=BrokerErrorKind.CONNECTION):
        return StubBrokerClient(failures=failures, kind=kind)
    return _make


@pytest.fixture
def clients_for():
    """Wrap one client in a BrokerClients registry under the Alpaca tag."""
    def _wrap(client):
        return BrokerClients({Broker.ALPACA: client})
    return _wrap


# ---------------------------------------------------------------------------
# Sample data factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_strategy():
    def _make(strategy_id=STRATEGY_ID, enabled=True, max_retries=2, retry_delay=1.0, **kwargs):
        return Strategy(
            id=strategy_id,
            name=kwargs.pop("name", f"strategy-{str(strategy_id)[-4:]}"),
            enabled=enabled,
            broker=Broker.ALPACA,
            max_retries=max_retries,
            retry_delay=retry_delay,
            **kwargs,
        )
    return _make


@pytest.fixture
def strategy_table(make_strategy):
    """One enabled and one disabled strategy."""
    return StrategyTable([
        make_strategy(STRATEGY_ID, enabled=True, max_retries=2, retry_delay=1.0, name="AAPL breakout"),
        make_strategy(DISABLED_STRATEGY_ID, enabled=False, name="Paused"),
    ])


@pytest.fixture
def alert_payload():
    """JSON body of a webhook alert, as the signal source posts it."""
    def _make(strategy_id=STRATEGY_ID, **overrides):
        payload = {
            "ticker": "AAPL",
            "timeframe": "1h",
            "exchange": "NASDAQ",
            "alert_type": "entry",
            "bar": {
                "time": "2024-03-01T14:00:00Z",
                "open": "150.00",
                "high": "151.00",
                "low": "149.50",
                "close": "150.75",
                "volume": 10000,
            },
            "time": "2024-03-01T15:00:00Z",
            "strategy_id": str(strategy_id),
        }
        payload.update(overrides)
        return payload
    return _make


@pytest.fixture
def make_alert(alert_payload):
    def _make(strategy_id=STRATEGY_ID, **overrides):
        return AlertData.model_validate(alert_payload(strategy_id, **overrides))
    return _make


@pytest.fixture
def strategy_id():
    return STRATEGY_ID


@pytest.fixture
def disabled_strategy_id():
    return DISABLED_STRATEGY_ID


# ---------------------------------------------------------------------------
# Application fixtures
# ---------------------------------------------------------------------------


API_KEY = "test-api-key"


@pytest.fixture
def app_settings(tmp_path):
    """Settings pointing at a throwaway SQLite file."""
    from market.config import Settings

    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path}/market-test.db",
        api_key=API_KEY,
        dispatch_workers=2,
        shutdown_timeout=5.0,
    )


@pytest.fixture
def api_client(app_settings, strategy_table, clients_for):
    """
    Factory for a started TestClient around create_app().

    Strategies and broker clients are injected so startup never reads a
    strategy file or builds a real Alpaca client.
    """
    from fastapi.testclient import TestClient

    from market.main import create_app

    clients = []

    def _make(client, strategies=None, executor=None, settings=None):
        app = create_app(
            settings=settings or app_settings,
            strategies=strategies if strategies is not None else strategy_table,
            broker_clients=clients_for(client),
            executor=executor,
        )
        test_client = TestClient(app, headers={"X-API-Key": API_KEY})
        test_client.__enter__()
        clients.append(test_client)
        return test_client

    yield _make

    for test_client in clients:
        test_client.__exit__(None, None, None)


@pytest.fixture
def wait_for_dispatch():
    """Block until the dispatcher has finished `count` events (handled or failed)."""
    def _wait(app, count=1, timeout=5.0):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            stats = app.state.dispatcher.stats()
            if stats["processed"] + stats["failed"] >= count:
                return stats
            time.sleep(0.01)
        raise AssertionError(f"dispatcher did not finish {count} event(s) in {timeout}s")
    return _wait
