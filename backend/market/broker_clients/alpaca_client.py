"""
Alpaca Client

BrokerClient implementation for the Alpaca v2 trading REST API.

- Uses one httpx.AsyncClient per instance (connection pooled, shared by
  all dispatch tasks)
- Authenticates with APCA-API-KEY-ID / APCA-API-SECRET-KEY headers
- Sends our order id as client_order_id, so a resubmitted order is
  recognised by Alpaca instead of filling twice
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

import httpx

from market.broker_clients.base import BrokerClient, order_from_signal
from market.exceptions import BrokerError, BrokerErrorKind
from market.schemas.broker import (
    Account,
    Asset,
    AssetClass,
    Broker,
    Order,
    OrdersQuery,
    Position,
    TimeInForce,
)

logger = logging.getLogger(__name__)

# Alpaca's message when a client_order_id has already been used
DUPLICATE_CLIENT_ORDER_ID = "client_order_id must be unique"


def _status_to_kind(status: int) -> BrokerErrorKind:
    if status in (401, 403):
        return BrokerErrorKind.UNAUTHORIZED
    if status == 404:
        return BrokerErrorKind.NOT_FOUND
    if status == 429:
        return BrokerErrorKind.RATE_LIMITED
    if 400 <= status < 500:
        return BrokerErrorKind.REJECTED
    return BrokerErrorKind.SERVER


def _parse_uuid(value: Optional[str]) -> Optional[UUID]:
    if not value:
        return None
    try:
        return UUID(value)
    except ValueError:
        return None


def parse_order(data: Dict[str, Any]) -> Order:
    """Convert an Alpaca order JSON object to an Order."""
    order_id = _parse_uuid(data.get("client_order_id")) or UUID(data["id"])
    quantity = data.get("qty") or data.get("filled_qty") or "0"
    return Order(
        id=order_id,
        symbol=data["symbol"],
        side=data["side"],
        order_type=data.get("type") or data.get("order_type") or "market",
        quantity=quantity,
        limit_price=data.get("limit_price"),
        time_in_force=data.get("time_in_force") or "day",
        broker_order_id=data.get("id"),
        status=data.get("status"),
        filled_qty=data.get("filled_qty"),
        filled_avg_price=data.get("filled_avg_price"),
        submitted_at=data.get("submitted_at"),
    )


def parse_asset(data: Dict[str, Any]) -> Asset:
    return Asset(
        id=data["id"],
        symbol=data["symbol"],
        name=data.get("name"),
        asset_class=data.get("class") or data.get("asset_class"),
        exchange=data.get("exchange"),
        status=data.get("status", "active"),
        tradable=data.get("tradable", False),
        fractionable=data.get("fractionable", False),
        shortable=data.get("shortable", False),
    )


def parse_position(data: Dict[str, Any]) -> Position:
    return Position(
        asset_id=data.get("asset_id"),
        symbol=data["symbol"],
        asset_class=data.get("asset_class"),
        side=data.get("side", "long"),
        qty=data["qty"],
        avg_entry_price=data["avg_entry_price"],
        market_value=data.get("market_value"),
        current_price=data.get("current_price"),
        unrealized_pl=data.get("unrealized_pl"),
    )


def parse_account(data: Dict[str, Any]) -> Account:
    return Account(
        id=data["id"],
        account_number=data.get("account_number"),
        status=data["status"],
        currency=data.get("currency", "USD"),
        cash=data["cash"],
        buying_power=data["buying_power"],
        equity=data["equity"],
        portfolio_value=data.get("portfolio_value"),
        pattern_day_trader=data.get("pattern_day_trader", False),
        trading_blocked=data.get("trading_blocked", False),
    )


def order_payload(order: Order) -> Dict[str, Any]:
    """Request body for POST /v2/orders."""
    payload: Dict[str, Any] = {
        "symbol": order.symbol,
        "qty": str(order.quantity),
        "side": order.side.value,
        "type": order.order_type.value,
        "time_in_force": order.time_in_force.value,
        "client_order_id": str(order.id),
    }
    if order.limit_price is not None:
        payload["limit_price"] = str(order.limit_price)
    return payload


class AlpacaClient(BrokerClient):
    """
    BrokerClient for Alpaca (paper or live, depending on base_url).

    Endpoints used:
      POST   /v2/orders                        - Submit order
      GET    /v2/orders                        - List orders
      GET    /v2/orders/{id}                   - Order by broker id
      GET    /v2/orders:by_client_order_id     - Order by our id
      DELETE /v2/orders/{id}                   - Cancel order
      GET    /v2/account                       - Account snapshot
      GET    /v2/assets, /v2/assets/{symbol}   - Assets
      GET    /v2/positions                     - Open positions
    """

    def __init__(
        self,
        base_url: str,
        api_key_id: str,
        api_secret_key: str,
        timeout: float = 10.0,
    ):
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            headers={
                "APCA-API-KEY-ID": api_key_id,
                "APCA-API-SECRET-KEY": api_secret_key,
            },
        )
        logger.info(f"AlpacaClient initialized (base_url={self._base_url})")

    async def close(self):
        """Close the underlying httpx client to release connections."""
        if self._client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """Make HTTP request to Alpaca.

        Raises:
            BrokerError: with kind CONNECTION for timeouts and transport
                failures, otherwise a kind derived from the HTTP status.
        """
        try:
            resp = await self._client.request(method, path, **kwargs)
            resp.raise_for_status()
        except httpx.TimeoutException:
            logger.error(f"Alpaca timeout: {method} {path}")
            raise BrokerError("Alpaca request timed out", BrokerErrorKind.CONNECTION)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            body = e.response.text[:200]
            logger.error(f"Alpaca HTTP {status}: {method} {path} - {body}")
            raise BrokerError(f"Alpaca error ({status}): {body}", _status_to_kind(status))
        except httpx.TransportError as e:
            logger.error(f"Alpaca connection failed: {method} {path}: {e}")
            raise BrokerError(f"Alpaca unavailable: {e}", BrokerErrorKind.CONNECTION)

        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    # ==========================================================
    # ORDERS
    # ==========================================================

    async def create_order(self, signal) -> Order:
        # Alpaca crypto pairs ("BTC/USD") only accept gtc/ioc
        tif = TimeInForce.GTC if "/" in signal.alert.ticker else TimeInForce.DAY
        return order_from_signal(signal, time_in_force=tif)

    async def execute_order(self, order: Order) -> Order:
        try:
            data = await self._request("POST", "/v2/orders", json=order_payload(order))
        except BrokerError as e:
            if e.kind == BrokerErrorKind.REJECTED and DUPLICATE_CLIENT_ORDER_ID in e.message:
                # An earlier attempt reached Alpaca; treat it as the submission
                logger.warning(f"Order {order.id} already submitted - fetching existing order")
                return await self._get_order_by_client_id(order.id)
            raise

        submitted = parse_order(data)
        logger.info(
            f"Alpaca accepted order {order.id} "
            f"(broker_id={submitted.broker_order_id}, status={submitted.status})"
        )
        return submitted

    async def cancel_order(self, order: Order) -> None:
        broker_order_id = order.broker_order_id
        if not broker_order_id:
            broker_order_id = (await self._get_order_by_client_id(order.id)).broker_order_id
        await self._request("DELETE", f"/v2/orders/{broker_order_id}")
        logger.info(f"Cancelled order {order.id} (broker_id={broker_order_id})")

    async def _get_order_by_client_id(self, client_order_id: UUID) -> Order:
        data = await self._request(
            "GET",
            "/v2/orders:by_client_order_id",
            params={"client_order_id": str(client_order_id)},
        )
        return parse_order(data)

    async def get_order(self, order_id: UUID) -> Order:
        """Look up by Alpaca order id, then by our client order id."""
        try:
            data = await self._request("GET", f"/v2/orders/{order_id}")
        except BrokerError as e:
            if e.kind != BrokerErrorKind.NOT_FOUND:
                raise
            return await self._get_order_by_client_id(order_id)
        return parse_order(data)

    async def get_orders(self, query: OrdersQuery) -> List[Order]:
        params: Dict[str, Any] = {
            "status": query.status.value,
            "limit": query.limit,
            "direction": query.direction,
        }
        if query.symbols:
            params["symbols"] = ",".join(s.upper() for s in query.symbols)
        data = await self._request("GET", "/v2/orders", params=params)
        return [parse_order(o) for o in data or []]

    # ==========================================================
    # ACCOUNT & ASSETS
    # ==========================================================

    async def get_account(self) -> Account:
        return parse_account(await self._request("GET", "/v2/account"))

    async def get_asset(self, symbol: str) -> Asset:
        return parse_asset(await self._request("GET", f"/v2/assets/{symbol.upper()}"))

    async def get_assets(self, asset_class: AssetClass) -> List[Asset]:
        data = await self._request(
            "GET",
            "/v2/assets",
            params={"asset_class": asset_class.value, "status": "active"},
        )
        return [parse_asset(a) for a in data or []]

    async def get_positions(self) -> List[Position]:
        data = await self._request("GET", "/v2/positions")
        return [parse_position(p) for p in data or []]

    # ==========================================================
    # METADATA
    # ==========================================================

    def get_broker(self) -> Broker:
        return Broker.ALPACA
