"""
Domain exceptions for the application.

Services raise these instead of fastapi.HTTPException to avoid coupling
the service layer to the web framework. A global exception handler in
main.py translates them into HTTP responses.
"""

from enum import Enum
from typing import Optional


class AppError(Exception):
    """Base application error with an HTTP-equivalent status code."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ConfigurationError(AppError):
    """Invalid or missing startup configuration (strategy file, credentials)."""

    def __init__(self, message: str):
        super().__init__(message, status_code=500)


class AlertRecordingError(AppError):
    """The alert could not be written to the alert log (500)."""

    def __init__(self, message: str = "Failed to record alert"):
        super().__init__(message, status_code=500)


class DispatchQueueFull(AppError):
    """Dispatcher refused an event because its queue is full (503)."""

    def __init__(self, message: str = "Dispatch queue is full"):
        super().__init__(message, status_code=503)


# =========================================================
# Broker errors
# =========================================================


class BrokerErrorKind(str, Enum):
    CONNECTION = "connection"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    REJECTED = "rejected"
    SERVER = "server"


_BROKER_ERROR_STATUS = {
    BrokerErrorKind.CONNECTION: 503,
    BrokerErrorKind.UNAUTHORIZED: 502,
    BrokerErrorKind.NOT_FOUND: 404,
    BrokerErrorKind.RATE_LIMITED: 429,
    BrokerErrorKind.REJECTED: 400,
    BrokerErrorKind.SERVER: 503,
}


class BrokerError(AppError):
    """A broker call failed. `kind` says how; status_code is what the API returns."""

    def __init__(self, message: str, kind: BrokerErrorKind = BrokerErrorKind.SERVER):
        self.kind = kind
        super().__init__(message, status_code=_BROKER_ERROR_STATUS[kind])


# =========================================================
# Event handling errors
# =========================================================


class HandleEventError(AppError):
    """Raised by event handlers; the dispatcher logs it and moves on."""

    def __init__(self, message: str, status_code: int = 422):
        super().__init__(message, status_code=status_code)


class TradeSignalError(HandleEventError):
    """An alert could not be turned into a dispatchable trade signal."""


class UnknownStrategy(TradeSignalError):
    def __init__(self, strategy_id):
        self.strategy_id = strategy_id
        super().__init__(f"Unknown strategy - {strategy_id}", status_code=404)


class StrategyDisabled(TradeSignalError):
    def __init__(self, strategy_id):
        self.strategy_id = strategy_id
        super().__init__(f"Strategy is disabled - {strategy_id}")


class MaxRetriesReached(HandleEventError):
    """Order execution failed on every allowed attempt."""

    def __init__(self, order, attempts: int, last_error: Optional[BaseException] = None):
        self.order = order
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Max retries reached for order {order.id} after {attempts} attempt(s): {last_error}",
            status_code=502,
        )


class OrderCreationError(HandleEventError):
    """The broker client couldn't build the order; nothing was submitted."""

    def __init__(self, order_id, last_error: Optional[BaseException] = None):
        self.order_id = order_id
        self.last_error = last_error
        super().__init__(f"Could not create order {order_id}: {last_error}", status_code=502)
