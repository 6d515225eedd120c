import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from market.broker_clients.factory import BrokerClients, configured_brokers
from market.config import Settings, get_settings
from market.database import build_engine, build_session_maker, init_db
from market.events import EventDispatcher, EventKind, OverflowPolicy
from market.exceptions import AppError
from market.logging_config import configure_logging
from market.middleware import RequestLoggingMiddleware
from market.routers import broker_router, system_router, webhook_router
from market.strategies import StrategyTable
from market.trading_engine.executor import TradeExecutor
from market.trading_engine.signal_handler import TradeSignalHandler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build every long-lived component before serving, tear down after.

    Any ConfigurationError raised here (bad strategy file, missing broker
    credentials) aborts startup, so the process never serves traffic with
    an invalid configuration. Whatever was built before a startup failure
    is still torn down.
    """
    settings: Settings = app.state.settings

    logger.info("Starting up...")
    if not settings.api_key:
        logger.warning("api_key is not set - webhook and broker routes are unauthenticated")

    async with AsyncExitStack() as stack:
        strategies = app.state.strategies
        if strategies is None:
            strategies = StrategyTable.load(
                settings.strategies_file,
                default_max_retries=settings.trade_signal_max_retries,
                default_retry_delay=settings.trade_signal_retry_delay,
            )
            app.state.strategies = strategies

        broker_clients = app.state.broker_clients
        if broker_clients is None:
            # Credentialed brokers get a client even with no enabled strategy,
            # so the account routes keep working.
            brokers = {strategy.broker for strategy in strategies.enabled()}
            brokers.update(configured_brokers(settings))
            broker_clients = BrokerClients.from_settings(settings, sorted(brokers, key=lambda b: b.value))
            app.state.broker_clients = broker_clients
        stack.push_async_callback(broker_clients.close)

        engine = build_engine(settings.database_url, echo=settings.database_echo)
        stack.push_async_callback(engine.dispose)
        await init_db(engine)
        app.state.session_maker = build_session_maker(engine)
        logger.info("Database initialized")

        dispatcher = EventDispatcher(
            workers=settings.dispatch_workers,
            queue_size=settings.dispatch_queue_size,
            overflow=OverflowPolicy(settings.dispatch_overflow),
        )
        dispatcher.register(EventKind.TRADE_SIGNAL, TradeSignalHandler(app.state.executor))
        stack.push_async_callback(dispatcher.stop, timeout=settings.shutdown_timeout)
        await dispatcher.start()
        app.state.dispatcher = dispatcher

        logger.info("Startup complete")
        yield
        logger.info("Shutting down - waiting for in-flight trade signals...")

    logger.info("Shutdown complete")


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app(
    settings: Optional[Settings] = None,
    strategies: Optional[StrategyTable] = None,
    broker_clients: Optional[BrokerClients] = None,
    executor: Optional[TradeExecutor] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Components not passed in are built from settings during startup.
    """
    app = FastAPI(title="Market Signal Dispatcher", lifespan=lifespan)
    app.state.settings = settings or get_settings()
    app.state.strategies = strategies
    app.state.broker_clients = broker_clients
    app.state.executor = executor or TradeExecutor()

    app.add_middleware(RequestLoggingMiddleware)
    app.add_exception_handler(AppError, app_error_handler)

    app.include_router(system_router)
    app.include_router(webhook_router)
    app.include_router(broker_router)
    return app


def run():
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
