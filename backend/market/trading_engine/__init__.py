"""
Trading Engine Components

Core trade execution components:
- TradeSignal / build_trade_signal: Binds an alert to its enabled strategy and broker client
- TradeExecutor: Executes one order with bounded, fixed-delay retry
- TradeSignalHandler: Dispatcher handler that runs trade signals through the executor
"""
