"""
Trading strategies configured for this process.

Usage:
    from market.strategies import StrategyTable

    strategies = StrategyTable.load("strategies.toml")
    strategy = strategies.find(alert.strategy_id)
"""

from market.strategies.models import Strategy
from market.strategies.table import StrategyTable

__all__ = ["Strategy", "StrategyTable"]
