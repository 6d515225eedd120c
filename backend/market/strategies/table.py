"""
Strategy table

Id-keyed lookup of the strategies loaded at startup. The mapping is built
completely before the table is published and is exposed only through a
read-only proxy, so concurrent readers need no locking.
"""

import logging
import tomllib
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Iterator, List, Mapping, Optional, Union
from uuid import UUID

from pydantic import ValidationError

from market.exceptions import ConfigurationError
from market.strategies.models import Strategy

logger = logging.getLogger(__name__)


class StrategyTable:
    def __init__(self, strategies: Iterable[Strategy]):
        by_id = {}
        for strategy in strategies:
            if strategy.id in by_id:
                raise ConfigurationError(f"Duplicate strategy id {strategy.id}")
            by_id[strategy.id] = strategy
        self._strategies: Mapping[UUID, Strategy] = MappingProxyType(by_id)

    @classmethod
    def load(
        cls,
        path: Union[str, Path],
        default_max_retries: int = 3,
        default_retry_delay: float = 1.0,
    ) -> "StrategyTable":
        """
        Load strategies from a TOML file with a [[strategies]] array.

        Strategies that don't set max_retries / retry_delay get the defaults.

        Raises:
            ConfigurationError: file missing, unreadable, malformed, or a
                record fails validation.
        """
        path = Path(path)
        try:
            with path.open("rb") as f:
                data = tomllib.load(f)
        except FileNotFoundError:
            raise ConfigurationError(f"Strategy file not found: {path}")
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigurationError(f"Failed to read strategy file {path}: {e}")

        records = data.get("strategies")
        if not isinstance(records, list):
            raise ConfigurationError(f"Strategy file {path} has no [[strategies]] table array")

        strategies = []
        for index, record in enumerate(records):
            if not isinstance(record, dict):
                raise ConfigurationError(f"Invalid strategy #{index} in {path}: expected a table")
            record = {
                "max_retries": default_max_retries,
                "retry_delay": default_retry_delay,
                **record,
            }
            try:
                strategies.append(Strategy.model_validate(record))
            except ValidationError as e:
                raise ConfigurationError(f"Invalid strategy #{index} in {path}: {e}")

        table = cls(strategies)
        logger.info(
            f"Loaded {len(table)} strategies from {path} "
            f"({len(table.enabled())} enabled)"
        )
        return table

    def find(self, strategy_id: UUID) -> Optional[Strategy]:
        return self._strategies.get(strategy_id)

    def enabled(self) -> List[Strategy]:
        return [s for s in self._strategies.values() if s.enabled]

    def __len__(self) -> int:
        return len(self._strategies)

    def __iter__(self) -> Iterator[Strategy]:
        return iter(self._strategies.values())

    def __contains__(self, strategy_id) -> bool:
        return strategy_id in self._strategies
