"""
Event and handler contract.

A handler is bound to one payload type and exposes a single async
`handle(payload)`. It returns nothing on success and raises a
HandleEventError subclass on failure; the dispatcher only ever logs the
outcome.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, TypeVar
from uuid import UUID, uuid4

PayloadT = TypeVar("PayloadT")


class EventKind(str, Enum):
    TRADE_SIGNAL = "trade_signal"


@dataclass(frozen=True)
class Event:
    kind: EventKind
    payload: Any
    event_id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class EventHandler(ABC, Generic[PayloadT]):
    @abstractmethod
    async def handle(self, payload: PayloadT) -> None:
        """
        Handle one event payload.

        Raises:
            HandleEventError: the event could not be handled
        """
        pass
