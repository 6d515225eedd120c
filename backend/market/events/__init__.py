"""
Events

Typed events and the background dispatcher that routes them to handlers:
- Event / EventKind: what happened
- EventHandler: async handler contract, one payload type per handler
- EventDispatcher: queue + worker pool, fire-and-forget for the submitter
"""

from market.events.base import Event, EventHandler, EventKind
from market.events.dispatcher import EventDispatcher, OverflowPolicy

__all__ = ["Event", "EventHandler", "EventKind", "EventDispatcher", "OverflowPolicy"]
