"""
API Routers
"""

from market.routers.broker_router import router as broker_router
from market.routers.system_router import router as system_router
from market.routers.webhook_router import router as webhook_router

__all__ = [
    "broker_router",
    "system_router",
    "webhook_router",
]
