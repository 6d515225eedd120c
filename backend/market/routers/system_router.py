"""
System routes

- /health: liveness, no auth
- /status: authenticated status with dispatcher counters
"""

from fastapi import APIRouter, Depends

from market.auth.dependencies import require_api_key
from market.dependencies import get_dispatcher, get_strategies
from market.events import EventDispatcher
from market.strategies import StrategyTable

router = APIRouter(tags=["system"])


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.api_route("/status", methods=["GET", "POST"], dependencies=[Depends(require_api_key)])
async def get_status(
    dispatcher: EventDispatcher = Depends(get_dispatcher),
    strategies: StrategyTable = Depends(get_strategies),
):
    return {
        "status": "OK",
        "strategies": len(strategies),
        "enabled_strategies": len(strategies.enabled()),
        "dispatcher": dispatcher.stats(),
    }
