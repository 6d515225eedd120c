"""
Authentication dependencies for routers.

Routes are protected with a shared API key, sent either in the X-API-Key
header or, for signal sources that can't set headers, as the api_key query
parameter. An empty configured key disables the check.
"""

import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader, APIKeyQuery

logger = logging.getLogger(__name__)

# auto_error=False so either location may be used
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)
api_key_query = APIKeyQuery(name="api_key", auto_error=False)


async def require_api_key(
    request: Request,
    header_key: Optional[str] = Depends(api_key_header),
    query_key: Optional[str] = Depends(api_key_query),
) -> None:
    expected = request.app.state.settings.api_key
    if not expected:
        return

    provided = header_key or query_key
    if not provided or not secrets.compare_digest(provided.encode(), expected.encode()):
        client = request.client.host if request.client else "unknown"
        logger.warning(f"Rejected request to {request.url.path} from {client}: invalid API key")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
        )
