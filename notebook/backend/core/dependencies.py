"""
FastAPI Dependencies.

Shared dependencies for request handling.
"""

import uuid
from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from notebook.backend.core.database import get_db_session
from notebook.backend.core.exceptions import AuthenticationError
from notebook.backend.core.logging import get_logger

logger = get_logger(__name__)

# Type alias for database session dependency
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


async def get_request_id(x_request_id: str | None = Header(None)) -> str:
    """
    Extract or generate request ID from headers.

    Used for request tracing and correlation.
    """
    return x_request_id or str(uuid.uuid4())


RequestId = Annotated[str, Depends(get_request_id)]


async def get_caller_id(x_user_id: str | None = Header(None)) -> int:
    """
    Resolve the acting user from the X-User-ID header.

    The host platform's auth gateway authenticates the user and forwards
    the id. Every note operation receives it explicitly.

    Raises:
        AuthenticationError: If the header is missing or not a positive integer
    """
    if not x_user_id:
        raise AuthenticationError("Missing X-User-ID header")
    try:
        caller_id = int(x_user_id)
    except ValueError:
        raise AuthenticationError("Invalid X-User-ID header")
    if caller_id <= 0:
        raise AuthenticationError("Invalid X-User-ID header")
    return caller_id


CallerId = Annotated[int, Depends(get_caller_id)]
