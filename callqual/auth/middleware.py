"""Owner resolution.

Authentication happens upstream (gateway/session service); by the time a
request reaches this service the authenticated user id is in X-Owner-Id.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader

OWNER_HEADER = APIKeyHeader(name="X-Owner-Id", auto_error=False)

MAX_OWNER_ID_LENGTH = 64


async def get_owner_id(owner_header: str | None = Depends(OWNER_HEADER)) -> str:
    """Extract the caller's owner id from the forwarded header."""
    if not owner_header or not owner_header.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-Owner-Id header",
        )
    owner_id = owner_header.strip()
    if len(owner_id) > MAX_OWNER_ID_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-Owner-Id header",
        )
    return owner_id


# Type alias for dependency injection
OwnerDep = Annotated[str, Depends(get_owner_id)]
