from dataclasses import dataclass
from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from campus_events.core.config import settings
from campus_events.core.errors import Unauthorized
from campus_events.core.logging import logger
from campus_events.core.security import decode_token

# auto_error is off so the cookie can be tried when no header is sent
security = HTTPBearer(auto_error=False)


@dataclass
class CallerIdentity:
    user_id: Optional[str] = None
    role: Optional[str] = None
    token: Optional[str] = None


async def get_caller(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CallerIdentity:
    """
    Identify the caller from the ``token`` cookie or a Bearer header.

    Returns:
        CallerIdentity; empty when no credential is sent and
        authentication is not required

    Raises:
        Unauthorized: Missing or invalid credential while AUTH_REQUIRED is set
    """
    token = request.cookies.get("token") or (credentials.credentials if credentials else None)
    if not token:
        if settings.AUTH_REQUIRED:
            raise Unauthorized("Unauthorized: not a registered user")
        return CallerIdentity()

    try:
        payload = decode_token(token)
    except ValueError as e:
        logger.warning(f"Rejected credential: {e}")
        if settings.AUTH_REQUIRED:
            raise Unauthorized("Unauthorized: invalid or expired token")
        return CallerIdentity()

    user_id = payload.get("sub") or payload.get("id") or payload.get("user_id")
    return CallerIdentity(user_id=str(user_id), role=payload.get("role"), token=token)
