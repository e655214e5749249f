import logging
import uuid

import httpx
import jwt as pyjwt
from jwt import PyJWK
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from slipshare.core.config import settings
from slipshare.core.database import get_db
from slipshare.core.errors import UNAUTHORIZED, error_body
from slipshare.models.user import User

logger = logging.getLogger(__name__)

security = HTTPBearer()

_jwks_cache: list | None = None


async def _get_jwks() -> list:
    global _jwks_cache
    if _jwks_cache is not None:
        return _jwks_cache
    jwks_url = f"{settings.supabase_url}/auth/v1/.well-known/jwks.json"
    async with httpx.AsyncClient() as client:
        resp = await client.get(jwks_url)
        resp.raise_for_status()
        keys = resp.json().get("keys", [])
        _jwks_cache = [PyJWK(k) for k in keys]
        return _jwks_cache


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=error_body(UNAUTHORIZED, message),
    )


def decode_token(token: str, jwks: list) -> dict:
    """Verify a Supabase access token against the project's signing keys."""
    header = pyjwt.get_unverified_header(token)
    kid = header.get("kid")

    key = next((k for k in jwks if k.key_id == kid), None)
    if key is None:
        raise pyjwt.InvalidTokenError("No matching key found")

    return pyjwt.decode(
        token,
        key,
        algorithms=["ES256"],
        audience="authenticated",
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    try:
        payload = decode_token(credentials.credentials, await _get_jwks())
    except pyjwt.InvalidTokenError as e:
        logger.info(f"Rejected token: {e}")
        raise _unauthorized("Invalid token")

    subject = payload.get("sub")
    try:
        user_id = uuid.UUID(subject)
    except (TypeError, ValueError):
        raise _unauthorized("Invalid token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise _unauthorized("User not found")

    return user
