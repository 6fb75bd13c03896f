"""Bearer-token authentication and the route gates built on it.

Routes compose the gates through ``Depends``::

    authenticate -> ensure_logged_in -> ensure_admin
                                     -> ensure_self_or_admin

``authenticate`` never rejects a request; it only decides whether a verified
identity is attached. The ``ensure_*`` gates answer 401 when that identity is
missing or insufficient, so anonymous and non-admin callers of an admin route
get the same response.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Depends, Header, HTTPException, status
from jose import JWTError, jwt

from jobly.core.auth import Principal, UnauthorizedError
from jobly.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


def create_token(
    username: str,
    is_admin: bool,
    settings: Settings,
    expires_delta: timedelta | None = None,
) -> str:
    expires_delta = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims: dict[str, Any] = {
        "username": username,
        "isAdmin": bool(is_admin),
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> Principal:
    """Verify ``token`` against the shared secret.

    Raises ``JWTError`` for a bad signature or expired token and
    ``UnauthorizedError`` when the claims carry no username.
    """
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    username = payload.get("username")
    if not isinstance(username, str) or not username:
        raise UnauthorizedError("token has no username")
    return Principal(username=username, is_admin=payload.get("isAdmin") is True)


async def authenticate(
    settings: Settings = Depends(get_settings),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> Principal | None:
    if not authorization:
        return None

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        logger.debug("ignoring non-bearer authorization header")
        return None

    try:
        return decode_token(token.strip(), settings)
    except (JWTError, UnauthorizedError) as exc:
        logger.debug("ignoring invalid bearer token: %s", exc)
        return None


async def ensure_logged_in(principal: Principal | None = Depends(authenticate)) -> Principal:
    if principal is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="login required")
    return principal


async def ensure_admin(principal: Principal = Depends(ensure_logged_in)) -> Principal:
    try:
        principal.require_admin()
    except UnauthorizedError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    return principal


async def ensure_self_or_admin(username: str, principal: Principal = Depends(ensure_logged_in)) -> Principal:
    """Gate for ``/users/{username}``-style routes: the subject user or an admin."""
    try:
        principal.require_self_or_admin(username)
    except UnauthorizedError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    return principal
