import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from . import config
from .database import get_db
from .exceptions import AuthenticationError, AuthorizationError
from .models import Profile

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: Optional[str] = None


class IdentityProvider:
    """Validates a caller's session against the auth service's user endpoint."""

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.timeout = timeout
        self.transport = transport

    async def get_user(self, authorization: str) -> AuthUser:
        if not self.base_url:
            logger.error("❌ AUTH_URL not configured, cannot verify session")
            raise AuthenticationError("Unauthorized")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(
                    f"{self.base_url}/auth/v1/user",
                    headers={"apikey": self.anon_key, "Authorization": authorization},
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ Identity provider request failed: {type(e).__name__}: {e}")
            raise AuthenticationError("Unauthorized") from e

        if response.status_code != 200:
            logger.warning(f"⚠️ Session rejected by identity provider: HTTP {response.status_code}")
            raise AuthenticationError("Unauthorized")

        try:
            payload = response.json()
        except ValueError as e:
            logger.error("Identity provider returned a non-JSON body")
            raise AuthenticationError("Unauthorized") from e

        user_id = payload.get("id") if isinstance(payload, dict) else None
        if not user_id:
            logger.warning("Identity provider returned no user id")
            raise AuthenticationError("Unauthorized")

        return AuthUser(id=user_id, email=payload.get("email"))


def get_identity_provider() -> IdentityProvider:
    """Dependency injection for the identity provider"""
    return IdentityProvider(config.AUTH_URL, config.AUTH_ANON_KEY, config.AUTH_TIMEOUT_SECONDS)


def get_authorization_header(request: Request) -> str:
    authorization = request.headers.get("authorization", "").strip()
    if not authorization:
        raise AuthenticationError("No authorization header")
    return authorization


async def get_current_user(
    authorization: str = Depends(get_authorization_header),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> AuthUser:
    """Resolve the caller from the bearer credential"""
    user = await provider.get_user(authorization)
    logger.debug(f"User authenticated: {user.id}")
    return user


def get_profile_role(db: Session, user_id: str) -> Optional[str]:
    profile = db.query(Profile).filter(Profile.id == user_id).first()
    return profile.role if profile else None


async def get_admin_user(
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AuthUser:
    """Get current user and verify their profile carries the admin role."""
    role = get_profile_role(db, user.id)
    if role != ADMIN_ROLE:
        logger.warning(f"User {user.id} attempted admin-only action with role {role!r}")
        raise AuthorizationError("Admin access required")
    return user
