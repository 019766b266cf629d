"""
Supabase JWT validation OR dev-mode bypass. Controlled by FF_USE_AUTH flag.

Sessions (login, refresh, logout) live in Supabase; this service only checks
the access token the client forwards and reads the user id from `sub`.
"""

import hmac
import logging
from dataclasses import dataclass

from jose import jwt, JWTError

from .config import get_settings
from .flags import get_flags

logger = logging.getLogger(__name__)


@dataclass
class AuthenticatedUser:
    user_id: str
    email: str = ""
    role: str = "authenticated"


# Dev-mode user, returned when FF_USE_AUTH=false
DEV_USER = AuthenticatedUser(
    user_id="dev-user",
    email="dev@local",
)


def _bearer_token(authorization: str) -> str:
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise PermissionError("Invalid Authorization header. Use: Bearer <token>")
    return token.strip()


def verify_token(token: str) -> AuthenticatedUser:
    """Decode a Supabase access token (HS256, signed with the project JWT secret)."""
    settings = get_settings()
    if not settings.supabase_jwt_secret:
        raise JWTError("SUPABASE_JWT_SECRET is not configured")

    payload = jwt.decode(
        token,
        settings.supabase_jwt_secret,
        algorithms=["HS256"],
        audience=settings.supabase_jwt_audience,
    )

    user_id = payload.get("sub", "")
    if not user_id:
        raise JWTError("Token missing sub claim")

    return AuthenticatedUser(
        user_id=user_id,
        email=payload.get("email", ""),
        role=payload.get("role", "authenticated"),
    )


async def get_current_user(authorization: str = "") -> AuthenticatedUser:
    """
    Resolve the current user from the Authorization header.
    If FF_USE_AUTH is false, returns a dev user.
    """
    flags = get_flags()

    if not flags.use_auth:
        return DEV_USER

    if not authorization:
        raise PermissionError("Missing Authorization header")

    token = _bearer_token(authorization)

    try:
        return verify_token(token)
    except JWTError as e:
        logger.info("Rejected access token: %s", e)
        raise PermissionError(f"Invalid token: {e}")


def verify_cron_secret(authorization: str) -> bool:
    """True when the header is exactly `Bearer <CRON_SECRET>` and a secret is set."""
    secret = get_settings().cron_secret
    if not secret or not authorization:
        return False
    return hmac.compare_digest(authorization, f"Bearer {secret}")
