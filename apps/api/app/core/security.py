"""Session token verification.

Sessions are issued by the hosted auth provider as HS256 JWTs in the
``crm_session`` cookie; this service verifies them (and signs them in tests
and local tooling).
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from app.core.config import settings

SESSION_ALGORITHM = "HS256"


def create_session_token(
    user_id: UUID,
    org_id: UUID,
    role: str,
    token_version: int,
) -> str:
    """
    Create signed session JWT in the auth provider's format.

    Production sessions are minted by the hosted provider; this signer
    produces the same claims for tests and local tooling. Always signs
    with the current secret (JWT_SECRET).
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "org_id": str(org_id),
        "role": role,
        "token_version": token_version,
        "iat": now,
        "exp": now + timedelta(hours=settings.JWT_EXPIRES_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=SESSION_ALGORITHM)


def decode_session_token(token: str) -> dict:
    """
    Decode and verify session JWT.

    Tries current secret first, then previous (for rotation support).

    Raises:
        jwt.InvalidTokenError: If token invalid with all secrets
    """
    last_error: jwt.InvalidTokenError | None = None
    for secret in settings.jwt_secrets:
        try:
            return jwt.decode(token, secret, algorithms=[SESSION_ALGORITHM])
        except jwt.InvalidTokenError as e:
            last_error = e
    raise last_error or jwt.InvalidTokenError("No session secret configured")
