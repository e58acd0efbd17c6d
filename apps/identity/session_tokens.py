"""
Session token service for Taskshare.

Issues and verifies the service's own HS256 bearer token. The token is the
only credential a client presents between requests, so the server keeps no
session state. It is distinct from the upstream identity-provider token,
which is only exchanged for one of these at sign-in (see providers.py).
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Callable, Optional
from uuid import UUID

import jwt
from django.conf import settings

from apps.core.exceptions import ConfigurationError, InvalidCredential


JWT_ALGORITHM = 'HS256'
MIN_SECRET_BYTES = 32
DEFAULT_TTL = timedelta(days=7)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Credential:
    """Claims of a verified session token."""
    subject: Optional[str]
    email: Optional[str]
    display_name: Optional[str]
    issuer: str
    issued_at: Optional[datetime]
    expires_at: datetime


class SessionTokenService:
    """
    Signs and verifies session tokens with a symmetric key.

    Construction fails with ConfigurationError when the key is shorter than
    256 bits; build the service once at startup so a bad key stops the
    process before it serves traffic.
    """

    def __init__(
        self,
        secret: str,
        issuer: str,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if not secret or len(secret.encode('utf-8')) < MIN_SECRET_BYTES:
            raise ConfigurationError(
                f"Session token secret must be at least {MIN_SECRET_BYTES} bytes for {JWT_ALGORITHM}"
            )
        if not issuer:
            raise ConfigurationError("Session token issuer must be configured")
        self._secret = secret
        self.issuer = issuer
        self.ttl = ttl
        self._clock = clock

    def issue(self, user_id: UUID, email: Optional[str], display_name: Optional[str]) -> str:
        """
        Create a signed token for a user.

        Payload: iss, sub (user id), email, name, iat = now, exp = now + ttl.
        """
        now = self._clock()
        payload = {
            'iss': self.issuer,
            'sub': str(user_id),
            'email': email,
            'name': display_name,
            'iat': now,
            'exp': now + self.ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)

    def verify(self, token: str) -> Credential:
        """
        Verify signature, issuer and expiry of a session token.

        Expiry is checked against the service clock and only fails when
        now is strictly past ``exp``. ``email`` and ``name`` are optional;
        ``sub`` is returned as-is for the caller to validate.

        Raises:
            InvalidCredential: on any verification failure.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                issuer=self.issuer,
                options={
                    'require': ['exp', 'iss'],
                    'verify_exp': False,
                    'verify_iat': False,
                    'verify_sub': False,
                },
            )
        except jwt.PyJWTError as e:
            raise InvalidCredential(str(e)) from e

        try:
            expires_at = datetime.fromtimestamp(int(payload['exp']), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError) as e:
            raise InvalidCredential("Invalid exp claim") from e
        if self._clock() > expires_at:
            raise InvalidCredential("Token expired")

        issued_at = None
        if payload.get('iat') is not None:
            try:
                issued_at = datetime.fromtimestamp(int(payload['iat']), tz=timezone.utc)
            except (TypeError, ValueError, OverflowError) as e:
                raise InvalidCredential("Invalid iat claim") from e

        return Credential(
            subject=payload.get('sub'),
            email=payload.get('email'),
            display_name=payload.get('name'),
            issuer=payload['iss'],
            issued_at=issued_at,
            expires_at=expires_at,
        )


@lru_cache(maxsize=1)
def get_session_token_service() -> SessionTokenService:
    """Build the process-wide service from Django settings."""
    return SessionTokenService(
        secret=settings.SESSION_TOKEN_SECRET,
        issuer=settings.SESSION_TOKEN_ISSUER,
        ttl=timedelta(days=settings.SESSION_TOKEN_TTL_DAYS),
    )


# Cookie configuration
def get_cookie_settings(is_production: bool = False) -> dict:
    """
    Get cookie settings for the session token cookie.

    Production: Secure, SameSite=None (frontend served from another origin)
    Development: Not secure (localhost), SameSite=Lax
    """
    return {
        'httponly': True,
        'secure': is_production,
        'samesite': 'None' if is_production else 'Lax',
        'path': '/',
        'max_age': settings.SESSION_TOKEN_TTL_DAYS * 24 * 60 * 60,
    }
