"""
Upstream identity provider verification.

Sign-in exchanges a Firebase (Google) ID token for a Taskshare session token.
This module is the only place that trusts the upstream provider; its failures
are kept separate from session-token failures on purpose.
"""
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import jwt
from django.conf import settings

logger = logging.getLogger(__name__)


GOOGLE_SECURETOKEN_JWKS_URL = (
    'https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com'
)
FIREBASE_ISSUER_PREFIX = 'https://securetoken.google.com/'


class IdentityVerificationError(Exception):
    """The upstream ID token could not be verified."""


@dataclass(frozen=True)
class IdentityClaims:
    email: str
    display_name: Optional[str]
    email_verified: bool


class FirebaseIdTokenVerifier:
    """
    Verifies Firebase ID tokens against Google's published signing keys.

    Checks RS256 signature, audience (project id), issuer, expiry and the
    presence of sub/email.
    """

    def __init__(self, project_id: str, jwks_client: Optional[jwt.PyJWKClient] = None, timeout: int = 5):
        if not project_id:
            raise IdentityVerificationError("Identity provider project id is not configured")
        self.project_id = project_id
        self.issuer = f"{FIREBASE_ISSUER_PREFIX}{project_id}"
        self._jwks_client = jwks_client or jwt.PyJWKClient(
            GOOGLE_SECURETOKEN_JWKS_URL,
            cache_keys=True,
            timeout=timeout,
        )

    def verify(self, id_token: str) -> IdentityClaims:
        """
        Raises:
            IdentityVerificationError: signature, claims or key lookup failed.
        """
        try:
            signing_key = self._jwks_client.get_signing_key_from_jwt(id_token)
            payload = jwt.decode(
                id_token,
                signing_key.key,
                algorithms=['RS256'],
                audience=self.project_id,
                issuer=self.issuer,
                options={'require': ['exp', 'iat', 'sub']},
            )
        except jwt.PyJWTError as e:
            logger.warning(f"ID token verification failed: {e}")
            raise IdentityVerificationError("Verification failed") from e

        if not payload.get('sub'):
            raise IdentityVerificationError("Missing subject")

        email = payload.get('email')
        if not email:
            raise IdentityVerificationError("Missing email")

        return IdentityClaims(
            email=email,
            display_name=payload.get('name'),
            email_verified=bool(payload.get('email_verified', False)),
        )


@lru_cache(maxsize=1)
def get_identity_verifier() -> FirebaseIdTokenVerifier:
    return FirebaseIdTokenVerifier(
        project_id=settings.FIREBASE_PROJECT_ID,
        timeout=settings.IDENTITY_PROVIDER_TIMEOUT,
    )
