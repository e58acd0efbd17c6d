import logging
import uuid
from typing import Optional

from django.conf import settings
from django.utils.deprecation import MiddlewareMixin

from apps.core.exceptions import InvalidCredential
from .dtos import Principal
from .session_tokens import get_session_token_service

logger = logging.getLogger(__name__)

BEARER_PREFIX = 'bearer '


def extract_token(request) -> Optional[str]:
    """
    Bearer token from the Authorization header, else the auth cookie.

    A non-Bearer Authorization header (e.g. Basic) is ignored rather than
    treated as an error.
    """
    header = request.headers.get('Authorization', '')
    if header[:len(BEARER_PREFIX)].lower() == BEARER_PREFIX:
        token = header[len(BEARER_PREFIX):].strip()
        if token:
            return token

    cookie = request.COOKIES.get(settings.AUTH_COOKIE_NAME)
    return cookie or None


class IdentityMiddleware(MiddlewareMixin):
    """
    Resolves the caller's Principal from a session token.

    Sets ``request.principal`` to a Principal or None. Verification never
    aborts the request: any failure leaves it anonymous, and endpoints that
    need a caller reject it downstream. The attribute is dropped again when
    the response leaves, so nothing outlives the request.
    """

    def __init__(self, get_response=None, token_service=None):
        super().__init__(get_response)
        self._token_service = token_service

    @property
    def token_service(self):
        return self._token_service or get_session_token_service()

    def process_request(self, request):
        request.principal = None

        token = extract_token(request)
        if not token:
            return

        request.principal = self.resolve_principal(token)

    def resolve_principal(self, token: str) -> Optional[Principal]:
        try:
            credential = self.token_service.verify(token)
        except InvalidCredential as e:
            logger.debug(f"Rejected session token: {e}")
            return None
        except Exception:
            logger.warning("Unexpected error verifying session token", exc_info=True)
            return None

        subject = credential.subject
        if not isinstance(subject, str):
            logger.debug("Session token has no subject")
            return None
        try:
            user_id = uuid.UUID(subject)
        except ValueError:
            logger.debug("Session token subject is not a user id")
            return None

        return Principal(
            user_id=user_id,
            email=credential.email,
            display_name=credential.display_name,
        )

    def process_response(self, request, response):
        if hasattr(request, 'principal'):
            del request.principal
        return response
