"""
Identity API endpoints with session-token authentication.

Provides Google sign-in, logout, and the current user's profile. The session
token is returned in the body (for Authorization: Bearer clients) and set in
an httpOnly cookie (for browsers).
"""
import os
from django.conf import settings
from django.http import HttpRequest, HttpResponse
from ninja import Router
from ninja.errors import HttpError

from apps.core.exceptions import NotAuthenticated
from .dtos import GoogleLoginSchema, Principal, TokenResponse, UserOut
from .providers import IdentityVerificationError, get_identity_verifier
from .services import get_user_dto, upsert_user_from_identity
from .session_tokens import get_cookie_settings, get_session_token_service

router = Router(tags=["Identity"])


# =============================================================================
# Helper Functions
# =============================================================================

def get_current_principal(request: HttpRequest):
    """
    The Principal resolved by IdentityMiddleware, or None if anonymous.
    """
    return getattr(request, 'principal', None)


def require_principal(request: HttpRequest) -> Principal:
    """
    Require authentication. Raises NotAuthenticated (401) if anonymous.
    """
    principal = get_current_principal(request)
    if principal is None:
        raise NotAuthenticated()
    return principal


def is_production() -> bool:
    """Check if running in production (Lambda or DEBUG=False)."""
    return bool(os.getenv('AWS_LAMBDA_FUNCTION_NAME')) or not settings.DEBUG


# =============================================================================
# Auth Endpoints
# =============================================================================

@router.post("/google", response=TokenResponse, auth=None)
def google_login(request: HttpRequest, payload: GoogleLoginSchema):
    """
    Exchange a verified Google/Firebase ID token for a session token.

    Creates the user on first sign-in and refreshes the display name on
    later ones.
    """
    try:
        claims = get_identity_verifier().verify(payload.id_token)
    except IdentityVerificationError:
        raise HttpError(401, "Invalid identity token")

    if not claims.email_verified:
        raise HttpError(401, "Email address is not verified")

    user = upsert_user_from_identity(claims.email, claims.display_name)
    token = get_session_token_service().issue(user.id, user.email, user.display_name)

    response_data = TokenResponse(
        success=True,
        user=UserOut(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            created_at=user.created_at,
        ),
        access_token=token,
    )
    response = HttpResponse(
        response_data.model_dump_json(),
        content_type='application/json'
    )
    response.set_cookie(settings.AUTH_COOKIE_NAME, token, **get_cookie_settings(is_production()))
    return response


@router.post("/logout", response=TokenResponse, auth=None)
def logout_user(request: HttpRequest):
    """
    Clear the authentication cookie.
    """
    response = HttpResponse(
        TokenResponse(success=True, message="Logged out").model_dump_json(),
        content_type='application/json'
    )
    cookie_settings = get_cookie_settings(is_production())
    response.delete_cookie(
        settings.AUTH_COOKIE_NAME,
        path=cookie_settings['path'],
        samesite=cookie_settings['samesite'],
    )
    return response


# =============================================================================
# Profile
# =============================================================================

me_router = Router(tags=["Identity"])


@me_router.get("", response=UserOut, auth=None)
def get_me(request: HttpRequest):
    """
    Get current authenticated user's profile.
    """
    principal = require_principal(request)
    user_dto = get_user_dto(principal.user_id)
    if not user_dto:
        raise HttpError(404, "User not found")
    return user_dto
