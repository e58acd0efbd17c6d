from django.apps import AppConfig


class IdentityConfig(AppConfig):
    name = 'apps.identity'
    label = 'identity'
    default_auto_field = 'django.db.models.BigAutoField'

    def ready(self):
        # Build the session token service now so a short signing key stops
        # startup instead of failing on the first authenticated request.
        from .session_tokens import get_session_token_service
        get_session_token_service()
