"""
Django settings for the Taskshare project.

Every value is read from the environment so the same image runs locally,
on a traditional server, and on AWS Lambda.
"""
import os
from pathlib import Path

from .database import get_database_config

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).lower() in ('1', 'true', 'yes')


SECRET_KEY = os.getenv(
    'DJANGO_SECRET_KEY',
    'django-insecure-dev-only-key-change-me-before-deploying',
)
DEBUG = _env_bool('DJANGO_DEBUG')
ALLOWED_HOSTS = [h.strip() for h in os.getenv('DJANGO_ALLOWED_HOSTS', '*').split(',') if h.strip()]


# =============================================================================
# Applications
# =============================================================================

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'apps.core',
    'apps.identity',
    'apps.tasks',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
    'apps.identity.middleware.IdentityMiddleware',
]

ROOT_URLCONF = 'config.urls'
WSGI_APPLICATION = 'config.wsgi.application'
ASGI_APPLICATION = 'config.asgi.application'

TEMPLATES = []


# =============================================================================
# Database
# =============================================================================

DATABASES = {
    'default': get_database_config(BASE_DIR),
}
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

USE_TZ = True
TIME_ZONE = 'UTC'
LANGUAGE_CODE = 'en-us'


# =============================================================================
# Session tokens (service-issued bearer credential)
# =============================================================================

SESSION_TOKEN_SECRET = os.getenv('SESSION_TOKEN_SECRET', SECRET_KEY)
SESSION_TOKEN_ISSUER = os.getenv('SESSION_TOKEN_ISSUER', 'taskshare')
SESSION_TOKEN_TTL_DAYS = int(os.getenv('SESSION_TOKEN_TTL_DAYS', '7'))
AUTH_COOKIE_NAME = os.getenv('AUTH_COOKIE_NAME', 'APP_AUTH')


# =============================================================================
# Upstream identity provider (Firebase / Google sign-in)
# =============================================================================

FIREBASE_PROJECT_ID = os.getenv('FIREBASE_PROJECT_ID', '')
IDENTITY_PROVIDER_TIMEOUT = int(os.getenv('IDENTITY_PROVIDER_TIMEOUT', '5'))


# =============================================================================
# Tasks
# =============================================================================

TASK_LIST_LIMIT = int(os.getenv('TASK_LIST_LIMIT', '100'))


# =============================================================================
# Logging
# =============================================================================

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': os.getenv('LOG_LEVEL', 'INFO'),
    },
    'loggers': {
        'django.db.backends': {
            'level': 'WARNING',
        },
    },
}
