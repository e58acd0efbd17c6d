"""Services for Identity app."""
import logging
from typing import Optional
from uuid import UUID

from django.db import IntegrityError, transaction

from .models import User
from .dtos import UserDTO

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_dto(user_id) -> Optional[UserDTO]:
    try:
        user = User.objects.get(id=user_id)
        return UserDTO(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            created_at=user.created_at,
        )
    except User.DoesNotExist:
        return None


def upsert_user_from_identity(email: str, display_name: Optional[str]) -> User:
    """
    Find or create the user for a verified upstream identity.

    A non-empty display name that differs from the stored one replaces it;
    a missing one never clears it.
    """
    email = normalize_email(email)
    try:
        with transaction.atomic():
            user, created = User.objects.get_or_create(
                email=email,
                defaults={'display_name': display_name},
            )
    except IntegrityError:
        # Lost a race with a concurrent first login for the same address
        user, created = User.objects.get(email=email), False

    if created:
        logger.info(f"Created user {user.id} on first sign-in")
    elif display_name and display_name != user.display_name:
        user.display_name = display_name
        user.save(update_fields=['display_name'])
    return user


def get_or_create_user_by_email(email: str) -> User:
    """
    Resolve a share target by email, registering a placeholder user (no
    display name) when the address has never signed in.
    """
    email = normalize_email(email)
    try:
        with transaction.atomic():
            user, _ = User.objects.get_or_create(email=email)
    except IntegrityError:
        user = User.objects.get(email=email)
    return user


def find_user_by_email(email: str) -> Optional[User]:
    return User.objects.filter(email=normalize_email(email)).first()


def user_exists(user_id: UUID) -> bool:
    return User.objects.filter(id=user_id).exists()
