"""
Share grant storage: (task, user) -> role.
"""
from typing import List, Optional
from uuid import UUID

from django.db import IntegrityError, transaction

from apps.core.exceptions import InvalidGrant
from apps.identity.models import User
from .models import ShareRole, Task, TaskShare


def grant(task: Task, user: User, role: str) -> TaskShare:
    """
    Create or overwrite the user's grant on a task (last write wins).

    The owner cannot be granted a role on their own task, and only the
    ShareRole values are accepted.
    """
    if role not in ShareRole.values:
        raise InvalidGrant(f"Unknown role: {role}")
    if user.id == task.owner_id:
        raise InvalidGrant("The owner already has full access to this task")

    try:
        with transaction.atomic():
            share, _ = TaskShare.objects.update_or_create(
                task=task,
                user=user,
                defaults={'role': role},
            )
    except IntegrityError:
        # Concurrent grant for the same pair; apply ours on top of it
        TaskShare.objects.filter(task=task, user=user).update(role=role)
        share = TaskShare.objects.get(task=task, user=user)
    return share


def revoke(task: Task, user: User) -> bool:
    deleted, _ = TaskShare.objects.filter(task=task, user=user).delete()
    return deleted > 0


def list_grants(task: Task) -> List[TaskShare]:
    return list(
        TaskShare.objects
        .filter(task=task)
        .select_related('user')
        .order_by('user__email')
    )


def get_grant_role(task_id: UUID, user_id: UUID) -> Optional[str]:
    return (
        TaskShare.objects
        .filter(task_id=task_id, user_id=user_id)
        .values_list('role', flat=True)
        .first()
    )
