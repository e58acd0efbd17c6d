"""
Task operations.

Every function takes the caller's Principal explicitly and authorizes the
specific action against the specific task before touching it.
"""
import logging
from typing import List, Optional
from uuid import UUID

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import transaction
from django.db.models import Exists, OuterRef, Q

from apps.core.exceptions import InvalidGrant, NotFound
from apps.identity.dtos import Principal
from apps.identity.services import find_user_by_email, get_or_create_user_by_email, user_exists
from . import sharing
from .concurrency import apply_versioned_update, require_version
from .dtos import TaskIn, TaskPatch, create_fields, patch_fields, to_db_priority
from .models import Task, TaskShare, TaskTag
from .permissions import TaskAction, accessible_tasks, get_visible_task, require_action

logger = logging.getLogger(__name__)


def list_tasks(
    principal: Principal,
    q: Optional[str] = None,
    status: Optional[str] = None,
    priority: Optional[str] = None,
) -> List[Task]:
    """
    Tasks the principal can view, most recently updated first.

    ``q`` matches title, description, category or any tag, case-insensitively.
    ``status`` is TODO/DONE; ``priority`` accepts the UI or stored spelling.
    """
    queryset = accessible_tasks(principal)

    if q:
        tag_match = TaskTag.objects.filter(task=OuterRef('pk'), tag__icontains=q)
        queryset = queryset.filter(
            Q(title__icontains=q) |
            Q(description__icontains=q) |
            Q(category__icontains=q) |
            Exists(tag_match)
        )

    if status:
        queryset = queryset.filter(status=status.upper())
    if priority:
        queryset = queryset.filter(priority=_normalize_priority(priority))

    queryset = queryset.prefetch_related('tags').order_by('-updated_at')
    return list(queryset[:settings.TASK_LIST_LIMIT])


def _normalize_priority(value: str) -> str:
    upper = value.strip().upper()
    if upper in ('HIGH', 'MED', 'LOW'):
        return upper
    return to_db_priority(value)


def create_task(principal: Principal, payload: TaskIn) -> Task:
    """
    Create a task owned by the principal, at version 0.
    """
    if not user_exists(principal.user_id):
        raise NotFound("Owner not found")

    with transaction.atomic():
        task = Task.objects.create(owner_id=principal.user_id, **create_fields(payload))
        if payload.tags:
            TaskTag.objects.bulk_create(TaskTag(task=task, tag=tag) for tag in payload.tags)

    logger.info(f"User {principal.user_id} created task {task.id}")
    return get_visible_task(principal, task.id)


def get_task(principal: Principal, task_id: UUID) -> Task:
    task = get_visible_task(principal, task_id)
    require_action(principal, task, TaskAction.READ)
    return task


def update_task(principal: Principal, task_id: UUID, if_match: Optional[str], payload: TaskPatch) -> Task:
    """
    Apply a partial update guarded by the caller's If-Match version.

    Order of checks: precondition present and well-formed, task visible,
    caller at least editor, version still current.
    """
    expected_version = require_version(if_match)
    task = get_visible_task(principal, task_id)
    require_action(principal, task, TaskAction.UPDATE)

    return apply_versioned_update(
        task,
        expected_version,
        patch_fields(payload),
        tags=payload.tags,
    )


def delete_task(principal: Principal, task_id: UUID) -> None:
    task = get_visible_task(principal, task_id)
    require_action(principal, task, TaskAction.DELETE)
    # Grants go with the task (ON DELETE CASCADE)
    task.delete()
    logger.info(f"User {principal.user_id} deleted task {task_id}")


def share_task(principal: Principal, task_id: UUID, user_email: str, role: str) -> TaskShare:
    """
    Grant (or re-grant) viewer/editor access to the user with this email.

    Addresses that have never signed in get a placeholder user so the grant
    applies on their first sign-in.
    """
    task = get_visible_task(principal, task_id)
    require_action(principal, task, TaskAction.SHARE)

    try:
        validate_email(user_email)
    except ValidationError:
        raise InvalidGrant("Invalid email address")

    target = get_or_create_user_by_email(user_email)
    share = sharing.grant(task, target, role)
    logger.info(f"Task {task_id} shared with {target.id} as {share.role}")
    return share


def list_shares(principal: Principal, task_id: UUID) -> List[TaskShare]:
    task = get_visible_task(principal, task_id)
    require_action(principal, task, TaskAction.LIST_SHARES)
    return sharing.list_grants(task)


def revoke_share(principal: Principal, task_id: UUID, user_email: str) -> None:
    task = get_visible_task(principal, task_id)
    require_action(principal, task, TaskAction.REVOKE_SHARE)

    target = find_user_by_email(user_email)
    if target is None:
        raise NotFound("User to revoke not found")

    if sharing.revoke(task, target):
        logger.info(f"Task {task_id} share revoked for {target.id}")

