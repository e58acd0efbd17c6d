"""
Task-level authorization.

A caller's access to a task is derived from two facts only: whether they own
it (owner_id equality) and which role, if any, their share grant carries.
"""
from enum import IntEnum
from typing import Dict
from uuid import UUID

from django.db.models import F, FilteredRelation, Q, QuerySet

from apps.core.exceptions import Forbidden, NotFound
from apps.identity.dtos import Principal
from .models import ShareRole, Task
from .sharing import get_grant_role


class AccessLevel(IntEnum):
    NONE = 0
    VIEWER = 1
    EDITOR = 2
    OWNER = 3


class TaskAction:
    READ = "task.read"
    LIST = "task.list"
    UPDATE = "task.update"
    DELETE = "task.delete"
    SHARE = "task.share"
    REVOKE_SHARE = "task.revoke_share"
    LIST_SHARES = "task.list_shares"


# Static Action -> minimum AccessLevel mapping
ACTION_MIN_LEVEL: Dict[str, AccessLevel] = {
    TaskAction.READ: AccessLevel.VIEWER,
    TaskAction.LIST: AccessLevel.VIEWER,
    TaskAction.UPDATE: AccessLevel.EDITOR,
    TaskAction.DELETE: AccessLevel.OWNER,
    TaskAction.SHARE: AccessLevel.OWNER,
    TaskAction.REVOKE_SHARE: AccessLevel.OWNER,
    TaskAction.LIST_SHARES: AccessLevel.OWNER,
}

ROLE_LEVELS: Dict[str, AccessLevel] = {
    ShareRole.VIEWER: AccessLevel.VIEWER,
    ShareRole.EDITOR: AccessLevel.EDITOR,
}


def accessible_tasks(principal: Principal) -> QuerySet:
    """
    Tasks the principal owns or holds a grant on.

    Each row is annotated with ``grant_role`` (the principal's own grant
    role, or None), so the access level can be computed without another
    query. The join is restricted to the principal's grant, which is unique
    per task, so rows are never duplicated.
    """
    user_id = principal.user_id
    return (
        Task.objects
        .annotate(my_grant=FilteredRelation('shares', condition=Q(shares__user_id=user_id)))
        .filter(Q(owner_id=user_id) | Q(my_grant__role__isnull=False))
        .annotate(grant_role=F('my_grant__role'))
        .select_related('owner')
    )


def get_visible_task(principal: Principal, task_id: UUID) -> Task:
    """
    Fetch a task only if the principal can at least view it.

    A task that does not exist and one the principal cannot see both raise
    NotFound, from the same query.
    """
    try:
        return accessible_tasks(principal).get(id=task_id)
    except Task.DoesNotExist:
        raise NotFound("Task not found")


def get_access_level(principal: Principal, task: Task) -> AccessLevel:
    if principal is None:
        return AccessLevel.NONE
    if task.owner_id == principal.user_id:
        return AccessLevel.OWNER

    if hasattr(task, 'grant_role'):
        role = task.grant_role
    else:
        role = get_grant_role(task.id, principal.user_id)
    return ROLE_LEVELS.get(role, AccessLevel.NONE)


def can_perform(principal: Principal, task: Task, action: str) -> bool:
    return get_access_level(principal, task) >= ACTION_MIN_LEVEL[action]


def require_action(principal: Principal, task: Task, action: str) -> AccessLevel:
    """
    Raises Forbidden when the principal's level is below the action's minimum.
    """
    level = get_access_level(principal, task)
    if level < ACTION_MIN_LEVEL[action]:
        raise Forbidden(f"{level.name.lower()} access cannot perform {action}")
    return level
