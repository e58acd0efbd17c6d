"""
Optimistic concurrency for task updates.

Callers must echo the version they last saw (If-Match). An update is applied
only if that version is still current; the row's version then advances by
exactly one in the same UPDATE statement. The statement itself is
conditional on the expected version, so of two requests that both passed
the in-memory check only one can write.
"""
import logging
from typing import Dict, List, Optional

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.core.exceptions import PreconditionRequired, VersionConflict
from .etags import parse_if_match
from .models import Task, TaskTag

logger = logging.getLogger(__name__)


def require_version(if_match: Optional[str]) -> int:
    """
    Decode the caller's If-Match value.

    Raises:
        PreconditionRequired: header missing or blank.
        MalformedToken: header present but not a version ETag.
    """
    if if_match is None or not if_match.strip():
        raise PreconditionRequired()
    return parse_if_match(if_match)


def apply_versioned_update(
    task: Task,
    expected_version: int,
    fields: Dict,
    tags: Optional[List[str]] = None,
) -> Task:
    """
    Apply ``fields`` (and optionally replace tags) if ``expected_version``
    is still the task's version. Returns the task reloaded at its new version,
    or as it is (version unchanged) when there is nothing to apply.

    Raises:
        VersionConflict: stale version, detected either before writing or by
            the conditional UPDATE.
    """
    if task.version != expected_version:
        raise VersionConflict(
            f"Version mismatch: expected {expected_version}, current {task.version}"
        )

    # Nothing to write: the version only moves when the task changes
    if not fields and tags is None:
        return task

    with transaction.atomic():
        updated = Task.objects.filter(pk=task.pk, version=expected_version).update(
            **fields,
            version=F('version') + 1,
            updated_at=timezone.now(),
        )
        if updated == 0:
            logger.info(f"Concurrent update lost on task {task.pk} at version {expected_version}")
            raise VersionConflict("Task was modified concurrently")

        if tags is not None:
            TaskTag.objects.filter(task_id=task.pk).delete()
            TaskTag.objects.bulk_create(TaskTag(task_id=task.pk, tag=tag) for tag in tags)

    task.refresh_from_db()
    return task
