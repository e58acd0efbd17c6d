"""
Tasks API endpoints.

Every representation carries the task version in the ETag header; PATCH
requires it back in If-Match.
"""
from typing import List, Optional
from uuid import UUID

from django.http import HttpRequest, HttpResponse
from ninja import Router

from apps.identity.api import require_principal
from . import services
from .dtos import (
    InterpretIn,
    InterpretOut,
    ProposalOut,
    ShareIn,
    SharedUserOut,
    TaskIn,
    TaskOut,
    TaskPatch,
    task_to_out,
)
from .etags import format_weak
from .interpret import interpret

router = Router(tags=["Tasks"])


def _with_etag(response: HttpResponse, task) -> TaskOut:
    response['ETag'] = format_weak(task.version)
    return task_to_out(task)


@router.get("", response=List[TaskOut], auth=None)
def list_tasks_api(
    request: HttpRequest,
    q: Optional[str] = None,
    status: Optional[str] = None,
    priority: Optional[str] = None,
):
    """
    List tasks visible to the caller (owned or shared).

    Query Parameters:
    - q: Search in title, description, category and tags
    - status: TODO or DONE
    - priority: High/Medium/Low (or HIGH/MED/LOW)
    """
    principal = require_principal(request)
    tasks = services.list_tasks(principal, q=q, status=status, priority=priority)
    return [task_to_out(t) for t in tasks]


@router.post("", response={201: TaskOut}, auth=None)
def create_task_api(request: HttpRequest, response: HttpResponse, payload: TaskIn):
    """
    Create a task owned by the caller. Returns 201 with Location and ETag.
    """
    principal = require_principal(request)
    task = services.create_task(principal, payload)
    response['Location'] = f"/api/tasks/{task.id}"
    return 201, _with_etag(response, task)


@router.get("/{task_id}", response=TaskOut, auth=None)
def get_task_api(request: HttpRequest, response: HttpResponse, task_id: UUID):
    principal = require_principal(request)
    task = services.get_task(principal, task_id)
    return _with_etag(response, task)


@router.patch("/{task_id}", response=TaskOut, auth=None)
def patch_task_api(request: HttpRequest, response: HttpResponse, task_id: UUID, payload: TaskPatch):
    """
    Partially update a task.

    Requires editor access and an If-Match header carrying the task's current
    ETag. Returns the updated task with its new ETag.
    """
    principal = require_principal(request)
    task = services.update_task(
        principal,
        task_id,
        request.headers.get('If-Match'),
        payload,
    )
    return _with_etag(response, task)


@router.delete("/{task_id}", response={204: None}, auth=None)
def delete_task_api(request: HttpRequest, task_id: UUID):
    """
    Delete a task. Owner only.
    """
    principal = require_principal(request)
    services.delete_task(principal, task_id)
    return 204, None


# =============================================================================
# Sharing
# =============================================================================

@router.get("/{task_id}/share", response=List[SharedUserOut], auth=None)
def list_shares_api(request: HttpRequest, task_id: UUID):
    principal = require_principal(request)
    return [
        SharedUserOut(email=s.user.email, display_name=s.user.display_name, role=str(s.role))
        for s in services.list_shares(principal, task_id)
    ]


@router.post("/{task_id}/share", response={204: None}, auth=None)
def share_task_api(request: HttpRequest, task_id: UUID, payload: ShareIn):
    """
    Grant viewer or editor access to a user by email. Owner only.
    """
    principal = require_principal(request)
    services.share_task(principal, task_id, payload.user_email, payload.role)
    return 204, None


@router.delete("/{task_id}/share", response={204: None}, auth=None)
def revoke_share_api(request: HttpRequest, task_id: UUID, user_email: str):
    principal = require_principal(request)
    services.revoke_share(principal, task_id, user_email)
    return 204, None


# =============================================================================
# Interpretation
# =============================================================================

ai_router = Router(tags=["Tasks"])


@ai_router.post("/interpret", response=InterpretOut, auth=None)
def interpret_api(request: HttpRequest, payload: InterpretIn):
    """
    Propose a task patch from free text ("call Alice #work !high tomorrow").

    Nothing is saved; the client applies the proposal with POST or PATCH.
    """
    require_principal(request)
    proposal = interpret(payload.text)
    return InterpretOut(proposal=ProposalOut(
        task_patch=proposal.task_patch,
        reason=proposal.reason,
        confidence=proposal.confidence,
    ))
