"""
Request/response schemas for Tasks and the mapping to and from the model.

The frontend speaks ``due_date``, ``completed`` and "High"/"Medium"/"Low";
the database stores ``due_at``, TaskStatus and TaskPriority.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from ninja import Schema

from .models import ShareRole, Task, TaskPriority, TaskStatus


class TaskIn(Schema):
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[datetime] = None
    completed: Optional[bool] = None
    tags: Optional[List[str]] = None
    source: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class TaskPatch(Schema):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[datetime] = None
    completed: Optional[bool] = None
    tags: Optional[List[str]] = None
    source: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class TaskOut(Schema):
    id: UUID
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    priority: str
    due_date: Optional[datetime] = None
    completed: bool
    status: str
    tags: List[str]
    source: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    owner_id: UUID
    owner_email: Optional[str] = None
    version: int
    created_at: datetime
    updated_at: datetime


class ShareIn(Schema):
    user_email: str
    role: ShareRole


class SharedUserOut(Schema):
    email: str
    display_name: Optional[str] = None
    role: str


class InterpretIn(Schema):
    text: Optional[str] = None


class ProposalOut(Schema):
    task_patch: TaskPatch
    reason: str
    confidence: float


class InterpretOut(Schema):
    proposal: ProposalOut


# =============================================================================
# Mapping
# =============================================================================

UI_PRIORITY = {
    TaskPriority.HIGH: "High",
    TaskPriority.MED: "Medium",
    TaskPriority.LOW: "Low",
}


def to_ui_priority(priority: Optional[str]) -> str:
    return UI_PRIORITY.get(priority, "Medium")


def to_db_priority(value: Optional[str]) -> str:
    if value is None:
        return TaskPriority.MED
    lowered = value.strip().lower()
    if lowered == "high":
        return TaskPriority.HIGH
    if lowered == "low":
        return TaskPriority.LOW
    return TaskPriority.MED


def to_db_status(completed: Optional[bool]) -> str:
    return TaskStatus.DONE if completed else TaskStatus.TODO


def task_to_out(task: Task) -> TaskOut:
    return TaskOut(
        id=task.id,
        title=task.title,
        description=task.description,
        category=task.category,
        priority=to_ui_priority(task.priority),
        due_date=task.due_at,
        completed=task.status == TaskStatus.DONE,
        status=str(task.status),
        tags=[t.tag for t in task.tags.all()],
        source=task.source,
        metadata=task.metadata,
        owner_id=task.owner_id,
        owner_email=task.owner.email,
        version=task.version,
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


def create_fields(payload: TaskIn) -> dict:
    """Model fields for a new task (tags handled separately)."""
    fields = {
        'title': payload.title,
        'description': payload.description,
        'category': payload.category,
        'priority': to_db_priority(payload.priority),
        'due_at': payload.due_date,
        'status': to_db_status(payload.completed),
        'metadata': payload.metadata,
    }
    if payload.source:
        fields['source'] = payload.source
    return fields


def patch_fields(payload: TaskPatch) -> dict:
    """
    Model fields changed by a patch. Fields left out (or null) keep their
    current value.
    """
    data = payload.dict(exclude_unset=True)
    fields = {}
    for name in ('title', 'description', 'category', 'source', 'metadata'):
        if data.get(name) is not None:
            fields[name] = data[name]
    if data.get('priority') is not None:
        fields['priority'] = to_db_priority(data['priority'])
    if data.get('due_date') is not None:
        fields['due_at'] = data['due_date']
    if data.get('completed') is not None:
        fields['status'] = to_db_status(data['completed'])
    return fields
