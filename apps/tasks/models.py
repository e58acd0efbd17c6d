import uuid
from django.db import models


class TaskPriority(models.TextChoices):
    HIGH = 'HIGH', 'High'
    MED = 'MED', 'Medium'
    LOW = 'LOW', 'Low'


class TaskStatus(models.TextChoices):
    TODO = 'TODO', 'To Do'
    DONE = 'DONE', 'Done'


class ShareRole(models.TextChoices):
    """
    Roles a grant can carry. Ownership is not a role: it is the task's
    owner_id, so no share row can ever make someone an owner.
    """
    VIEWER = 'viewer', 'Viewer'
    EDITOR = 'editor', 'Editor'


class Task(models.Model):
    """
    A to-do item with exactly one owner.

    ``version`` starts at 0 and advances by one on every successful update;
    it is the only concurrency-control field (exposed as the ETag).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(
        'identity.User',
        on_delete=models.PROTECT,
        related_name='owned_tasks',
    )

    title = models.CharField(max_length=500)
    description = models.TextField(blank=True, null=True)
    category = models.CharField(max_length=100, blank=True, null=True)
    priority = models.CharField(
        max_length=10,
        choices=TaskPriority.choices,
        default=TaskPriority.MED
    )
    due_at = models.DateTimeField(null=True, blank=True)
    status = models.CharField(
        max_length=10,
        choices=TaskStatus.choices,
        default=TaskStatus.TODO
    )
    metadata = models.JSONField(null=True, blank=True)
    source = models.CharField(max_length=50, default='user')

    version = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-updated_at']
        indexes = [
            models.Index(fields=['owner', '-updated_at'], name='task_owner_updated_idx'),
        ]

    def __str__(self):
        return self.title


class TaskTag(models.Model):
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name='tags')
    tag = models.CharField(max_length=100)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return self.tag


class TaskShare(models.Model):
    """
    Grant of viewer or editor access on one task to one user.

    Unique per (task, user); re-granting overwrites the role. Deleting the
    task deletes its grants.
    """
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name='shares')
    user = models.ForeignKey(
        'identity.User',
        on_delete=models.CASCADE,
        related_name='task_shares',
    )
    role = models.CharField(max_length=10, choices=ShareRole.choices)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['task', 'user'], name='uniq_task_share_task_user'),
        ]

    def __str__(self):
        return f"{self.user_id} {self.role} on {self.task_id}"
