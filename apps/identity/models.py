import uuid
from django.db import models


class User(models.Model):
    """
    A person known to the service, keyed by the email the upstream identity
    provider vouched for. Created lazily on first sign-in (or when someone
    shares a task with the address) and never deleted here.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(max_length=320, unique=True)
    display_name = models.CharField(max_length=255, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['email']

    def __str__(self):
        return self.display_name or self.email
