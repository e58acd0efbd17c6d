"""
Tests for task services: listing, creation, deletion and sharing.
"""
from uuid import uuid4

from django.test import TestCase, override_settings

from apps.core.exceptions import Forbidden, InvalidGrant, NotFound
from apps.identity.dtos import Principal
from apps.identity.models import User
from apps.tasks import services
from apps.tasks.dtos import TaskIn, task_to_out
from apps.tasks.models import ShareRole, Task, TaskPriority, TaskShare, TaskStatus


def principal_for(user):
    return Principal(user_id=user.id, email=user.email, display_name=user.display_name)


class CreateTaskTest(TestCase):

    def setUp(self):
        self.owner = User.objects.create(email="owner@example.com", display_name="Owner")
        self.principal = principal_for(self.owner)

    def test_create_starts_at_version_zero(self):
        task = services.create_task(self.principal, TaskIn(
            title="Buy milk",
            priority="High",
            completed=False,
            tags=["errands", "home"],
        ))

        self.assertEqual(task.version, 0)
        self.assertEqual(task.owner_id, self.owner.id)
        self.assertEqual(task.priority, TaskPriority.HIGH)
        self.assertEqual(task.status, TaskStatus.TODO)
        self.assertEqual(task.source, "user")

        out = task_to_out(task)
        self.assertEqual(out.priority, "High")
        self.assertFalse(out.completed)
        self.assertEqual(sorted(out.tags), ["errands", "home"])
        self.assertEqual(out.owner_email, "owner@example.com")

    def test_unknown_priority_defaults_to_medium(self):
        task = services.create_task(self.principal, TaskIn(title="x", priority="urgent"))
        self.assertEqual(task.priority, TaskPriority.MED)

    def test_owner_must_exist(self):
        ghost = Principal(user_id=uuid4(), email="ghost@example.com", display_name=None)
        with self.assertRaises(NotFound):
            services.create_task(ghost, TaskIn(title="x"))
        self.assertFalse(Task.objects.exists())


class ListTasksTest(TestCase):

    def setUp(self):
        self.alice = User.objects.create(email="alice@example.com")
        self.bob = User.objects.create(email="bob@example.com")
        self.alice_p = principal_for(self.alice)

        self.groceries = services.create_task(self.alice_p, TaskIn(
            title="Groceries", category="home", priority="Low", tags=["weekly"],
        ))
        self.report = services.create_task(self.alice_p, TaskIn(
            title="Quarterly report", description="Numbers for Q3", completed=True,
        ))
        self.bobs = services.create_task(principal_for(self.bob), TaskIn(title="Bob's private"))

    def ids(self, tasks):
        return {t.id for t in tasks}

    def test_only_visible_tasks(self):
        self.assertEqual(
            self.ids(services.list_tasks(self.alice_p)),
            {self.groceries.id, self.report.id},
        )

    def test_shared_tasks_are_listed(self):
        TaskShare.objects.create(task=self.bobs, user=self.alice, role=ShareRole.VIEWER)
        self.assertIn(self.bobs.id, self.ids(services.list_tasks(self.alice_p)))

    def test_search_matches_fields_and_tags(self):
        self.assertEqual(self.ids(services.list_tasks(self.alice_p, q="q3")), {self.report.id})
        self.assertEqual(self.ids(services.list_tasks(self.alice_p, q="HOME")), {self.groceries.id})
        self.assertEqual(self.ids(services.list_tasks(self.alice_p, q="week")), {self.groceries.id})
        self.assertEqual(self.ids(services.list_tasks(self.alice_p, q="private")), set())

    def test_status_and_priority_filters(self):
        self.assertEqual(
            self.ids(services.list_tasks(self.alice_p, status="done")),
            {self.report.id},
        )
        self.assertEqual(
            self.ids(services.list_tasks(self.alice_p, priority="Low")),
            {self.groceries.id},
        )
        self.assertEqual(
            self.ids(services.list_tasks(self.alice_p, priority="MED")),
            {self.report.id},
        )

    @override_settings(TASK_LIST_LIMIT=1)
    def test_limit(self):
        self.assertEqual(len(services.list_tasks(self.alice_p)), 1)


class DeleteTaskTest(TestCase):

    def setUp(self):
        self.owner = User.objects.create(email="owner@example.com")
        self.editor = User.objects.create(email="editor@example.com")
        self.task = Task.objects.create(owner=self.owner, title="Doomed")
        TaskShare.objects.create(task=self.task, user=self.editor, role=ShareRole.EDITOR)

    def test_editor_cannot_delete(self):
        with self.assertRaises(Forbidden):
            services.delete_task(principal_for(self.editor), self.task.id)
        self.assertTrue(Task.objects.filter(id=self.task.id).exists())

    def test_owner_delete_removes_grants(self):
        services.delete_task(principal_for(self.owner), self.task.id)
        self.assertFalse(Task.objects.filter(id=self.task.id).exists())
        self.assertFalse(TaskShare.objects.filter(task_id=self.task.id).exists())


class SharingTest(TestCase):

    def setUp(self):
        self.owner = User.objects.create(email="owner@example.com", display_name="Owner")
        self.friend = User.objects.create(email="friend@example.com", display_name="Friend")
        self.owner_p = principal_for(self.owner)
        self.task = Task.objects.create(owner=self.owner, title="Plan trip")

    def test_share_then_overwrite_role(self):
        services.share_task(self.owner_p, self.task.id, "friend@example.com", ShareRole.VIEWER)
        services.share_task(self.owner_p, self.task.id, "Friend@Example.com", ShareRole.EDITOR)

        shares = services.list_shares(self.owner_p, self.task.id)
        self.assertEqual(len(shares), 1)
        self.assertEqual(shares[0].user_id, self.friend.id)
        self.assertEqual(shares[0].role, ShareRole.EDITOR)

    def test_share_with_unknown_email_creates_placeholder(self):
        services.share_task(self.owner_p, self.task.id, "newcomer@example.com", ShareRole.VIEWER)

        newcomer = User.objects.get(email="newcomer@example.com")
        self.assertIsNone(newcomer.display_name)
        self.assertTrue(TaskShare.objects.filter(task=self.task, user=newcomer).exists())

    def test_self_grant_rejected(self):
        with self.assertRaises(InvalidGrant):
            services.share_task(self.owner_p, self.task.id, "owner@example.com", ShareRole.EDITOR)
        self.assertFalse(TaskShare.objects.exists())

    def test_unknown_role_rejected(self):
        with self.assertRaises(InvalidGrant):
            services.share_task(self.owner_p, self.task.id, "friend@example.com", "owner")

    def test_invalid_email_rejected(self):
        with self.assertRaises(InvalidGrant):
            services.share_task(self.owner_p, self.task.id, "not-an-email", ShareRole.VIEWER)
        self.assertEqual(User.objects.count(), 2)

    def test_non_owner_cannot_manage_shares(self):
        TaskShare.objects.create(task=self.task, user=self.friend, role=ShareRole.EDITOR)
        friend_p = principal_for(self.friend)

        with self.assertRaises(Forbidden):
            services.share_task(friend_p, self.task.id, "other@example.com", ShareRole.VIEWER)
        with self.assertRaises(Forbidden):
            services.list_shares(friend_p, self.task.id)
        with self.assertRaises(Forbidden):
            services.revoke_share(friend_p, self.task.id, "friend@example.com")

    def test_revoke(self):
        services.share_task(self.owner_p, self.task.id, "friend@example.com", ShareRole.VIEWER)
        services.revoke_share(self.owner_p, self.task.id, "friend@example.com")

        self.assertEqual(services.list_shares(self.owner_p, self.task.id), [])
        with self.assertRaises(NotFound):
            services.get_task(principal_for(self.friend), self.task.id)

    def test_revoke_without_grant_is_noop(self):
        services.revoke_share(self.owner_p, self.task.id, "friend@example.com")
        self.assertFalse(TaskShare.objects.exists())

    def test_revoke_unknown_user(self):
        with self.assertRaises(NotFound):
            services.revoke_share(self.owner_p, self.task.id, "nobody@example.com")
