from io import StringIO

from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from apps.core.models import AuditLog
from apps.core.permissions import ADMIN_UNIT, USER_PIMPINAN, can_rate, is_admin_pusat, is_admin_unit
from apps.org.models import Profile


class GrantRoleTests(TestCase):
    def setUp(self):
        self.user = get_user_model().objects.create_user(username="sari", password="x")
        self.profile = Profile.objects.create(nip="123", name="Sari")

    def test_links_and_sets_role(self):
        call_command("grant_role", "sari", "123", ADMIN_UNIT, stdout=StringIO())
        self.profile.refresh_from_db()
        self.assertEqual(self.profile.user, self.user)
        self.assertTrue(is_admin_unit(self.user))
        self.assertFalse(can_rate(self.user))

        call_command("grant_role", "sari", "123", USER_PIMPINAN, stdout=StringIO())
        self.assertTrue(can_rate(get_user_model().objects.get(pk=self.user.pk)))

    def test_errors(self):
        with self.assertRaises(CommandError):
            call_command("grant_role", "nobody", "123", ADMIN_UNIT)
        with self.assertRaises(CommandError):
            call_command("grant_role", "sari", "999", ADMIN_UNIT)

        other = get_user_model().objects.create_user(username="other", password="x")
        self.profile.user = other
        self.profile.save()
        with self.assertRaises(CommandError):
            call_command("grant_role", "sari", "123", ADMIN_UNIT)


class AuditLogTests(TestCase):
    def test_anonymous_user_not_stored(self):
        entry = AuditLog.record(user=AnonymousUser(), entity="X", entity_id=5, action=AuditLog.Action.CREATE)
        self.assertIsNone(entry.user)
        self.assertEqual(entry.entity_id, "5")
        self.assertFalse(is_admin_pusat(AnonymousUser()))
