import tempfile
from io import StringIO
from pathlib import Path

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from apps.core.permissions import ADMIN_PUSAT, ADMIN_UNIT, USER_UNIT
from apps.org.constants import ASN, NON_ASN, category_from_kriteria
from apps.org.models import Profile, WorkUnit
from apps.org.selectors import employees_visible_to


class CategoryTests(TestCase):
    def test_only_literal_non_asn(self):
        self.assertEqual(category_from_kriteria("Non ASN"), NON_ASN)
        for value in (None, "", "ASN", "non asn", "PPPK"):
            self.assertEqual(category_from_kriteria(value), ASN)

        p = Profile(nip="1", name="A", kriteria_asn=NON_ASN)
        self.assertEqual(p.category, NON_ASN)


class EmployeesVisibleToTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.unit_a = WorkUnit.objects.create(name="Umum", code="UMUM")
        self.unit_b = WorkUnit.objects.create(name="Keuangan", code="KEU")
        self.a1 = Profile.objects.create(nip="1", name="A1", work_unit=self.unit_a)
        self.b1 = Profile.objects.create(nip="2", name="B1", work_unit=self.unit_b)

        self.unit_admin = User.objects.create_user(username="ua", password="x")
        Profile.objects.create(user=self.unit_admin, nip="3", name="UA", work_unit=self.unit_a, role=ADMIN_UNIT)
        self.pusat = User.objects.create_user(username="pusat", password="x")
        Profile.objects.create(user=self.pusat, nip="4", name="P", role=ADMIN_PUSAT)
        self.staff = User.objects.create_user(username="staf", password="x")
        Profile.objects.create(user=self.staff, nip="5", name="S", work_unit=self.unit_a, role=USER_UNIT)
        self.superuser = User.objects.create_superuser(username="root", password="x")

    def test_scopes(self):
        self.assertEqual(employees_visible_to(self.pusat).count(), 5)
        self.assertEqual(employees_visible_to(self.superuser).count(), 5)
        unit_ids = set(employees_visible_to(self.unit_admin).values_list("work_unit_id", flat=True))
        self.assertEqual(unit_ids, {self.unit_a.id})
        self.assertFalse(employees_visible_to(self.staff).exists())


class ImportEmployeesTests(TestCase):
    def setUp(self):
        self.unit = WorkUnit.objects.create(name="Umum", code="UMUM")
        Profile.objects.create(nip="100", name="Lama", work_unit=self.unit)

    def _csv(self, content):
        tmp = tempfile.NamedTemporaryFile("w", suffix=".csv", delete=False, encoding="utf-8")
        tmp.write(content)
        tmp.close()
        self.addCleanup(Path(tmp.name).unlink)
        return tmp.name

    def test_dry_run_then_apply(self):
        path = self._csv(
            "nip;name;work_unit_code;kriteria_asn;role\n"
            "100;Baru;UMUM;;\n"
            "200;Sinta;UMUM;Non ASN;user_unit\n"
            "300;X;NOPE;;\n"
        )
        out = StringIO()
        call_command("import_employees", path, stdout=out)
        self.assertIn("DRY-RUN", out.getvalue())
        self.assertEqual(Profile.objects.get(nip="100").name, "Lama")
        self.assertFalse(Profile.objects.filter(nip="200").exists())

        out = StringIO()
        call_command("import_employees", path, "--apply", stdout=out)
        text = out.getvalue()
        self.assertIn("create: 1", text)
        self.assertIn("update: 1", text)
        self.assertIn("error: 1", text)
        self.assertEqual(Profile.objects.get(nip="100").name, "Baru")
        self.assertEqual(Profile.objects.get(nip="200").category, NON_ASN)

    def test_strict_and_header(self):
        path = self._csv("nip;name;work_unit_code;role\n400;Y;UMUM;raja\n")
        with self.assertRaises(CommandError):
            call_command("import_employees", path, "--apply", "--strict", stdout=StringIO())
        self.assertFalse(Profile.objects.filter(nip="400").exists())

        path = self._csv("nip;name\n1;A\n")
        with self.assertRaises(CommandError):
            call_command("import_employees", path, stdout=StringIO())

        with self.assertRaises(CommandError):
            call_command("import_employees", "/nonexistent/file.csv")
