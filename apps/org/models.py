from django.conf import settings
from django.db import models
from apps.core.models import TimeStampedModel
from apps.core import permissions
from apps.org.constants import ASN, CATEGORIES, NON_ASN, category_from_kriteria  # noqa: F401


class WorkUnit(TimeStampedModel):
    name = models.CharField(max_length=200, unique=True)
    code = models.CharField(max_length=32, unique=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Profile(TimeStampedModel):
    class Role(models.TextChoices):
        USER_UNIT = permissions.USER_UNIT, "Pegawai Unit"
        ADMIN_UNIT = permissions.ADMIN_UNIT, "Admin Unit"
        ADMIN_PUSAT = permissions.ADMIN_PUSAT, "Admin Pusat"
        USER_PIMPINAN = permissions.USER_PIMPINAN, "Pimpinan"

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="profile"
    )
    nip = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=200, db_index=True)
    role = models.CharField(max_length=16, choices=Role.choices, default=Role.USER_UNIT, db_index=True)
    work_unit = models.ForeignKey(
        WorkUnit, on_delete=models.PROTECT, null=True, blank=True, related_name="profiles"
    )
    jabatan = models.CharField(max_length=200, blank=True, default="")
    kriteria_asn = models.CharField(max_length=32, null=True, blank=True)

    class Meta:
        indexes = [models.Index(fields=["work_unit", "role"], name="org_profile_unit_role_idx")]

    def __str__(self) -> str:
        return f"{self.name} ({self.nip})"

    @property
    def category(self) -> str:
        return category_from_kriteria(self.kriteria_asn)
