from django.contrib import admin
from .models import WorkUnit, Profile

from apps.core.permissions import is_admin_pusat, profile_of


@admin.register(WorkUnit)
class WorkUnitAdmin(admin.ModelAdmin):
    search_fields = ("name", "code")
    list_display = ("code", "name")


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "nip",
        "role",
        "work_unit",
        "kriteria_asn",
    )
    list_filter = ("role", "kriteria_asn", "work_unit")
    search_fields = ("name", "nip")

    def get_queryset(self, request):
        qs = super().get_queryset(request).select_related("work_unit", "user")
        if is_admin_pusat(request.user):
            return qs
        profile = profile_of(request.user)
        if profile is None or not profile.work_unit_id:
            return qs.none()
        return qs.filter(work_unit_id=profile.work_unit_id)
