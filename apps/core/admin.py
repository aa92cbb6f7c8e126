from django.contrib import admin
from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("created_at", "user", "entity", "entity_id", "action", "reason")
    list_filter = ("entity", "action")
    search_fields = ("entity_id", "old_value", "new_value", "user__username")
    readonly_fields = [f.name for f in AuditLog._meta.fields]

    def has_add_permission(self, request):
        return False
