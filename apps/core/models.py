from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class AuditLog(TimeStampedModel):
    class Action(models.TextChoices):
        CREATE = "CREATE", "Create"
        UPDATE = "UPDATE", "Update"
        DELETE = "DELETE", "Delete"
        DESIGNATE = "DESIGNATE", "Designate"
        REMOVE = "REMOVE", "Remove"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True
    )
    entity = models.CharField(max_length=80)
    entity_id = models.CharField(max_length=64)
    action = models.CharField(max_length=16, choices=Action.choices)
    field = models.CharField(max_length=80, blank=True, default="")
    old_value = models.TextField(blank=True, default="")
    new_value = models.TextField(blank=True, default="")
    reason = models.TextField(blank=True, default="")

    class Meta:
        indexes = [
            models.Index(fields=["entity", "entity_id"], name="core_audit_entity_idx"),
            models.Index(fields=["created_at"], name="core_audit_created_idx"),
        ]

    @classmethod
    def record(cls, *, user, entity: str, entity_id, action: str, field: str = "",
               old_value: str = "", new_value: str = "", reason: str = "") -> "AuditLog":
        return cls.objects.create(
            user=user if user is not None and user.is_authenticated else None,
            entity=entity,
            entity_id=str(entity_id),
            action=action,
            field=field,
            old_value=old_value,
            new_value=new_value,
            reason=reason,
        )
