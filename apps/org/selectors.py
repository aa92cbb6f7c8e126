from django.db.models import QuerySet
from apps.org.models import Profile
from apps.core.permissions import is_admin_pusat, is_admin_unit, profile_of

def employees_visible_to(user) -> QuerySet[Profile]:
    qs = Profile.objects.select_related("work_unit")
    if is_admin_pusat(user):
        return qs
    profile = profile_of(user)
    if is_admin_unit(user) and profile.work_unit_id:
        return qs.filter(work_unit_id=profile.work_unit_id)
    return qs.none()
