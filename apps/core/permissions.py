USER_UNIT = "user_unit"
ADMIN_UNIT = "admin_unit"
ADMIN_PUSAT = "admin_pusat"
USER_PIMPINAN = "user_pimpinan"

ROLES = [USER_UNIT, ADMIN_UNIT, ADMIN_PUSAT, USER_PIMPINAN]

def profile_of(user):
    if not user.is_authenticated:
        return None
    return getattr(user, "profile", None)

def has_role(user, name: str) -> bool:
    profile = profile_of(user)
    return profile is not None and profile.role == name

def is_admin_pusat(user) -> bool:
    return has_role(user, ADMIN_PUSAT) or (user.is_authenticated and user.is_superuser)

def is_admin_unit(user) -> bool:
    return has_role(user, ADMIN_UNIT)

def is_pimpinan(user) -> bool:
    return has_role(user, USER_PIMPINAN)

def can_rate(user) -> bool:
    return has_role(user, USER_UNIT) or is_pimpinan(user)

def can_evaluate_unit(user) -> bool:
    return is_admin_unit(user) or is_admin_pusat(user)

def can_view_rankings(user) -> bool:
    return is_admin_unit(user) or is_admin_pusat(user)

def can_manage_eom(user) -> bool:
    return is_admin_pusat(user)
