# requests_core/permissions.py
from __future__ import annotations

from rest_framework.permissions import SAFE_METHODS, BasePermission

from requests_core.choices import Role
from requests_core.workflows.session import actor_for


# ------------------------------------------------------------------
# Role definitions
# ------------------------------------------------------------------
CREATE_ROLES = {Role.REQUESTER, Role.ADMIN}
DEADLINE_ROLES = {Role.COORDINATOR, Role.ADMIN}


def user_has_any_role(user, allowed_roles) -> bool:
    actor = actor_for(user)
    return bool(actor and actor.has_role(*allowed_roles))


# ------------------------------------------------------------------
# Permission classes
# ------------------------------------------------------------------
class IsRoleAllowedOrReadOnly(BasePermission):
    """
    Read: any authenticated user (listings are role-scoped by the view)
    Create: requester or admin
    Update: any authenticated user who can see the object
    """

    message = "Only requesters can create sample requests."

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False

        if request.method in SAFE_METHODS:
            return True

        if getattr(view, "action", None) == "create":
            return user_has_any_role(user, CREATE_ROLES)

        return True


class CanEditDeadline(BasePermission):
    """
    Deadline changes are a coordinator decision. Reads stay open to any
    authenticated user.
    """

    message = "Only coordinators can change the required-by deadline."

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False

        if request.method in SAFE_METHODS:
            return True

        return user_has_any_role(user, DEADLINE_ROLES)
