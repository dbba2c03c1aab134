# requests_core/workflows/session.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, FrozenSet, Optional

from requests_core.choices import Role
from requests_core.workflows import normalize_role


@dataclass(frozen=True)
class ActorContext:
    """
    The acting user for one operation, resolved once per request and passed
    explicitly into workflow and deadline calls.
    """

    user: Any
    roles: FrozenSet[str] = field(default_factory=frozenset)
    display_name: str = ""

    def has_role(self, *roles: str) -> bool:
        wanted = {normalize_role(r) for r in roles}
        return bool(self.roles & wanted)

    @property
    def primary_role(self) -> Optional[str]:
        for role in Role.values:
            if role in self.roles:
                return role
        return None


def _roles_for(user) -> FrozenSet[str]:
    if getattr(user, "is_superuser", False):
        return frozenset({Role.ADMIN.value})

    from requests_core.models import UserRole

    raw = UserRole.objects.filter(user=user).values_list("role", flat=True)
    return frozenset(normalize_role(r) for r in raw if r)


def actor_for(user) -> Optional[ActorContext]:
    """
    Build an ActorContext for an authenticated user, or None for anonymous.

    Display name falls back to the label of the user's highest role
    (e.g. "Coordinator") so audit rows never carry a blank actor.
    """
    if not user or not getattr(user, "is_authenticated", False):
        return None

    roles = _roles_for(user)
    name = (user.get_full_name() or "").strip() if hasattr(user, "get_full_name") else ""

    ctx = ActorContext(user=user, roles=roles, display_name=name)
    if not name and ctx.primary_role:
        ctx = ActorContext(
            user=user,
            roles=roles,
            display_name=str(Role(ctx.primary_role).label),
        )
    return ctx
