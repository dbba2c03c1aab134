"""
Authoritative workflow rules for sample requests.

Defines:
- Status universe and allowed transitions
- Role requirements per transition
- Fulfillment-method constraints on transitions
- Introspection helpers used by the API
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Set

from requests_core.choices import PickupMethod, RequestStatus, Role


# ===============================================================
# ROLE NORMALIZATION
# ===============================================================
# Examples handled:
# - "Coordinator" -> coordinator
# - "field-dispatcher" -> dispatcher
# - "Sample Maker" -> maker
ROLE_ALIASES: Dict[str, str] = {
    "ADMIN": Role.ADMIN,
    "SUPERUSER": Role.ADMIN,
    "SYSTEM_ADMIN": Role.ADMIN,
    "COORDINATOR": Role.COORDINATOR,
    "SAMPLE_COORDINATOR": Role.COORDINATOR,
    "REQUESTER": Role.REQUESTER,
    "SALES": Role.REQUESTER,
    "MAKER": Role.MAKER,
    "SAMPLE_MAKER": Role.MAKER,
    "PRODUCTION": Role.MAKER,
    "DISPATCHER": Role.DISPATCHER,
    "FIELD_DISPATCHER": Role.DISPATCHER,
}


def normalize_role(role: Optional[str]) -> str:
    """
    Canonicalize role strings so that small formatting differences
    do not break permission logic.
    """
    r = (role or "").strip().upper()
    if not r:
        return r

    r = re.sub(r"[\s\-]+", "_", r)
    r = re.sub(r"_+", "_", r)

    return str(ROLE_ALIASES.get(r, r.lower()))


def normalize_status(value: Optional[str]) -> str:
    return str(value or "").strip().lower()


# ===============================================================
# REQUEST LIFECYCLE
# ===============================================================
S = RequestStatus

STATUSES: Set[str] = {s.value for s in RequestStatus}

TERMINAL_STATES: Set[str] = {S.RECEIVED, S.REJECTED}

# Rejection is allowed from any submitted, not yet dispatched state.
_REJECTABLE: Set[str] = {
    S.PENDING_APPROVAL,
    S.APPROVED,
    S.ASSIGNED,
    S.IN_PRODUCTION,
    S.READY,
}

TRANSITIONS: Dict[str, Set[str]] = {
    S.DRAFT: {S.PENDING_APPROVAL},
    S.PENDING_APPROVAL: {S.APPROVED, S.REJECTED},
    S.APPROVED: {S.ASSIGNED, S.REJECTED},
    S.ASSIGNED: {S.IN_PRODUCTION, S.REJECTED},
    S.IN_PRODUCTION: {S.READY, S.REJECTED},
    S.READY: {S.DISPATCHED, S.RECEIVED, S.REJECTED},
    S.DISPATCHED: {S.RECEIVED},
    S.RECEIVED: set(),
    S.REJECTED: set(),
}

_STAFF = {Role.COORDINATOR, Role.ADMIN}

TRANSITION_ROLES: Dict[str, Dict[str, Set[str]]] = {
    S.DRAFT: {
        S.PENDING_APPROVAL: {Role.REQUESTER, Role.ADMIN},
    },
    S.PENDING_APPROVAL: {
        S.APPROVED: _STAFF,
    },
    S.APPROVED: {
        S.ASSIGNED: _STAFF,
    },
    S.ASSIGNED: {
        S.IN_PRODUCTION: {Role.MAKER} | _STAFF,
    },
    S.IN_PRODUCTION: {
        S.READY: {Role.MAKER} | _STAFF,
    },
    S.READY: {
        S.DISPATCHED: {Role.DISPATCHER} | _STAFF,
        S.RECEIVED: {Role.REQUESTER} | _STAFF,
    },
    S.DISPATCHED: {
        S.RECEIVED: {Role.REQUESTER} | _STAFF,
    },
}

for _state in _REJECTABLE:
    TRANSITION_ROLES.setdefault(_state, {})[S.REJECTED] = set(_STAFF)


def _method_allows(current: str, target: str, method: Optional[str]) -> bool:
    """
    Fulfillment-method constraints:
      - self pickup skips dispatch (ready -> received)
      - delivery methods must be dispatched before they can be received
    """
    if method is None:
        return True

    self_pickup = method == PickupMethod.SELF_PICKUP

    if current == S.READY and target == S.DISPATCHED:
        return not self_pickup
    if current == S.READY and target == S.RECEIVED:
        return self_pickup
    return True


def _method_allows_role(current: str, target: str, method: Optional[str], role: str) -> bool:
    # Dispatchers only handle field boy deliveries.
    if role == Role.DISPATCHER and current == S.READY and target == S.DISPATCHED:
        return method is None or method == PickupMethod.FIELD_BOY
    return True


# ===============================================================
# VALIDATION
# ===============================================================
def is_terminal(status: str) -> bool:
    return normalize_status(status) in TERMINAL_STATES


def validate_transition(old: str, new: str, method: Optional[str] = None) -> None:
    """
    Raises ValueError if the transition is invalid for the canonical workflow.
    """
    old = normalize_status(old)
    new = normalize_status(new)

    if old not in STATUSES:
        raise ValueError(f"Unknown request status: {old}")

    if new not in STATUSES:
        raise ValueError(f"Unknown request status: {new}")

    if old == new:
        return

    if new not in TRANSITIONS.get(old, set()):
        raise ValueError(f"Invalid request status transition: {old} -> {new}")

    if not _method_allows(old, new, method):
        raise ValueError(
            f"Transition {old} -> {new} is not available for pickup method '{method}'"
        )


def validate_transition_with_role(
    old: str,
    new: str,
    roles: Iterable[str],
    method: Optional[str] = None,
) -> None:
    """
    Canonical enforcement:
    - Transition must be valid
    - At least one role must be permitted for (old -> new)
    """
    validate_transition(old, new, method)

    old = normalize_status(old)
    new = normalize_status(new)

    if old == new:
        return

    if not any(_role_allows(old, new, r, method) for r in roles):
        req = ", ".join(sorted(required_roles(old, new)))
        raise PermissionError(
            f"Role not permitted for request transition: {old} -> {new}. Required: {req}"
        )


def _role_allows(current: str, target: str, role: str, method: Optional[str]) -> bool:
    r = normalize_role(role)
    if r not in required_roles(current, target):
        return False
    return _method_allows_role(current, target, method, r)


# ===============================================================
# INTROSPECTION HELPERS
# ===============================================================
def allowed_next_states(current: str, method: Optional[str] = None) -> List[str]:
    current = normalize_status(current)
    return sorted(
        t for t in TRANSITIONS.get(current, set())
        if _method_allows(current, t, method)
    )


def required_roles(current: str, target: str) -> Set[str]:
    current = normalize_status(current)
    target = normalize_status(target)
    roles = TRANSITION_ROLES.get(current, {}).get(target, set())
    return {normalize_role(r) for r in roles}


def allowed_transitions(
    current: str,
    roles: Iterable[str],
    method: Optional[str] = None,
) -> List[str]:
    """
    Union of next states reachable by any of the given roles.
    """
    roles = [normalize_role(r) for r in roles]
    allowed: List[str] = []

    for target in allowed_next_states(current, method):
        if any(_role_allows(normalize_status(current), target, r, method) for r in roles):
            allowed.append(target)

    return sorted(allowed)


def workflow_definition() -> Dict:
    """
    Stable JSON-serializable definition for clients.
    """
    from requests_core.workflows.deadline import EDITABLE_STATUSES

    return {
        "kind": "sample_request",
        "statuses": [s.value for s in RequestStatus],
        "transitions": {str(k): sorted(str(t) for t in v) for k, v in TRANSITIONS.items()},
        "terminal_states": sorted(str(s) for s in TERMINAL_STATES),
        "deadline_editable": {
            str(method): [str(s) for s in statuses]
            for method, statuses in EDITABLE_STATUSES.items()
        },
    }


__all__ = [
    "STATUSES",
    "TRANSITIONS",
    "TERMINAL_STATES",
    "normalize_role",
    "normalize_status",
    "is_terminal",
    "validate_transition",
    "validate_transition_with_role",
    "allowed_next_states",
    "allowed_transitions",
    "required_roles",
    "workflow_definition",
]
