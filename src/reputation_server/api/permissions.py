"""
Request identity and access checks.

The reputation server does not authenticate; an upstream gateway (or the
game host) tells it who is calling through two headers:

- ``X-Actor-Id``:   stamped into ``changed_by`` / ``commented_by``
                    (default ``system``).
- ``X-Actor-Role``: ``operator`` (default) or ``subject``.

Operators may do everything.  What subjects may do is the ``subject_access``
module setting:

    none  ->  nothing
    view  ->  read standings, levels and logs
    edit  ->  read, and change standings / annotate logs

Faction CRUD and settings are operator-only regardless of ``subject_access``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from fastapi import Header, HTTPException

from reputation_server.reputation.constants import SYSTEM_ACTOR
from reputation_server.reputation.settings import ModuleSettings


class Role(Enum):
    """Caller roles."""

    OPERATOR = "operator"
    SUBJECT = "subject"


class Access(Enum):
    """What an endpoint needs."""

    VIEW = "view"
    EDIT = "edit"
    MANAGE = "manage"


# subject_access setting -> what a subject may do
SUBJECT_GRANTS: dict[str, frozenset[Access]] = {
    "none": frozenset(),
    "view": frozenset({Access.VIEW}),
    "edit": frozenset({Access.VIEW, Access.EDIT}),
}


@dataclass(frozen=True)
class Caller:
    """Identity of the current request."""

    actor_id: str
    role: Role

    @property
    def is_operator(self) -> bool:
        return self.role is Role.OPERATOR


def get_caller(
    x_actor_id: str | None = Header(default=None),
    x_actor_role: str | None = Header(default=None),
) -> Caller:
    """FastAPI dependency reading the identity headers.

    Raises:
        HTTPException(400): On an unknown role.
    """
    role_name = (x_actor_role or Role.OPERATOR.value).strip().lower()
    try:
        role = Role(role_name)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Unknown actor role: {role_name!r}") from exc
    actor_id = (x_actor_id or "").strip() or SYSTEM_ACTOR
    return Caller(actor_id=actor_id, role=role)


def has_access(caller: Caller, access: Access, settings: ModuleSettings) -> bool:
    if caller.is_operator:
        return True
    return access in SUBJECT_GRANTS.get(settings.subject_access, frozenset())


def require_access(caller: Caller, access: Access, settings: ModuleSettings) -> None:
    """Raise 403 unless ``caller`` may perform ``access``."""
    if not has_access(caller, access, settings):
        raise HTTPException(
            status_code=403,
            detail=f"Insufficient permissions: {access.value} requires operator role"
            if access is Access.MANAGE
            else f"Insufficient permissions: subjects may not {access.value} standings",
        )
