"""Actor identity for audit stamping.

The engine does not authenticate anyone.  It asks an :class:`ActorContext`
who is acting and writes that id into ``changed_by`` / ``commented_by``.
Every mutating call also accepts an explicit ``actor=`` that takes precedence.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from reputation_server.reputation.constants import SYSTEM_ACTOR


@runtime_checkable
class ActorContext(Protocol):
    """Provides the id of the actor performing the current operation."""

    def current(self) -> str: ...


@dataclass(frozen=True)
class StaticActorContext:
    """Always reports the same actor (CLI runs, tests, background jobs)."""

    actor_id: str = SYSTEM_ACTOR

    def current(self) -> str:
        return self.actor_id
