"""
Event Type Constants for the Reputation Server

Events use "domain:action" format in PAST TENSE: they record facts about
what happened, never requests.

    from reputation_server.core.events import Events

    service.bus.on(Events.REPUTATION_CHANGED, refresh_view)
"""


class Events:
    """
    All event types emitted by :class:`~reputation_server.core.service.ReputationService`.
    """

    # =========================================================================
    # FACTIONS
    # =========================================================================

    FACTION_CREATED = "faction:created"
    """
    A faction was created and its starting values were written.

    Detail: {"faction_id": str, "name": str, "steps": int, "storage_mode": str}
    """

    FACTION_UPDATED = "faction:updated"
    """
    A faction's definition changed.

    Detail: {"faction_id": str, "fields": list[str]}
    """

    FACTION_DELETED = "faction:deleted"
    """
    A faction, its change log and all its standing values were removed.

    Detail: {"faction_id": str}
    """

    # =========================================================================
    # STANDINGS
    # =========================================================================

    REPUTATION_CHANGED = "reputation:changed"
    """
    A delta or absolute set was applied.

    Emitted for every successful ledger mutation, including sets that left
    the value unchanged (``changed`` is False then).

    Detail: {
        "faction_id": str,
        "subject_id": str,      # "global" for shared factions
        "old_value": int,
        "new_value": int,
        "changed": bool,
        "entry_id": str | None, # audit entry, None if nothing was logged
        "actor": str,
    }
    """

    REPUTATION_NOTICE = "reputation:notice"
    """
    A human-readable notice is ready for delivery.

    Only emitted when the ``post_notifications`` setting is on.

    Detail: StandingNotice.as_dict()
    """

    # =========================================================================
    # AUDIT
    # =========================================================================

    AUDIT_ANNOTATED = "audit:annotated"
    """
    A change-log entry received (or replaced) its comment.

    Detail: {"faction_id": str, "entry_id": str, "actor": str}
    """

    # =========================================================================
    # SETTINGS
    # =========================================================================

    SETTINGS_UPDATED = "settings:updated"
    """
    Module settings were saved.

    Detail: the full settings dict
    """
