"""
Command-line interface for the Reputation Server.

Provides CLI commands for store management, faction administration and
standing changes:

- init-store:     Create the SQLite store schema
- run:            Start the HTTP API server
- config:         Show the effective configuration
- factions:       List factions
- create-faction: Create a faction
- delete-faction: Delete a faction with its log and standings
- adjust:         Apply a delta to a standing
- set:            Set a standing to an absolute value
- standing:       Show one standing with its rank
- levels:         List every rank on a faction's scale
- log:            Show a faction's change log
- annotate:       Comment on a change-log entry
- seed-lookup:    Write an editable lookup table for a faction

Usage:
    reputation-server init-store
    reputation-server create-faction "Iron Guild" --steps 9 --mode shared
    reputation-server adjust <faction-id> +2 --subject player-1
    reputation-server run [--host HOST] [--port PORT]

Every command returns 0 on success and 1 on error (printed to stderr).
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Awaitable, Callable

from reputation_server.reputation.constants import GLOBAL_SUBJECT, SYSTEM_ACTOR
from reputation_server.store.errors import StoreError


def _build_service(args: argparse.Namespace):
    from reputation_server.core.service import ReputationService
    from reputation_server.reputation.actors import StaticActorContext

    return ReputationService.from_config(actors=StaticActorContext(args.actor or SYSTEM_ACTOR))


def _run_async(args: argparse.Namespace, command: Callable[..., Awaitable[int]]) -> int:
    """Run an async command against a freshly built service, mapping store errors to 1."""
    try:
        return asyncio.run(command(_build_service(args), args))
    except StoreError as e:
        print(f"Store error: {e}", file=sys.stderr)
        return 1


def _not_found(faction_id: str) -> int:
    print(f"Error: faction '{faction_id}' not found.", file=sys.stderr)
    return 1


# ============================================================================
# STORE & SERVER
# ============================================================================


def cmd_init_store(args: argparse.Namespace) -> int:
    """
    Initialize the SQLite store schema.

    Returns:
        0 on success, 1 on error
    """
    from reputation_server.config import config
    from reputation_server.store.connection import init_store

    if config.store.backend != "sqlite":
        print(f"Store backend is '{config.store.backend}'; nothing to initialize.")
        return 0
    try:
        path = init_store()
    except Exception as e:
        print(f"Error initializing store: {e}", file=sys.stderr)
        return 1
    print(f"Store initialized at {path}")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """
    Run the HTTP API server.

    Configuration priority: CLI arguments, then REP_HOST / REP_PORT, then
    config/server.ini, then built-in defaults.
    """
    from reputation_server.api.server import start_server

    try:
        start_server(host=args.host, port=args.port)
    except KeyboardInterrupt:
        print("\nShutting down...")
    except Exception as e:
        print(f"Error starting server: {e}", file=sys.stderr)
        return 1
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Print the effective configuration."""
    from reputation_server.config import print_config_summary

    print_config_summary()
    return 0


# ============================================================================
# FACTIONS
# ============================================================================


async def _list_factions(service, args: argparse.Namespace) -> int:
    factions = await service.list_factions()
    if not factions:
        print("No factions.")
        return 0
    for faction in factions:
        print(
            f"{faction.id}  {faction.name}  "
            f"steps={faction.steps}  mode={faction.storage_mode.value}"
            + (f"  lookup={faction.lookup_table_id}" if faction.lookup_table_id else "")
        )
    return 0


async def _create_faction(service, args: argparse.Namespace) -> int:
    try:
        faction = await service.create_faction(
            args.name,
            steps=args.steps,
            storage_mode=args.mode,
            lookup_table_id=args.lookup_table,
            start_at_neutral=False if args.start_at_minimum else None,
            subject_ids=args.subject or (),
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"Created faction {faction.id} '{faction.name}' (steps={faction.steps})")
    return 0


async def _delete_faction(service, args: argparse.Namespace) -> int:
    if not await service.delete_faction(args.faction_id):
        return _not_found(args.faction_id)
    print(f"Deleted faction {args.faction_id}")
    return 0


async def _levels(service, args: argparse.Namespace) -> int:
    from reputation_server.reputation.display import format_display_value

    levels = await service.get_levels(args.faction_id)
    if not levels:
        return _not_found(args.faction_id)
    for level in levels:
        print(f"{format_display_value(level.value):>4}  {level.label}  {level.color}")
    return 0


async def _seed_lookup(service, args: argparse.Namespace) -> int:
    try:
        faction = await service.seed_lookup_table(args.faction_id, args.table_id)
    except (RuntimeError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if faction is None:
        return _not_found(args.faction_id)
    print(f"Seeded lookup table '{args.table_id}' for faction {faction.id}")
    return 0


# ============================================================================
# STANDINGS
# ============================================================================


async def _adjust(service, args: argparse.Namespace) -> int:
    value = await service.apply_delta(args.subject, args.faction_id, args.delta)
    if value is None:
        return _not_found(args.faction_id)
    return await _print_standing(service, args.faction_id, args.subject)


async def _set(service, args: argparse.Namespace) -> int:
    value = await service.set_value(args.subject, args.faction_id, args.value)
    if value is None:
        return _not_found(args.faction_id)
    return await _print_standing(service, args.faction_id, args.subject)


async def _standing(service, args: argparse.Namespace) -> int:
    return await _print_standing(service, args.faction_id, args.subject)


async def _print_standing(service, faction_id: str, subject_id: str) -> int:
    from reputation_server.reputation.notifications import describe_value

    overview = await service.standing_overview(faction_id, subject_id)
    if overview is None:
        return _not_found(faction_id)
    print(f"{overview.faction.name} / {subject_id}: {describe_value(overview.level)}")
    return 0


# ============================================================================
# CHANGE LOG
# ============================================================================


async def _log(service, args: argparse.Namespace) -> int:
    from reputation_server.reputation.display import change_direction

    if await service.get_faction(args.faction_id) is None:
        return _not_found(args.faction_id)
    entries = await service.get_audit_log(args.faction_id)
    if not entries:
        print("No changes recorded.")
        return 0
    arrows = {"up": "^", "down": "v", "flat": "="}
    for entry in entries:
        print(
            f"{entry.id}  {entry.timestamp}  {entry.subject_id}  "
            f"{entry.old_value} -> {entry.new_value} {arrows[change_direction(entry)]}  "
            f"by {entry.changed_by}"
        )
        if entry.comment:
            print(f"    # {entry.comment} ({entry.commented_by})")
    return 0


async def _annotate(service, args: argparse.Namespace) -> int:
    if not await service.annotate(args.faction_id, args.entry_id, args.comment):
        print(
            f"Error: entry '{args.entry_id}' not found in faction '{args.faction_id}'.",
            file=sys.stderr,
        )
        return 1
    print(f"Annotated entry {args.entry_id}")
    return 0


def _async_command(command: Callable[..., Awaitable[int]]) -> Callable[[argparse.Namespace], int]:
    def run(args: argparse.Namespace) -> int:
        return _run_async(args, command)

    return run


cmd_factions = _async_command(_list_factions)
cmd_create_faction = _async_command(_create_faction)
cmd_delete_faction = _async_command(_delete_faction)
cmd_levels = _async_command(_levels)
cmd_seed_lookup = _async_command(_seed_lookup)
cmd_adjust = _async_command(_adjust)
cmd_set = _async_command(_set)
cmd_standing = _async_command(_standing)
cmd_log = _async_command(_log)
cmd_annotate = _async_command(_annotate)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reputation-server",
        description="Reputation Server - faction standings with an audited change log",
    )
    parser.add_argument(
        "--actor",
        help=f"Actor id stamped into the change log (default: {SYSTEM_ACTOR})",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    init_parser = subparsers.add_parser("init-store", help="Initialize the SQLite store schema")
    init_parser.set_defaults(func=cmd_init_store)

    run_parser = subparsers.add_parser("run", help="Run the HTTP API server")
    run_parser.add_argument("--port", "-p", type=int, help="Port (default: 8000 or REP_PORT)")
    run_parser.add_argument("--host", type=str, help="Host (default: 0.0.0.0 or REP_HOST)")
    run_parser.set_defaults(func=cmd_run)

    config_parser = subparsers.add_parser("config", help="Show the effective configuration")
    config_parser.set_defaults(func=cmd_config)

    factions_parser = subparsers.add_parser("factions", help="List factions")
    factions_parser.set_defaults(func=cmd_factions)

    create_parser = subparsers.add_parser("create-faction", help="Create a faction")
    create_parser.add_argument("name", help="Faction display name")
    create_parser.add_argument(
        "--steps", help="Scale size; normalised to an odd number in [3, 21] (default: 7)"
    )
    create_parser.add_argument(
        "--mode",
        choices=["inherit", "shared", "per-subject"],
        default="inherit",
        help="Storage mode (default: inherit)",
    )
    create_parser.add_argument("--lookup-table", help="External lookup table id for rank labels")
    create_parser.add_argument(
        "--start-at-minimum",
        action="store_true",
        help="Start new standings at the scale minimum instead of 0",
    )
    create_parser.add_argument(
        "--subject", action="append", help="Subject to seed (per-subject mode, repeatable)"
    )
    create_parser.set_defaults(func=cmd_create_faction)

    delete_parser = subparsers.add_parser(
        "delete-faction", help="Delete a faction with its change log and standings"
    )
    delete_parser.add_argument("faction_id")
    delete_parser.set_defaults(func=cmd_delete_faction)

    for name, value_name, help_text, func in (
        ("adjust", "delta", "Apply a delta to a standing", cmd_adjust),
        ("set", "value", "Set a standing to an absolute value", cmd_set),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("faction_id")
        sub.add_argument(value_name, type=int)
        sub.add_argument(
            "--subject", default=GLOBAL_SUBJECT, help=f"Subject id (default: {GLOBAL_SUBJECT})"
        )
        sub.set_defaults(func=func)

    standing_parser = subparsers.add_parser("standing", help="Show one standing")
    standing_parser.add_argument("faction_id")
    standing_parser.add_argument("--subject", default=GLOBAL_SUBJECT)
    standing_parser.set_defaults(func=cmd_standing)

    levels_parser = subparsers.add_parser("levels", help="List a faction's ranks")
    levels_parser.add_argument("faction_id")
    levels_parser.set_defaults(func=cmd_levels)

    log_parser = subparsers.add_parser("log", help="Show a faction's change log")
    log_parser.add_argument("faction_id")
    log_parser.set_defaults(func=cmd_log)

    annotate_parser = subparsers.add_parser("annotate", help="Comment on a change-log entry")
    annotate_parser.add_argument("faction_id")
    annotate_parser.add_argument("entry_id")
    annotate_parser.add_argument("comment")
    annotate_parser.set_defaults(func=cmd_annotate)

    seed_parser = subparsers.add_parser(
        "seed-lookup", help="Write an editable lookup table for a faction and attach it"
    )
    seed_parser.add_argument("faction_id")
    seed_parser.add_argument("table_id")
    seed_parser.set_defaults(func=cmd_seed_lookup)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    from reputation_server.config import configure_logging

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    configure_logging()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
