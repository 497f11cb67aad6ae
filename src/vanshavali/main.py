"""
Command line tool for family tree files and the SQLite row store.

    vanshavali layout tree.json --dot tree.dot
    vanshavali push tree.json [--force]
    vanshavali pull --out tree.json
    vanshavali validate tree.json
    vanshavali search tree.json "query" [--gender MALE]
    vanshavali timeline tree.json

The database path comes from --db, then VANSHAVALI_DB, then family_tree.db.
"""

import argparse
import asyncio
import logging
from pathlib import Path

from vanshavali.config import AppConfig
from vanshavali.database import SQLiteRowStore
from vanshavali.errors import TreeError
from vanshavali.layout import compute_layout, count_crossings
from vanshavali.models import Gender
from vanshavali.parsing import dump_tree_json, load_tree_file
from vanshavali.plotting import write_dot
from vanshavali.search import search_persons
from vanshavali.sync import SyncCoordinator
from vanshavali.timeline import timeline_events
from vanshavali.validation import validate_tree

logger = logging.getLogger(__name__)


# ============================================================================
# Commands
# ============================================================================


def cmd_layout(args, config: AppConfig) -> int:
    tree = load_tree_file(args.file)
    layout = compute_layout(tree)
    print(f"Layout has {len(layout.nodes)} visible persons and {len(layout.edges)} edges")
    for depth, nodes in layout.ranks().items():
        print(f"  Generation {depth}: {len(nodes)} persons")
    print(f"  Edge crossings: {count_crossings(layout)}")
    if args.dot:
        write_dot(tree, layout, args.dot)
    return 0


async def _push(tree, store: SQLiteRowStore, force: bool) -> dict[str, str]:
    coordinator = SyncCoordinator(store, tree)
    return await coordinator.push_tree(force=force)


def cmd_push(args, config: AppConfig) -> int:
    tree = load_tree_file(args.file)
    store = SQLiteRowStore.open(config.db_path)
    try:
        keys = asyncio.run(_push(tree, store, args.force))
    finally:
        store.close()
    print(f"Stored {len(keys)} persons in {config.db_path}")
    return 0


async def _pull(store: SQLiteRowStore):
    coordinator = SyncCoordinator(store)
    return await coordinator.refresh()


def cmd_pull(args, config: AppConfig) -> int:
    store = SQLiteRowStore.open(config.db_path)
    try:
        tree = asyncio.run(_pull(store))
    finally:
        store.close()

    text = dump_tree_json(tree)
    if args.out:
        Path(args.out).write_text(text, encoding="utf-8")
        print(f"Tree saved to {args.out}")
    else:
        print(text)
    return 0


def cmd_validate(args, config: AppConfig) -> int:
    warnings = validate_tree(load_tree_file(args.file))
    if not warnings:
        print("No validation issues found")
        return 0

    print(f"Found {len(warnings)} validation warnings:")
    for w in warnings[:10]:  # Show first 10 warnings
        print(f"  - {w}")
    if len(warnings) > 10:
        print(f"  ... and {len(warnings) - 10} more")
    return 1


def cmd_search(args, config: AppConfig) -> int:
    hits = search_persons(
        load_tree_file(args.file),
        query=args.query,
        gender=Gender(args.gender) if args.gender else None,
        min_generation=args.min_generation,
        max_generation=args.max_generation,
    )
    for hit in hits:
        print(f"{hit.person.id}\t{hit.generation}\t{hit.person.name}")
    print(f"{len(hits)} persons found")
    return 0


def cmd_timeline(args, config: AppConfig) -> int:
    for event in timeline_events(load_tree_file(args.file)):
        print(f"{event.year}\t{event.type.value}\t{event.name}\t{event.date}")
    return 0


# ============================================================================
# Main
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vanshavali", description=__doc__.splitlines()[1])
    parser.add_argument("--db", type=Path, help="SQLite database path")
    parser.add_argument("--log-level", help="Logging level (default INFO)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("layout", help="Lay out a tree file")
    p.add_argument("file", type=Path)
    p.add_argument("--dot", type=Path, help="Write the layout as DOT source")
    p.set_defaults(func=cmd_layout)

    p = sub.add_parser("push", help="Store a tree file in the database")
    p.add_argument("file", type=Path)
    p.add_argument("--force", action="store_true", help="Write even if the database has rows")
    p.set_defaults(func=cmd_push)

    p = sub.add_parser("pull", help="Rebuild the tree from the database")
    p.add_argument("--out", type=Path, help="JSON output file (default stdout)")
    p.set_defaults(func=cmd_pull)

    p = sub.add_parser("validate", help="Check a tree file for date problems")
    p.add_argument("file", type=Path)
    p.set_defaults(func=cmd_validate)

    p = sub.add_parser("search", help="Search a tree file")
    p.add_argument("file", type=Path)
    p.add_argument("query", nargs="?", default="")
    p.add_argument("--gender", choices=[g.value for g in Gender])
    p.add_argument("--min-generation", type=int, default=1)
    p.add_argument("--max-generation", type=int, default=15)
    p.set_defaults(func=cmd_search)

    p = sub.add_parser("timeline", help="List dated events of a tree file")
    p.add_argument("file", type=Path)
    p.set_defaults(func=cmd_timeline)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    config = AppConfig.from_env()
    if args.db:
        config = AppConfig(db_path=args.db, log_level=config.log_level)
    if args.log_level:
        config = AppConfig(db_path=config.db_path, log_level=args.log_level.upper())
    logging.basicConfig(level=config.log_level, format="%(levelname)s %(name)s: %(message)s")

    try:
        return args.func(args, config)
    except TreeError as e:
        logger.error("%s", e)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
