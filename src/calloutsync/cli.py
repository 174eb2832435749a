"""CLI for calloutsync - callout master notes for a markdown vault."""

import argparse
import json
import logging
import platform
import sys
from pathlib import Path
from typing import Any

from . import __version__
from .core.model import Cursor
from .editor import TextBufferEditor, insert_callout
from .runtime import build_runtime
from .watch import watch_vault


def cmd_id(args: argparse.Namespace, rt: Any) -> int:
    """Print a new random block ID."""
    print(rt.idgen.new_id())
    return 0


def cmd_init(args: argparse.Namespace, rt: Any) -> int:
    """Create missing master documents."""
    created = rt.engine.ensure_master_files()
    if args.json:
        print(json.dumps({"created": created, "masters": rt.engine.master_paths}, indent=2))
    elif not args.quiet:
        for path in created:
            print(f"Created {path}")
        if not created:
            print("Master files already exist")
    return 0


def cmd_insert(args: argparse.Namespace, rt: Any) -> int:
    """Insert a new callout skeleton into a note."""
    type_ = args.type.strip().lower()
    if type_ not in rt.engine.tracked_types:
        tracked = ", ".join(rt.engine.tracked_types)
        print(f"Error: '{args.type}' is not a tracked type ({tracked})", file=sys.stderr)
        return 1

    path = rt.storage.normalize_path(args.path)
    if not path.lower().endswith(".md"):
        print(f"Error: {path} is not a markdown note", file=sys.stderr)
        return 1
    if rt.engine.is_master(path):
        print(f"Error: {path} is a master file", file=sys.stderr)
        return 1

    st = rt.storage.stat(path)
    if st is not None and st.type != "file":
        print(f"Error: {path} is not a file", file=sys.stderr)
        return 1
    text = rt.storage.read(path) if st else ""

    editor = TextBufferEditor(text)
    if args.line is not None:
        editor.set_cursor(Cursor(line=max(args.line - 1, 0), ch=0))
    block_id = insert_callout(editor, type_, rt.idgen)
    rt.storage.write(path, editor.text)

    cursor = editor.get_cursor()
    if args.json:
        print(json.dumps({"path": path, "id": block_id, "line": cursor.line + 1, "ch": cursor.ch}))
    elif not args.quiet:
        print(f"Inserted {type_} callout ^{block_id} into {path} (line {cursor.line + 1})")
    return 0


def cmd_sync(args: argparse.Namespace, rt: Any) -> int:
    """Sync one note (source or master) now."""
    path = rt.storage.normalize_path(args.path)
    if not path.lower().endswith(".md"):
        print(f"Error: {path} is not a markdown note", file=sys.stderr)
        return 1
    st = rt.storage.stat(path)
    if st is None or st.type != "file":
        print(f"Error: {path} not found", file=sys.stderr)
        return 1

    rt.engine.ensure_master_files()
    written = rt.engine.sync_path(path)

    if args.json:
        print(json.dumps({"path": path, "written": written}))
    elif not args.quiet:
        if written:
            for p in written:
                print(f"Updated {p}")
        else:
            print("Already in sync")
    return 0


def cmd_rebuild(args: argparse.Namespace, rt: Any) -> int:
    """Rebuild all master files from the vault."""
    rt.engine.ensure_master_files()

    if not args.quiet and not args.json:
        print(f"Rebuilding masters for [{', '.join(rt.engine.tracked_types)}]...")

    counts = rt.engine.rebuild_all()

    if args.json:
        print(json.dumps(counts, indent=2))
    elif not args.quiet:
        print(f"Scanned: {counts['scanned']}")
        print(f"Patched: {counts['patched']}")
        print(f"Callouts: {counts['callouts']}")
        print(f"Masters written: {counts['written']}")
        if counts["failed"] > 0:
            print(f"Failed: {counts['failed']}")
    return 0


def cmd_watch(args: argparse.Namespace, rt: Any) -> int:
    """Watch vault and sync continuously."""
    return watch_vault(rt, quiet=args.quiet, json_output=args.json)


def _version_string() -> str:
    return (
        f"calloutsync {__version__} "
        f"(python {platform.python_version()}, platform {platform.system().lower()})"
    )


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="csync", description="Keep callout master notes in sync with a vault"
    )
    parser.add_argument(
        "--version", action="version", version=_version_string()
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: search cwd/calloutsync.toml, vault/calloutsync.toml)",
    )
    parser.add_argument(
        "--vault",
        type=Path,
        default=None,
        help="Path to vault directory (overrides config)",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Minimize output"
    )
    parser.add_argument(
        "--json", action="store_true", help="Machine-readable output"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log every write"
    )

    subparsers = parser.add_subparsers(dest="cmd", required=True)

    # id command
    subparsers.add_parser("id", help="Print a new random block ID")

    # init command
    subparsers.add_parser("init", help="Create missing master files")

    # insert command
    parser_insert = subparsers.add_parser("insert", help="Insert a new callout into a note")
    parser_insert.add_argument("type", help="Callout type, e.g. todo")
    parser_insert.add_argument("path", help="Vault-relative note path")
    parser_insert.add_argument(
        "--line", type=int, default=None,
        help="1-based line to insert before (default: end of note)"
    )

    # sync command
    parser_sync = subparsers.add_parser("sync", help="Sync one note now")
    parser_sync.add_argument("path", help="Vault-relative note path (source or master)")

    # rebuild command
    subparsers.add_parser("rebuild", help="Rebuild all master files from the vault")

    # watch command
    parser_watch = subparsers.add_parser("watch", help="Watch vault and sync changes")
    parser_watch.add_argument(
        "--debounce-ms", type=int, default=None,
        help="Quiet interval before a changed note is synced (default: 250)"
    )
    parser_watch.add_argument(
        "--suppress-ms", type=int, default=None,
        help="How long own writes are ignored; must exceed filesystem event latency (default: 700)"
    )

    args = parser.parse_args()

    level = logging.WARNING
    if args.verbose or (args.cmd == "watch" and not args.quiet and not args.json):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        rt = build_runtime(
            vault_path=args.vault,
            config_path=args.config,
            debounce_ms=getattr(args, "debounce_ms", None),
            suppress_ms=getattr(args, "suppress_ms", None),
        )
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    handlers = {
        "id": cmd_id,
        "init": cmd_init,
        "insert": cmd_insert,
        "sync": cmd_sync,
        "rebuild": cmd_rebuild,
        "watch": cmd_watch,
    }

    handler = handlers.get(args.cmd)
    if handler:
        try:
            exit_code = handler(args, rt)
            sys.exit(exit_code)
        except Exception as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        print(f"Unknown command: {args.cmd}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
