from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Sequence

from taskdeck import __version__
from taskdeck.app import main as run_app
from taskdeck.app import resolve_paths
from taskdeck.core.config import get_runtime_config
from taskdeck.core.errors import TaskDeckError, format_error
from taskdeck.core.settings_store import SettingsStore
from taskdeck.core.storage import JsonFileStorage


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskdeck",
        description="taskdeck: a keyboard-driven task list with due dates",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
        help="Print version and exit.",
    )

    parser.add_argument(
        "--no-ui",
        action="store_true",
        help="Parse CLI arguments without launching the UI.",
    )

    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory holding the task storage (overrides TASKDECK_DATA_DIR).",
    )

    subparsers = parser.add_subparsers(dest="command")

    config_parser = subparsers.add_parser(
        "print-config",
        help="Print resolved runtime config, storage paths and settings to stdout.",
    )
    config_parser.set_defaults(handler=handle_print_config)

    return parser


def handle_print_config(args: argparse.Namespace) -> None:
    config = get_runtime_config()
    paths = resolve_paths(config, args.data_dir)
    storage = JsonFileStorage(paths.data_dir)
    payload = {
        "runtime": config.model_dump(mode="json"),
        "data_dir": str(paths.data_dir),
        "tasks_path": str(storage.path_for(config.storage_key)),
        "settings_path": str(paths.settings_file),
        "settings": SettingsStore(paths.settings_file).load(),
    }
    print(json.dumps(payload, indent=2))


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "print-config":
        args.handler(args)
        return

    if args.no_ui:
        return

    try:
        run_app(args.data_dir)
    except TaskDeckError as exc:
        message, _ = format_error(exc)
        raise SystemExit(message) from exc


if __name__ == "__main__":
    main()
