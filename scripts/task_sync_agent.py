#!/usr/bin/env python3
"""Command line front end for the task sync engine."""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections.abc import Sequence
from datetime import date
from pathlib import Path

import voluptuous as vol

from myops.const import DELETE_GRACE_SECONDS, PRIORITIES, RUN_MODES
from myops.tasksync import (
    LocalStorage,
    NotificationCenter,
    SyncConfig,
    TaskActions,
    TaskRecord,
    TaskSyncEngine,
    create_engine,
    load_config,
    save_config,
)

_LOGGER = logging.getLogger(__name__)

DEFAULT_STORAGE = Path(".myops.json")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage myops tasks from the command line")
    parser.add_argument("--storage", type=Path, default=DEFAULT_STORAGE, help="JSON file for local data")
    parser.add_argument("--mode", type=str.upper, choices=RUN_MODES, help="Run mode override")
    parser.add_argument("--endpoint", help="Remote endpoint URL (LIVE mode)")
    parser.add_argument("--token", help="API token (LIVE mode)")
    parser.add_argument("--save-config", action="store_true", help="Persist the effective settings")
    parser.add_argument(
        "--grace",
        type=float,
        default=DELETE_GRACE_SECONDS,
        help="Seconds to wait before a delete becomes durable",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="Show tasks in display order")

    add = sub.add_parser("add", help="Create a task")
    add.add_argument("description")
    add.add_argument("--date", default=None, help="Due date (YYYY-MM-DD, default today)")
    add.add_argument("--project", default="Inbox")
    add.add_argument("--priority", choices=PRIORITIES, default="Medium")

    advance = sub.add_parser("advance", help="Move a task to its next status")
    advance.add_argument("task_id")

    delete = sub.add_parser("delete", help="Delete a task after the undo window")
    delete.add_argument("task_id")

    sub.add_parser("purge-done", help="Delete every task marked Done")
    return parser


def _resolve(engine: TaskSyncEngine, task_id: str) -> TaskRecord | None:
    """Find a task by id or by an unambiguous id prefix."""

    exact = engine.get(task_id)
    if exact is not None:
        return exact
    matches = [task for task in engine.tasks if task.id.startswith(task_id)]
    if len(matches) == 1:
        return matches[0]
    return None


def _format(task: TaskRecord) -> str:
    return f"{task.id:<38} {task.date:<10} {str(task.priority):<6} {str(task.status):<11} [{task.project}] {task.description}"


async def _async_run(args: argparse.Namespace, config: SyncConfig, storage: LocalStorage) -> int:
    center = NotificationCenter()
    engine = create_engine(config, center, storage, grace_period=args.grace)
    actions = TaskActions(engine, center)
    ok = True
    try:
        ok = await engine.async_load(initial=True)
        if args.command == "list":
            for task in engine.tasks:
                print(_format(task))
        elif args.command == "add":
            record = TaskRecord(
                date=args.date or date.today().isoformat(),
                description=args.description,
                project=args.project,
                priority=args.priority,
            )
            ok = await engine.async_save(record)
        elif args.command in ("advance", "delete"):
            task = _resolve(engine, args.task_id)
            if task is None:
                print(f"No task matches {args.task_id!r}")
                return 1
            if args.command == "advance":
                ok = await actions.async_advance_status(task)
            else:
                ok = engine.remove(task)
                pending = engine.deletions.get(task.id)
                if pending is not None:
                    await asyncio.sleep(args.grace + 0.05)
                    await pending.call.wait()
                    ok = task.id not in engine.pending_deletions and engine.get(task.id) is None
        elif args.command == "purge-done":
            ok = await engine.async_bulk_remove([task for task in engine.tasks if task.is_done])
    finally:
        await engine.async_shutdown()
        for notification in center.notifications:
            print(f"[{notification.kind}] {notification.message}")
    return 0 if ok else 1


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING))

    storage = LocalStorage(args.storage)
    overrides = {"mode": args.mode, "endpoint_url": args.endpoint, "api_token": args.token}
    try:
        config = load_config(storage, overrides)
    except vol.Invalid as err:
        print(f"Invalid settings: {err}")
        return 2
    if args.save_config:
        save_config(storage, config)
    _LOGGER.debug("Effective settings: %s", config.as_dict(redact_secrets=True))

    try:
        return asyncio.run(_async_run(args, config, storage))
    except KeyboardInterrupt:  # pragma: no cover - manual interruption
        _LOGGER.info("Interrupted")
        return 130


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
