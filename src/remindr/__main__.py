"""Entry point: python -m remindr"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from datetime import datetime

from remindr.infrastructure.logger import install_exception_hooks, logger


async def main() -> None:
    from remindr.app import Orchestrator

    orchestrator = Orchestrator()

    # Handle graceful shutdown
    shutdown_event = asyncio.Event()

    def signal_handler() -> None:
        logger.info("Received shutdown signal")
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        await orchestrator.start()
        await shutdown_event.wait()
    finally:
        await orchestrator.shutdown()


def run_add(argv: list[str]) -> None:
    """Create a task from the command line: python -m remindr add NAME --at ISO [...]"""
    from remindr.infrastructure.database import AppDatabase
    from remindr.reminders.task_service import TaskManager

    parser = argparse.ArgumentParser(prog="remindr add", description="Schedule a reminder")
    parser.add_argument("name")
    parser.add_argument("--at", required=True, type=datetime.fromisoformat, help="trigger time, ISO 8601 (UTC if no offset)")
    parser.add_argument("--to", default="", help="comma separated e-mail recipients")
    parser.add_argument("--cadence", default="none", choices=["none", "daily", "weekly", "monthly"])
    parser.add_argument("--priority", default="medium", choices=["high", "medium", "low"])
    parser.add_argument("--private", action="store_true")
    parser.add_argument("--description")
    args = parser.parse_args(argv)

    db = AppDatabase()
    db.init()
    try:
        assert db.task_repo is not None
        task_id = TaskManager(db.task_repo).create(
            name=args.name,
            trigger_at=args.at,
            email_recipients=args.to,
            cadence=args.cadence,
            priority=args.priority,
            task_type="private" if args.private else "public",
            description=args.description,
        )
    finally:
        db.close()
    print(f"Scheduled task #{task_id}")


def run_list() -> None:
    from remindr.infrastructure.database import AppDatabase
    from remindr.reminders.task_service import TaskManager

    db = AppDatabase()
    db.init()
    try:
        assert db.task_repo is not None
        manager = TaskManager(db.task_repo)
        for task in manager.get_all():
            next_at = manager.next_reminder_at(task.id)
            print(
                f"#{task.id}\t{task.name}\t{task.cadence}\t"
                f"trigger={task.trigger_at.isoformat()}\t"
                f"next={next_at.isoformat() if next_at else '-'}"
            )
    finally:
        db.close()


def run() -> None:
    command = sys.argv[1] if len(sys.argv) > 1 else ""
    if command == "add":
        run_add(sys.argv[2:])
        return
    if command == "list":
        run_list()
        return

    install_exception_hooks()
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
