"""Command-line interface for taskkeeper.

This module provides the CLI interface for managing tasks using argparse.
It supports the following commands:
- add: Create a new task
- list: List all tasks
- edit: Change fields of a task
- done: Mark a task as completed
- delete: Delete a task
"""

import argparse
import logging
import sys
from typing import List, Optional

from taskkeeper.errors import StoreCorruptError
from taskkeeper.models import Priority, Status, Task
from taskkeeper.repository import Result, TaskRepository

PRIORITY_CHOICES = [p.value for p in Priority]


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="taskkeeper",
        description="Personal task manager backed by a JSON file"
    )
    parser.add_argument(
        "--db",
        help="Path to the task store (default: $TASK_DB_PATH or tasks.json)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Add command
    add_parser = subparsers.add_parser("add", help="Add a new task")
    add_parser.add_argument("title", help="Task title")
    add_parser.add_argument("--due", required=True, help="Due date (YYYY-MM-DD)")
    add_parser.add_argument("--description", default="", help="Task description")
    add_parser.add_argument(
        "--priority",
        choices=PRIORITY_CHOICES,
        default="medium",
        help="Task priority (default: medium)"
    )
    add_parser.add_argument(
        "--recurring",
        metavar="PATTERN",
        help="Mark the task as recurring with a free-text pattern"
    )

    # List command
    subparsers.add_parser("list", help="List all tasks")

    # Edit command
    edit_parser = subparsers.add_parser("edit", help="Change a task")
    edit_parser.add_argument("id", type=int, help="Task ID")
    edit_parser.add_argument("--title", help="New title")
    edit_parser.add_argument("--description", help="New description")
    edit_parser.add_argument("--due", help="New due date (YYYY-MM-DD)")
    edit_parser.add_argument("--priority", choices=PRIORITY_CHOICES, help="New priority")

    # Done command
    done_parser = subparsers.add_parser("done", help="Mark a task as done")
    done_parser.add_argument("id", type=int, help="Task ID")

    # Delete command
    delete_parser = subparsers.add_parser("delete", help="Delete a task")
    delete_parser.add_argument("id", type=int, help="Task ID")

    return parser


def format_task(task: Task) -> str:
    status_icon = "✓" if task.status == Status.DONE else " "
    line = (
        f"[{status_icon}] #{task.id} {task.title} "
        f"(due {task.due_date.isoformat()}) [{task.priority.value}]"
    )
    if task.is_recurring:
        line += f" (repeats: {task.recurrence_pattern or 'yes'})"
    if task.description:
        line += f"\n      {task.description}"
    return line


def report_error(result: Result) -> int:
    print(f"Error: {result.error}", file=sys.stderr)
    return 1


def cmd_add(args: argparse.Namespace, repo: TaskRepository) -> int:
    """Handle the 'add' command.

    Args:
        args: Parsed command-line arguments
        repo: TaskRepository instance

    Returns:
        Exit code (0 for success, 1 for error)
    """
    result = repo.add_task(
        title=args.title,
        description=args.description,
        due_date=args.due,
        priority=args.priority,
        is_recurring=args.recurring is not None,
        recurrence_pattern=args.recurring,
    )
    if not result.ok:
        return report_error(result)

    task = result.task
    print(f"Task added: #{task.id} {task.title} [{task.priority.value}]")
    return 0


def cmd_list(args: argparse.Namespace, repo: TaskRepository) -> int:
    """Handle the 'list' command."""
    tasks = repo.list_all()

    if not tasks:
        print("No tasks found.")
        return 0

    for task in tasks:
        print(format_task(task))

    return 0


def cmd_edit(args: argparse.Namespace, repo: TaskRepository) -> int:
    """Handle the 'edit' command."""
    result = repo.update_task(
        args.id,
        title=args.title,
        description=args.description,
        due_date=args.due,
        priority=args.priority,
    )
    if not result.ok:
        return report_error(result)

    print(f"Task #{result.task.id} updated: {result.task.title}")
    return 0


def cmd_done(args: argparse.Namespace, repo: TaskRepository) -> int:
    """Handle the 'done' command."""
    result = repo.mark_done(args.id)
    if not result.ok:
        return report_error(result)

    print(f"Task #{result.task.id} marked as done: {result.task.title}")
    return 0


def cmd_delete(args: argparse.Namespace, repo: TaskRepository) -> int:
    """Handle the 'delete' command."""
    result = repo.delete_task(args.id)
    if not result.ok:
        return report_error(result)

    print(f"Task #{args.id} deleted.")
    return 0


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:]

    Returns:
        Exit code (0 for success, 1 for a failed command, 2 for an
        unreadable store)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    configure_logging(args.verbose)

    try:
        repo = TaskRepository(args.db)
    except StoreCorruptError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    # Dispatch to command handlers
    commands = {
        "add": cmd_add,
        "list": cmd_list,
        "edit": cmd_edit,
        "done": cmd_done,
        "delete": cmd_delete,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Error: Unknown command '{args.command}'", file=sys.stderr)
        return 1

    return handler(args, repo)


if __name__ == "__main__":
    sys.exit(main())
