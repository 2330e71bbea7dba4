"""Console output formatting utilities for devstack."""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Iterable, Optional

import click

if TYPE_CHECKING:
    from ..model import Operation


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_header(self, title: str) -> None:
        """Print a section header."""
        print(f"\n{title}")
        print("-" * len(title))

    def print_run_started(self, project: str, target: str, operation_count: int) -> None:
        """Print run start information."""
        print("\nRUN STARTED")
        print(f"Project: {project}")
        print(f"Target: {target}")
        print(f"Operations: {operation_count}")
        print()

    def print_operation_start(self, name: str) -> None:
        print(f"\nOPERATION: {name}")

    def print_success(self, name: str) -> None:
        print("STATUS: success")

    def print_failure(
        self,
        name: str,
        reason: str,
        exit_code: Optional[int] = None,
        is_operation: bool = False,
    ) -> None:
        """
        Print failure message.

        Args:
            name: Operation or step name
            reason: Failure reason/error message
            exit_code: Exit code of the failing command, when there is one
            is_operation: If True, print "OPERATION FAILED", otherwise "STEP FAILED"
        """
        prefix = "OPERATION FAILED" if is_operation else "STEP FAILED"
        print(f"{prefix}: {name}")
        if exit_code is not None:
            print(f"Exit code: {exit_code}")
        if self.debug:
            print(f"Error details: {reason}")
        else:
            error_line = reason.split("\n")[0] if reason else "Unknown error"
            print(f"Error: {error_line}")

    def print_plan(self, plan: Iterable["Operation"]) -> None:
        """Print a resolved plan without executing it."""
        self.print_header("PLAN")
        for idx, op in enumerate(plan, start=1):
            print(f"  {idx:>2}. {op.name}")
            for step in op.steps:
                print(f"        $ {step.display}")

    def print_listing(self, operations: Iterable["Operation"]) -> None:
        """One line per operation: green name, description."""
        for op in operations:
            name = click.style(f"{op.name:<30}", fg="green")
            # echo drops the colour when stdout is not a terminal
            click.echo(f"{name} {op.description}")

    def print_results(self, results: dict[str, str]) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for name, status in results.items():
            status_display = status.upper() if status != "ok" else "SUCCESS"
            print(f"  {name}: {status_display}")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exception(type(exc), exc, exc.__traceback__)
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


def configure_logging(debug: bool = False) -> None:
    """Route devstack's internal loggers to stderr; quiet unless --debug."""
    root = logging.getLogger("devstack")
    root.setLevel(logging.DEBUG if debug else logging.WARNING)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    root.addHandler(handler)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
