"""Console output formatting utilities for stepflow."""

from __future__ import annotations

import sys
import threading
import time
from typing import Optional

import click

BANNER = r"""
         __                  ______
   _____/ /____  ____  ____ / __/ /___ _      __
  / ___/ __/ _ \/ __ \/ __ / /_/ / __ \ | /| / /
 (__  ) /_/  __/ /_/ / /_// __/ / /_/ / |/ |/ /
/____/\__/\___/ .___/\___/_/ /_/\____/|__/|__/
             /_/
"""

LEVEL_COLORS = {
    "INFO": "green",
    "WARN": "yellow",
    "ERROR": "red",
    "DEBUG": "cyan",
}


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False, quiet: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show debug lines and stack traces
            quiet: If True, suppress the banner
        """
        self.debug = debug
        self.quiet = quiet
        # parallel steps log from worker threads
        self._lock = threading.Lock()

    def _timestamp(self) -> str:
        return time.strftime("%H:%M:%S")

    def log(self, level: str, message: str, *, err: bool = False) -> None:
        """Print one `[HH:MM:SS] [LEVEL] message` line."""
        label = click.style(level, fg=LEVEL_COLORS.get(level))
        line = f"[{self._timestamp()}] [{label}] {message}"
        with self._lock:
            click.echo(line, err=err)

    def print_banner(self) -> None:
        """Print the banner unless quiet."""
        if not self.quiet:
            with self._lock:
                click.echo(BANNER)

    def print_info(self, message: str) -> None:
        self.log("INFO", message)

    def print_warning(self, message: str) -> None:
        self.log("WARN", message)

    def print_failure(self, name: str, reason: str) -> None:
        """Print a labeled failure line for a step."""
        self.log("ERROR", f"{name}: {reason}")

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            self.log("DEBUG", message, err=True)

    def print_plan(self, mode: str, workers: int, order: list[tuple[str, list[str]]]) -> None:
        """Print the execution plan: mode, pool size and steps in run order."""
        with self._lock:
            click.echo(f"Mode: {mode}")
            if mode == "parallel":
                click.echo(f"Workers: {workers}")
            click.echo(f"Steps: {len(order)}")
            for name, commands in order:
                click.echo(f"  {name}")
                for cmd in commands:
                    click.echo(f"    $ {cmd}")

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
        with self._lock:
            click.echo(f"\n{click.style('ERROR', fg='red')}: {title}", err=True)
            click.echo(message, err=True)
            if details:
                for detail in details:
                    click.echo(f"  {detail}", err=True)
            if suggestion:
                click.echo(f"\n{suggestion}", err=True)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {exc}", file=sys.stderr)


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
