# report.py
from __future__ import annotations

from typing import Optional

from .model import BatchResult, Workflow
from .ui.console import Console, get_console


def exit_code(batch: BatchResult) -> int:
    return 0 if not batch.errors else 1


def report(batch: BatchResult, workflow: Workflow, console: Optional[Console] = None) -> int:
    """
    Print the outcome of a run and return the process exit code.

    A sequential run that stopped early reports the step it stopped at and
    nothing else.
    """
    console = console or get_console()

    if batch.aborted:
        failed = batch.attempted[-1]
        console.log("ERROR", f"Exiting due to error in step: {failed}")
        return 1

    for name in batch.failed:
        console.print_failure(name, batch.errors[name])

    if workflow.output_path is not None:
        console.print_info(f"Output saved in '{workflow.output_path}'")

    if batch.errors:
        console.log("ERROR", f"Job Finished with {len(batch.errors)} failed step(s)")
    else:
        console.print_info("Job Finished")
    return exit_code(batch)
