# runner.py
from __future__ import annotations

import os
from typing import Mapping, Optional

from .errors import WorkflowSetupError
from .model import BatchResult, Workflow
from .scheduler import TaskRunner, select_strategy
from .settings import SHELL
from .tasks import RunContext, run_task
from .ui.console import Console, get_console


def prepare_output_dir(workflow: Workflow) -> None:
    """Create the output directory; without it no step can start."""
    if not workflow.output_dir:
        return
    try:
        os.makedirs(workflow.output_dir, mode=0o755, exist_ok=True)
    except OSError as e:
        raise WorkflowSetupError(f"Error creating output directory {workflow.output_dir!r}: {e}") from e


def build_context(
    workflow: Workflow,
    overrides: Optional[Mapping[str, str]] = None,
    console: Optional[Console] = None,
    shell: str = SHELL,
) -> RunContext:
    return RunContext(
        overrides=dict(overrides or {}),
        defaults=dict(workflow.vars),
        silent=workflow.silent,
        output_path=workflow.output_path,
        console=console,
        shell=shell,
    )


def run_workflow(
    workflow: Workflow,
    *,
    overrides: Optional[Mapping[str, str]] = None,
    console: Optional[Console] = None,
    task_runner: TaskRunner = run_task,
    shell: str = SHELL,
) -> BatchResult:
    """
    Run every step of the workflow and collect the outcome.

    Sequential runs stop at the first failed step; parallel runs always
    finish the whole batch. The returned BatchResult belongs to this run
    only.

    Raises:
      WorkflowSetupError if the output directory cannot be created.
    """
    console = console or get_console()
    prepare_output_dir(workflow)

    strategy = select_strategy(workflow, task_runner=task_runner)
    console.print_info(f"Executing workflow {workflow.name}")
    console.print_debug(
        f"mode={strategy.mode} steps={len(workflow.tasks)} workers={workflow.effective_workers}"
    )

    context = build_context(workflow, overrides, console, shell)
    return strategy.run(workflow.tasks, context)
