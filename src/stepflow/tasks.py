# tasks.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from .errors import CommandFailure
from .model import FAILED, SUCCEEDED, Task, TaskResult
from .placeholders import resolve_variables, substitute_command
from .process import run_command
from .settings import SHELL
from .ui.console import Console, get_console


@dataclass
class RunContext:
    """Everything a task needs from its workflow, built fresh for each run."""
    overrides: Dict[str, str] = field(default_factory=dict)
    defaults: Dict[str, str] = field(default_factory=dict)
    silent: bool = False
    output_path: Optional[Path] = None
    console: Optional[Console] = None
    shell: str = SHELL

    def variables_for(self, task: Task) -> Dict[str, str]:
        """Overrides beat the task's own vars, which beat the workflow defaults."""
        return resolve_variables(self.overrides, {**self.defaults, **task.vars})


def run_task(task: Task, context: RunContext) -> TaskResult:
    """
    Run the task's commands in order, stopping at the first failure.

    Command failures end up in the returned TaskResult, never raised.
    """
    console = context.console or get_console()
    variables = context.variables_for(task)
    silent = task.is_silent(context.silent)

    console.print_info(f"Starting step: {task.name}")
    for raw in task.commands:
        cmd = substitute_command(raw, variables)
        try:
            run_command(
                cmd,
                label=task.name,
                silent=silent,
                output_path=context.output_path,
                console=console,
                shell=context.shell,
            )
        except CommandFailure as e:
            console.log("ERROR", f"Step {task.name} failed")
            return TaskResult(name=task.name, status=FAILED, error=str(e), failed_command=cmd)

    console.print_info(f"Step {task.name} succeeded")
    return TaskResult(name=task.name, status=SUCCEEDED)
