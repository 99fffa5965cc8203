# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from . import settings

SUCCEEDED = "succeeded"
FAILED = "failed"


@dataclass
class Task:
    """A named group of shell commands run in order (a workflow step)."""
    name: str
    commands: list[str]
    silent: bool | None = None                    # None -> inherit workflow flag
    vars: Dict[str, str] = field(default_factory=dict)

    def is_silent(self, default: bool) -> bool:
        return default if self.silent is None else self.silent


@dataclass
class Workflow:
    """
    Global run configuration plus the tasks to run.

    Tasks are keyed by name, so a name appears at most once.
    Sequential runs go through task_names(), i.e. sorted by name,
    never by declaration order.
    """
    name: str
    tasks: Dict[str, Task] = field(default_factory=dict)
    parallel: bool = False
    workers: int = 0
    silent: bool = False
    output_dir: Optional[str] = None
    output_file: Optional[str] = None
    vars: Dict[str, str] = field(default_factory=dict)

    @property
    def effective_workers(self) -> int:
        if self.workers > 0:
            return self.workers
        default = settings.DEFAULT_WORKERS
        return default if default > 0 else settings.FALLBACK_WORKERS

    @property
    def output_path(self) -> Path | None:
        if self.output_dir and self.output_file:
            return Path(self.output_dir) / self.output_file
        return None

    def task_names(self) -> List[str]:
        return sorted(self.tasks)


@dataclass(frozen=True)
class TaskResult:
    name: str
    status: str
    error: str | None = None
    failed_command: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == SUCCEEDED


@dataclass
class BatchResult:
    """
    Outcome of one run.

    errors holds exactly the names of the failed tasks.
    aborted is set when a sequential run stopped at its first failure.
    """
    results: Dict[str, TaskResult] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)
    attempted: List[str] = field(default_factory=list)
    aborted: bool = False

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results.values())

    @property
    def failed(self) -> List[str]:
        return sorted(self.errors)
