# scheduler.py
from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, List, Mapping

from .model import FAILED, BatchResult, Task, TaskResult, Workflow
from .tasks import RunContext, run_task
from .ui.console import get_console

TaskRunner = Callable[[Task, RunContext], TaskResult]


# ----------------------------------------------------------------------
# Per-run result collection
# ----------------------------------------------------------------------

class ResultCollector:
    """
    Results of one run, shared by every worker of that run.

    The lock is only held while a map is written, never while a
    command is running.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._results: Dict[str, TaskResult] = {}
        self._errors: Dict[str, str] = {}
        self._attempted: List[str] = []

    def started(self, name: str) -> None:
        with self._lock:
            self._attempted.append(name)

    def record(self, result: TaskResult) -> None:
        with self._lock:
            self._results[result.name] = result
            if not result.ok:
                self._errors[result.name] = result.error or "unknown error"

    def batch(self, *, aborted: bool = False) -> BatchResult:
        with self._lock:
            return BatchResult(
                results=dict(self._results),
                errors=dict(self._errors),
                attempted=list(self._attempted),
                aborted=aborted,
            )


def _run_guarded(runner: TaskRunner, task: Task, context: RunContext) -> TaskResult:
    """Run one task; an unexpected exception counts as a failure of that task only."""
    try:
        return runner(task, context)
    except Exception as e:
        console = context.console or get_console()
        console.print_failure(task.name, f"Failed to execute: {e}")
        return TaskResult(name=task.name, status=FAILED, error=f"Failed to execute: {e}")


# ----------------------------------------------------------------------
# Strategies
# ----------------------------------------------------------------------

class SequentialStrategy:
    """
    One task at a time, sorted by name.

    The first failed task ends the run: nothing after it is started.
    """
    mode = "sequential"

    def __init__(self, task_runner: TaskRunner = run_task):
        self.task_runner = task_runner

    def order(self, tasks: Mapping[str, Task]) -> List[str]:
        return sorted(tasks)

    def run(self, tasks: Mapping[str, Task], context: RunContext) -> BatchResult:
        collector = ResultCollector()
        for name in self.order(tasks):
            collector.started(name)
            result = _run_guarded(self.task_runner, tasks[name], context)
            collector.record(result)
            if not result.ok:
                return collector.batch(aborted=True)
        return collector.batch()


class ParallelStrategy:
    """
    Every task at once, at most `workers` running at the same time.

    A failure never stops the other tasks; the run returns once all of
    them have finished.
    """
    mode = "parallel"

    def __init__(self, workers: int, task_runner: TaskRunner = run_task):
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")
        self.workers = workers
        self.task_runner = task_runner

    def order(self, tasks: Mapping[str, Task]) -> List[str]:
        return sorted(tasks)

    def _work(self, task: Task, context: RunContext, collector: ResultCollector) -> TaskResult:
        collector.started(task.name)
        result = _run_guarded(self.task_runner, task, context)
        collector.record(result)
        return result

    def run(self, tasks: Mapping[str, Task], context: RunContext) -> BatchResult:
        collector = ResultCollector()
        if not tasks:
            return collector.batch()

        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="stepflow") as pool:
            futures = {
                pool.submit(self._work, tasks[name], context, collector): name
                for name in self.order(tasks)
            }
            for fut in as_completed(futures):
                # _work never raises; surface anything truly unexpected
                fut.result()

        return collector.batch()


def select_strategy(workflow: Workflow, task_runner: TaskRunner = run_task):
    if workflow.parallel:
        return ParallelStrategy(workflow.effective_workers, task_runner=task_runner)
    return SequentialStrategy(task_runner=task_runner)
