from .errors import CommandFailure, StepflowError, WorkflowDefinitionError, WorkflowSetupError
from .loader import load_workflow, load_workflow_text
from .model import BatchResult, Task, TaskResult, Workflow
from .placeholders import resolve_variables, substitute, substitute_command, substitute_document
from .report import report
from .runner import run_workflow
from .scheduler import ParallelStrategy, ResultCollector, SequentialStrategy, select_strategy

__all__ = [
    "CommandFailure",
    "StepflowError",
    "WorkflowDefinitionError",
    "WorkflowSetupError",
    "load_workflow",
    "load_workflow_text",
    "BatchResult",
    "Task",
    "TaskResult",
    "Workflow",
    "resolve_variables",
    "substitute",
    "substitute_command",
    "substitute_document",
    "report",
    "run_workflow",
    "ParallelStrategy",
    "ResultCollector",
    "SequentialStrategy",
    "select_strategy",
]
