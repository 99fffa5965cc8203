# errors.py
from __future__ import annotations

from dataclasses import dataclass


class StepflowError(Exception):
    """Base class for every error stepflow raises on purpose."""


class WorkflowDefinitionError(StepflowError):
    """
    The workflow document (or the override input) is unusable.

    Raised before any step runs: unreadable file, malformed YAML,
    wrong field types, malformed placeholder JSON.
    """

    def __init__(self, message: str, *, path: str | None = None, field: str | None = None):
        self.path = path
        self.field = field
        super().__init__(message)

    def __str__(self) -> str:
        msg = super().__str__()
        if self.field:
            msg = f"{msg} (field={self.field})"
        if self.path:
            msg = f"{self.path}: {msg}"
        return msg


class WorkflowSetupError(StepflowError):
    """The run cannot start, e.g. the output directory cannot be created."""


@dataclass
class CommandFailure(StepflowError):
    """
    A single shell command did not succeed.

    exit_code is None when the process never started (spawn failure).
    """
    task: str
    command: str
    exit_code: int | None
    reason: str

    def __str__(self) -> str:
        return f"Failed to execute: {self.reason}"
