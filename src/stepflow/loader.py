"""
Workflow document loading.

File format (YAML):

    workflow: release
    parallel: true
    workers: 4
    silent: false
    output-dir: out
    output-file: run.log
    vars:
      TARGET: staging
    steps:
      build: make build TARGET=<<TARGET>>
      test:
        - make test
        - make lint
      deploy:
        commands: ["./deploy {{TARGET}}"]
        silent: true

`tasks:` may be used instead of `steps:` as a list of
`{name, command | commands, silent?, vars?}` entries.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

import yaml

from .errors import WorkflowDefinitionError
from .model import Task, Workflow
from .placeholders import resolve_variables, substitute_document

_SCALARS = (str, int, float, bool)


# ----------------------------------------------------------------------
# Override input
# ----------------------------------------------------------------------

def parse_overrides(text: str | None) -> Dict[str, str]:
    """Parse the JSON placeholder map given on the command line."""
    if not text:
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise WorkflowDefinitionError(f"Error parsing placeholders JSON: {e}", field="placeholders")
    if not isinstance(data, dict):
        raise WorkflowDefinitionError(
            f"Placeholders must be a JSON object, got {type(data).__name__}",
            field="placeholders",
        )
    for key, value in data.items():
        if value is not None and not isinstance(value, _SCALARS):
            raise WorkflowDefinitionError(
                f"Placeholder {key!r} must be a string or number, got {type(value).__name__}",
                field="placeholders",
            )
    return resolve_variables(data)


def parse_var_pairs(pairs: Iterable[str]) -> Dict[str, str]:
    """Parse repeated KEY=VALUE options."""
    out: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise WorkflowDefinitionError(f"Expected KEY=VALUE, got {pair!r}", field="var")
        out[key] = value
    return out


# ----------------------------------------------------------------------
# Document parsing
# ----------------------------------------------------------------------

def _safe_load(text: str, path: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise WorkflowDefinitionError(f"Error parsing YAML: {e}", path=path)


def _declared_vars(text: str) -> Dict[str, Any]:
    """Best-effort read of `vars:` before any substitution took place."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError:
        return {}
    if isinstance(data, dict) and isinstance(data.get("vars"), dict):
        return data["vars"]
    return {}


def _as_vars(value: Any, field: str, path: str) -> Dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise WorkflowDefinitionError(f"Expected a mapping, got {type(value).__name__}", path=path, field=field)
    for key, item in value.items():
        if item is not None and not isinstance(item, _SCALARS):
            raise WorkflowDefinitionError(
                f"Variable {key!r} must be a scalar, got {type(item).__name__}", path=path, field=field
            )
    return resolve_variables(value)


def _as_bool(value: Any, field: str, path: str, default: Optional[bool]) -> Optional[bool]:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise WorkflowDefinitionError(f"Expected true/false, got {value!r}", path=path, field=field)
    return value


def _as_commands(value: Any, field: str, path: str) -> List[str]:
    if isinstance(value, str):
        commands = [value]
    elif isinstance(value, list):
        commands = value
    else:
        raise WorkflowDefinitionError(
            f"Expected a command string or a list of commands, got {type(value).__name__}",
            path=path,
            field=field,
        )
    if not commands:
        raise WorkflowDefinitionError("A step needs at least one command", path=path, field=field)
    for cmd in commands:
        if not isinstance(cmd, str) or not cmd.strip():
            raise WorkflowDefinitionError(f"Invalid command {cmd!r}", path=path, field=field)
    return list(commands)


def _task_from_spec(name: Any, spec: Any, path: str) -> Task:
    if not isinstance(name, (str, int)) or str(name) == "":
        raise WorkflowDefinitionError(f"Invalid step name {name!r}", path=path, field="steps")
    name = str(name)
    field = f"steps.{name}"

    if not isinstance(spec, dict):
        return Task(name=name, commands=_as_commands(spec, field, path))

    if "command" in spec and "commands" in spec:
        raise WorkflowDefinitionError("Use either 'command' or 'commands', not both", path=path, field=field)
    raw = spec.get("commands", spec.get("command"))
    if raw is None:
        raise WorkflowDefinitionError("Missing 'command' or 'commands'", path=path, field=field)

    return Task(
        name=name,
        commands=_as_commands(raw, field, path),
        silent=_as_bool(spec.get("silent"), f"{field}.silent", path, None),
        vars=_as_vars(spec.get("vars"), f"{field}.vars", path),
    )


def _tasks_from_steps(steps: Any, path: str) -> Dict[str, Task]:
    # YAML mappings keep the last of duplicated keys
    if not isinstance(steps, dict):
        raise WorkflowDefinitionError(
            f"'steps' must be a mapping of name to command(s), got {type(steps).__name__}",
            path=path,
            field="steps",
        )
    return {str(name): _task_from_spec(name, spec, path) for name, spec in steps.items()}


def _tasks_from_list(tasks: Any, path: str) -> Dict[str, Task]:
    if not isinstance(tasks, list):
        raise WorkflowDefinitionError(
            f"'tasks' must be a list, got {type(tasks).__name__}", path=path, field="tasks"
        )
    by_name: Dict[str, Task] = {}
    for i, entry in enumerate(tasks):
        if not isinstance(entry, dict) or "name" not in entry:
            raise WorkflowDefinitionError("Each task needs a 'name'", path=path, field=f"tasks[{i}]")
        task = _task_from_spec(entry["name"], entry, path)
        if task.name in by_name:
            raise WorkflowDefinitionError(f"Duplicate task name: {task.name}", path=path, field=f"tasks[{i}]")
        by_name[task.name] = task
    return by_name


def workflow_from_dict(data: Mapping[str, Any], path: str = "<workflow>") -> Workflow:
    if not isinstance(data, dict):
        raise WorkflowDefinitionError(f"Expected a mapping at the top level, got {type(data).__name__}", path=path)

    if "steps" in data and "tasks" in data:
        raise WorkflowDefinitionError("Use either 'steps' or 'tasks', not both", path=path)

    if "tasks" in data:
        tasks = _tasks_from_list(data["tasks"], path)
    elif data.get("steps") is not None:
        tasks = _tasks_from_steps(data["steps"], path)
    else:
        tasks = {}

    workers = data.get("workers", 0)
    if workers is None:
        workers = 0
    if isinstance(workers, bool) or not isinstance(workers, int):
        raise WorkflowDefinitionError(f"Expected an integer, got {workers!r}", path=path, field="workers")

    def _opt_str(key: str) -> Optional[str]:
        value = data.get(key)
        if value is None or value == "":
            return None
        if not isinstance(value, (str, int)):
            raise WorkflowDefinitionError(f"Expected a string, got {value!r}", path=path, field=key)
        return str(value)

    name = data.get("workflow", data.get("name"))
    return Workflow(
        name="" if name is None else str(name),
        tasks=tasks,
        parallel=_as_bool(data.get("parallel"), "parallel", path, False),
        workers=workers,
        silent=_as_bool(data.get("silent"), "silent", path, False),
        output_dir=_opt_str("output-dir"),
        output_file=_opt_str("output-file"),
        vars=_as_vars(data.get("vars"), "vars", path),
    )


def load_workflow_text(text: str, overrides: Optional[Mapping[str, str]] = None, path: str = "<workflow>") -> Workflow:
    """
    Build a Workflow from YAML text.

    `<<name>>` tokens are replaced in the raw text before the final parse,
    using the overrides first and the document's own `vars:` otherwise.
    """
    variables = resolve_variables(overrides, _declared_vars(text))
    data = _safe_load(substitute_document(text, variables), path)
    if data is None:
        data = {}
    return workflow_from_dict(data, path)


def load_workflow(path: str | Path, overrides: Optional[Mapping[str, str]] = None) -> Workflow:
    """
    Load a workflow from a YAML file.

    Raises:
      WorkflowDefinitionError if the file cannot be read or is not a valid workflow.
    """
    wf_path = Path(path).expanduser()
    try:
        text = wf_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise WorkflowDefinitionError(f"Error reading YAML file: {e}", path=str(wf_path))
    return load_workflow_text(text, overrides, path=str(wf_path))
