"""Loading workflow documents."""

from __future__ import annotations

import pytest

from stepflow.errors import WorkflowDefinitionError
from stepflow.loader import load_workflow, load_workflow_text, parse_overrides, parse_var_pairs


def test_steps_mapping_with_strings_and_lists(write_workflow) -> None:
    path = write_workflow(
        """
        workflow: demo
        parallel: true
        workers: 3
        output-dir: out
        output-file: run.log
        steps:
          build: make build
          test:
            - make test
            - make lint
          deploy:
            commands: ["./deploy"]
            silent: true
        """
    )
    wf = load_workflow(path)

    assert wf.name == "demo"
    assert wf.parallel is True
    assert wf.effective_workers == 3
    assert wf.output_path is not None and wf.output_path.name == "run.log"
    assert wf.tasks["build"].commands == ["make build"]
    assert wf.tasks["test"].commands == ["make test", "make lint"]
    assert wf.tasks["deploy"].silent is True
    assert wf.tasks["build"].silent is None
    assert wf.task_names() == ["build", "deploy", "test"]


def test_defaults_when_fields_are_missing() -> None:
    wf = load_workflow_text("workflow: bare\n")
    assert wf.parallel is False
    assert wf.silent is False
    assert wf.effective_workers == 10
    assert wf.output_path is None
    assert wf.tasks == {}


@pytest.mark.parametrize("workers", [0, -4])
def test_non_positive_workers_fall_back_to_ten(workers) -> None:
    wf = load_workflow_text(f"workflow: w\nworkers: {workers}\n")
    assert wf.effective_workers == 10


def test_tasks_list_form() -> None:
    wf = load_workflow_text(
        """
tasks:
  - name: one
    command: echo 1
  - name: two
    commands: [echo 2, echo 3]
    vars: {X: y}
"""
    )
    assert wf.tasks["one"].commands == ["echo 1"]
    assert wf.tasks["two"].commands == ["echo 2", "echo 3"]
    assert wf.tasks["two"].vars == {"X": "y"}


def test_duplicate_names_in_tasks_list_are_rejected() -> None:
    with pytest.raises(WorkflowDefinitionError, match="Duplicate task name: one"):
        load_workflow_text(
            """
tasks:
  - {name: one, command: echo 1}
  - {name: one, command: echo 2}
"""
        )


def test_duplicate_keys_in_steps_mapping_keep_the_last() -> None:
    wf = load_workflow_text("steps:\n  a: echo first\n  a: echo second\n")
    assert wf.tasks["a"].commands == ["echo second"]


def test_document_placeholders_use_overrides_then_declared_vars() -> None:
    text = """
workflow: <<NAME>>
vars:
  NAME: from-vars
  TARGET: staging
steps:
  go: echo <<TARGET>> <<MISSING>>
"""
    wf = load_workflow_text(text, {"TARGET": "prod"})
    assert wf.name == "from-vars"
    assert wf.tasks["go"].commands == ["echo prod <<MISSING>>"]


@pytest.mark.parametrize(
    "text, field",
    [
        ("- just\n- a list\n", None),
        ("steps: [a, b]\n", "steps"),
        ("steps:\n  a: []\n", "steps.a"),
        ("steps:\n  a: {silent: true}\n", "steps.a"),
        ("steps:\n  a: 12\n", "steps.a"),
        ("workers: many\n", "workers"),
        ("parallel: maybe\n", "parallel"),
        ("vars: [1, 2]\n", "vars"),
        ("steps: {a: x}\ntasks: []\n", None),
    ],
)
def test_malformed_documents_are_rejected(text, field) -> None:
    with pytest.raises(WorkflowDefinitionError) as info:
        load_workflow_text(text)
    assert info.value.field == field


def test_invalid_yaml_is_rejected() -> None:
    with pytest.raises(WorkflowDefinitionError, match="Error parsing YAML"):
        load_workflow_text("steps: {a: [unclosed\n")


def test_missing_file_is_a_definition_error(tmp_path) -> None:
    with pytest.raises(WorkflowDefinitionError, match="Error reading YAML file"):
        load_workflow(tmp_path / "nope.yaml")


def test_parse_overrides() -> None:
    assert parse_overrides(None) == {}
    assert parse_overrides('{"A": "x", "N": 2}') == {"A": "x", "N": "2"}
    with pytest.raises(WorkflowDefinitionError):
        parse_overrides("{not json")
    with pytest.raises(WorkflowDefinitionError):
        parse_overrides('["a"]')
    with pytest.raises(WorkflowDefinitionError):
        parse_overrides('{"A": {"nested": 1}}')


def test_parse_var_pairs() -> None:
    assert parse_var_pairs(["A=1", "B=x=y", "C="]) == {"A": "1", "B": "x=y", "C": ""}
    with pytest.raises(WorkflowDefinitionError):
        parse_var_pairs(["novalue"])


def test_loaded_tasks_can_be_adjusted() -> None:
    wf = load_workflow_text("steps:\n  a: echo 1\n")
    task = wf.tasks["a"]

    task.silent = True
    task.commands.append("echo 2")

    assert task.is_silent(False) is True
    assert wf.tasks["a"].commands == ["echo 1", "echo 2"]
