"""End-to-end runs through the command line."""

from __future__ import annotations

import json

from click.testing import CliRunner

from stepflow.cli import cli


def _invoke(*args: str):
    return CliRunner().invoke(cli, list(args))


def test_missing_workflow_is_a_usage_error() -> None:
    result = _invoke("run")
    assert result.exit_code == 2
    assert "--workflow" in result.output


def test_sequential_failure_exits_one_and_skips_later_steps(write_workflow, tmp_path) -> None:
    path = write_workflow(
        f"""
        workflow: seq
        silent: true
        steps:
          a: touch {tmp_path}/a
          b: exit 1
          c: touch {tmp_path}/c
        """
    )

    result = _invoke("run", "-q", "-w", str(path))

    assert result.exit_code == 1
    assert (tmp_path / "a").exists()
    assert not (tmp_path / "c").exists()
    assert "Exiting due to error in step: b" in result.output


def test_parallel_failure_exits_one_after_every_step(write_workflow, tmp_path) -> None:
    path = write_workflow(
        f"""
        workflow: par
        parallel: true
        workers: 2
        silent: true
        steps:
          a: touch {tmp_path}/a
          b: exit 1
          c: touch {tmp_path}/c
        """
    )

    result = _invoke("run", "-q", "-w", str(path))

    assert result.exit_code == 1
    assert (tmp_path / "a").exists()
    assert (tmp_path / "c").exists()
    assert "b: Failed to execute: exit status 1" in result.output
    assert "Job Finished with 1 failed step(s)" in result.output


def test_success_exits_zero_and_prints_banner(write_workflow) -> None:
    path = write_workflow("workflow: ok\nsilent: true\nsteps:\n  a: 'true'\n")

    result = _invoke("run", "-w", str(path))

    assert result.exit_code == 0
    assert "Executing workflow ok" in result.output
    assert "Job Finished" in result.output
    assert "/____/" in result.output


def test_quiet_hides_banner(write_workflow) -> None:
    path = write_workflow("workflow: ok\nsilent: true\nsteps:\n  a: 'true'\n")
    result = _invoke("run", "--quiet", "-w", str(path))
    assert result.exit_code == 0
    assert "/____/" not in result.output


def test_placeholders_and_vars_reach_the_commands(write_workflow, tmp_path) -> None:
    path = write_workflow(
        f"""
        workflow: vars
        silent: true
        output-dir: {tmp_path}/out
        output-file: run.log
        steps:
          a: echo "<<GREETING>> {{{{who}}}}"
        """
    )

    result = _invoke(
        "run", "-q", "-w", str(path),
        "-p", json.dumps({"GREETING": "hello", "who": "json"}),
        "--var", "who=cli",
    )

    assert result.exit_code == 0, result.output
    assert (tmp_path / "out" / "run.log").read_text() == "hello cli\n"


def test_mode_flags_override_the_document(write_workflow, tmp_path) -> None:
    path = write_workflow(
        f"""
        workflow: flip
        silent: true
        steps:
          a: exit 1
          b: touch {tmp_path}/b
        """
    )

    result = _invoke("run", "-q", "--parallel", "--workers", "1", "-w", str(path))

    assert result.exit_code == 1
    assert (tmp_path / "b").exists()


def test_bad_placeholders_json_exits_one(write_workflow) -> None:
    path = write_workflow("workflow: x\nsteps:\n  a: 'true'\n")
    result = _invoke("run", "-q", "-w", str(path), "-p", "{oops")
    assert result.exit_code == 1
    assert "Error parsing placeholders JSON" in result.output


def test_unreadable_workflow_exits_one(tmp_path) -> None:
    result = _invoke("run", "-q", "-w", str(tmp_path / "missing.yaml"))
    assert result.exit_code == 1
    assert "Error reading YAML file" in result.output


def test_check_prints_plan_and_unresolved(write_workflow) -> None:
    path = write_workflow(
        """
        workflow: plan
        parallel: true
        workers: 3
        vars:
          region: eu
        steps:
          zeta: echo {{region}}
          alpha:
            - echo {{missing}}
        """
    )

    result = _invoke("check", "-w", str(path))

    assert result.exit_code == 0, result.output
    assert "Workflow plan is valid" in result.output
    assert "Mode: parallel" in result.output
    assert "Workers: 3" in result.output
    assert result.output.index("alpha") < result.output.index("zeta")
    assert "$ echo eu" in result.output
    assert "Unresolved placeholder in step alpha: missing" in result.output


def test_output_dir_setup_failure_exits_one(write_workflow, tmp_path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    path = write_workflow(
        f"""
        workflow: setup
        silent: true
        output-dir: {blocker}/logs
        output-file: run.log
        steps:
          a: touch {tmp_path}/ran
        """
    )

    result = _invoke("run", "-q", "-w", str(path))

    assert result.exit_code == 1
    assert "Setup failed" in result.output
    assert "Error creating output directory" in result.output
    assert not (tmp_path / "ran").exists()
