# cli.py
from __future__ import annotations

import sys
from pathlib import Path

import click

from stepflow.errors import StepflowError, WorkflowDefinitionError, WorkflowSetupError
from stepflow.loader import load_workflow, parse_overrides, parse_var_pairs
from stepflow.placeholders import CURLY, find_placeholders, substitute_command
from stepflow.report import report
from stepflow.runner import build_context, run_workflow
from stepflow.scheduler import select_strategy
from stepflow.ui.console import Console, get_console, set_console


def _load(workflow: str, placeholders: str | None, var: tuple[str, ...]):
    """Resolve the override map and load the workflow; --var beats --placeholders."""
    overrides = parse_overrides(placeholders)
    overrides.update(parse_var_pairs(var))
    return load_workflow(Path(workflow), overrides), overrides


def _fail_definition(e: StepflowError, workflow: str) -> None:
    console = get_console()
    if isinstance(e, WorkflowSetupError):
        console.print_error("Setup failed", str(e))
    else:
        console.print_error(
            "Invalid workflow",
            f"Could not load workflow from {workflow}",
            details=[str(e)],
        )
    sys.exit(1)


workflow_option = click.option(
    "-w",
    "--workflow",
    required=True,
    envvar="STEPFLOW_WORKFLOW",
    type=click.Path(dir_okay=False),
    help="Path to the workflow YAML file",
)
placeholders_option = click.option(
    "-p",
    "--placeholders",
    default=None,
    envvar="STEPFLOW_PLACEHOLDERS",
    help='JSON object of placeholder values, e.g. \'{"ENV": "prod"}\'',
)
var_option = click.option(
    "--var",
    multiple=True,
    metavar="KEY=VALUE",
    help="Placeholder value (repeatable, wins over --placeholders)",
)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """stepflow: run shell steps in sequence or in a bounded worker pool."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@workflow_option
@placeholders_option
@var_option
@click.option("-q", "--quiet", is_flag=True, default=False, help="Do not print the banner")
@click.option(
    "--parallel/--sequential",
    default=None,
    help="Override the workflow's execution mode",
)
@click.option("--workers", default=None, type=int, help="Override the number of parallel workers")
@click.pass_context
def run(ctx, workflow, placeholders, var, quiet, parallel, workers):
    """Run a workflow."""
    console = get_console()
    console.quiet = quiet
    console.print_banner()

    try:
        wf, overrides = _load(workflow, placeholders, var)
        if parallel is not None:
            wf.parallel = parallel
        if workers is not None:
            wf.workers = workers

        batch = run_workflow(wf, overrides=overrides, console=console)
        code = report(batch, wf, console)
    except (WorkflowDefinitionError, WorkflowSetupError) as e:
        _fail_definition(e, workflow)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)

    sys.exit(code)


@cli.command()
@workflow_option
@placeholders_option
@var_option
def check(workflow, placeholders, var):
    """Validate a workflow and print its execution plan."""
    console = get_console()
    try:
        wf, overrides = _load(workflow, placeholders, var)
    except WorkflowDefinitionError as e:
        _fail_definition(e, workflow)

    strategy = select_strategy(wf)
    context = build_context(wf, overrides, console)

    plan = []
    unresolved = []
    for name in strategy.order(wf.tasks):
        task = wf.tasks[name]
        variables = context.variables_for(task)
        commands = [substitute_command(cmd, variables) for cmd in task.commands]
        for cmd in commands:
            unresolved.extend(f"{name}: {tok}" for tok in find_placeholders(cmd, CURLY))
        plan.append((name, commands))

    console.print_info(f"Workflow {wf.name} is valid")
    console.print_plan(strategy.mode, wf.effective_workers, plan)
    for item in unresolved:
        console.print_warning(f"Unresolved placeholder in step {item}")


if __name__ == "__main__":
    cli()
