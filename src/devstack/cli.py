# cli.py
from __future__ import annotations

import difflib
import sys
from pathlib import Path

import click

from devstack.config import ENV_FILE, ENV_TEMPLATE_SUFFIX, EnvConfig, Settings, bootstrap_env_file
from devstack.errors import DevstackError, OperationFailed, UnknownOperation
from devstack.executor import ProcessExecutor
from devstack.runner import Runner, load_operations
from devstack.step_workflows.docker import composer_step, console_step, exec_step
from devstack.tasks import operations as builtin_operations
from devstack.ui.console import Console, configure_logging, get_console, set_console

EXIT_UNKNOWN = 2
EXIT_INTERRUPTED = 130


def build_runner(project_dir: Path, tasks_file: str | None) -> Runner:
    """
    Assemble config, settings and the operation graph once for this process.

    The live env file is created from its template up front when possible so
    the config sees it; when the template is missing too, the
    `bootstrap-env` operation reports it if anything asks for it.
    """
    live = project_dir / ENV_FILE
    template = project_dir / (ENV_FILE + ENV_TEMPLATE_SUFFIX)
    if not live.exists() and template.is_file():
        bootstrap_env_file(live, template)

    config = EnvConfig.load(project_dir)
    settings = Settings.from_config(config)
    if tasks_file:
        ops = load_operations(tasks_file, settings)
    else:
        ops = builtin_operations(settings)

    return Runner(
        ops,
        config,
        settings=settings,
        executor=ProcessExecutor(project_dir, base_env=config),
        console=get_console(),
        root=project_dir,
    )


def _runner(ctx: click.Context) -> Runner:
    obj = ctx.find_object(dict)
    if "runner" not in obj:
        try:
            obj["runner"] = build_runner(obj["project_dir"], obj["tasks"])
        except (DevstackError, ValueError, TypeError, FileNotFoundError) as e:
            get_console().print_error("Could not load operations", str(e))
            ctx.exit(1)
    return obj["runner"]


@click.group(invoke_without_command=True)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.option(
    "--project-dir",
    default=".",
    type=click.Path(file_okay=False, path_type=Path),
    help="Project root holding the compose file and .env files",
)
@click.option("--tasks", default=None, help="Python file defining operations(settings) to use instead of the built-in table")
@click.pass_context
def cli(ctx, debug, project_dir, tasks):
    """devstack: bootstrap and task runner for the php + pwa + traefik stack."""
    console = Console(debug=debug)
    set_console(console)
    configure_logging(debug)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["project_dir"] = project_dir.resolve()
    ctx.obj["tasks"] = tasks

    if ctx.invoked_subcommand is None:
        ctx.invoke(list_operations)


@cli.command("list")
@click.pass_context
def list_operations(ctx):
    """List every operation with its description."""
    runner = _runner(ctx)
    get_console().print_listing(runner.operations)


@cli.command()
@click.argument("name")
@click.option("--dry-run", is_flag=True, default=False, help="Print the resolved plan without executing it")
@click.pass_context
def run(ctx, name, dry_run):
    """Run operation NAME and everything it needs."""
    console = get_console()
    runner = _runner(ctx)

    try:
        plan = runner.plan(name)
    except UnknownOperation as e:
        close = difflib.get_close_matches(name, e.known, n=3)
        console.print_error(
            "Unknown operation",
            str(e),
            details=[f"Did you mean: {', '.join(close)}?"] if close else None,
            suggestion="List available operations:\n  devstack list",
        )
        ctx.exit(EXIT_UNKNOWN)

    if not dry_run:
        console.print_run_started(project=runner.settings.project, target=name, operation_count=len(plan))

    try:
        result = runner.run(name, dry_run=dry_run)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(EXIT_INTERRUPTED)
    except OperationFailed as e:
        console.print_error(
            f"Operation '{e.name}' failed",
            str(e.cause),
            details=[f"Completed before the failure: {', '.join(e.completed) or '(none)'}"],
            suggestion=f"Fix the cause and re-run:\n  devstack run {name}",
        )
        if ctx.obj.get("debug", False):
            console.print_exception(e)
        ctx.exit(1)

    if not dry_run:
        console.print_results(result.results)


# ---------------------------------------------------------------------
# Passthroughs: one command in a container, exit status propagated
# ---------------------------------------------------------------------

def _passthrough(ctx: click.Context, step) -> None:
    runner = _runner(ctx)
    get_console().print_debug(f"exec {step.display}")
    try:
        code = runner.executor.run(step.argv, cwd=step.cwd)
    except KeyboardInterrupt:
        sys.exit(EXIT_INTERRUPTED)
    ctx.exit(code)


_PASSTHROUGH = {"ignore_unknown_options": True, "allow_extra_args": True}


@cli.command(context_settings=_PASSTHROUGH)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def composer(ctx, args):
    """Run composer in the API container, e.g. devstack composer req symfony/orm-pack"""
    runner = _runner(ctx)
    _passthrough(ctx, composer_step(runner.settings, "composer", *args))


@cli.command(context_settings=_PASSTHROUGH)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def console(ctx, args):
    """Run bin/console in the API container (no args lists its commands)."""
    runner = _runner(ctx)
    _passthrough(ctx, console_step(runner.settings, "console", *args))


@cli.command("sh")
@click.pass_context
def shell(ctx):
    """Open a shell in the API container."""
    runner = _runner(ctx)
    _passthrough(ctx, exec_step(runner.settings, runner.settings.api_service, "shell", "sh"))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
