# src/devstack/dsl.py
from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Sequence

from .errors import StepFailure
from .model import Action, ActionContext, Operation, Step


# ---------------------------------------------------------------------
# Step helper
# ---------------------------------------------------------------------

def sh(name: str, *argv: str, cwd: str | None = None) -> Step:
    """Create a command step. argv is passed to the process as-is, no shell."""
    if not argv:
        raise ValueError(f"sh({name!r}) needs a command")
    return Step(name=name, argv=tuple(argv), cwd=cwd)


def run_steps(ctx: ActionContext, steps: Sequence[Step]) -> None:
    """Run steps in order; the first non-zero exit raises StepFailure."""
    for step in steps:
        code = ctx.executor.run(step.argv, cwd=step.cwd)
        if code != 0:
            raise StepFailure(
                operation=ctx.operation,
                step=step.name,
                cmd=step.display,
                exit_code=code,
            )


def command_action(*steps: Step) -> Action:
    """Action that runs the given steps with the context's executor."""
    frozen = tuple(steps)

    def action(ctx: ActionContext) -> None:
        run_steps(ctx, frozen)

    return action


# ---------------------------------------------------------------------
# Functional Operation helper
# ---------------------------------------------------------------------

def op(
    name: str,
    *steps: Step,  # allow: op("x", sh(...), sh(...))
    needs: Optional[List[str]] = None,
    description: str = "",
    action: Optional[Action] = None,
    cwd: str | None = None,  # default cwd applied to steps missing cwd
) -> Operation:
    """
    Declare an operation.

    Either pass command steps (they become the action), pass a custom
    `action`, or pass neither for an aggregate that only has needs.
    """
    if steps and action is not None:
        raise ValueError(f"op({name!r}) takes steps or an action, not both")

    steps_final = list(steps)
    if cwd is not None:
        steps_final = [s if s.cwd is not None else replace(s, cwd=cwd) for s in steps_final]

    if steps_final:
        action = command_action(*steps_final)

    return Operation(
        name=name,
        needs=list(needs or []),
        action=action,
        description=description,
        steps=steps_final,
    )


def registry(*operations: Operation) -> List[Operation]:
    """
    Operation table helper; declaration order is the listing order.

        def operations(settings):
            return registry(
                op("lint", sh("Ruff", "ruff", "check", ".")),
                op("check", needs=["lint"]),
            )
    """
    return list(operations)
