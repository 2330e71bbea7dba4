# runner.py
from __future__ import annotations

import logging
import runpy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .config import EnvConfig, Settings
from .dag import build_graph, resolve
from .errors import OperationFailed
from .executor import Executor, ProcessExecutor
from .model import ActionContext, Operation
from .ui.console import Console, get_console

log = logging.getLogger(__name__)

OK = "ok"
FAILED = "failed"
NOT_RUN = "not run"


# ----------------------------------------------------------------------
# Task file loading (project-local override of the built-in table)
# ----------------------------------------------------------------------

def load_operations(path: str | Path, settings: Settings) -> List[Operation]:
    """
    Load operations from a python file path.

    The file must define either:
      - operations(settings) -> List[Operation]
      - OPERATIONS = [Operation, ...]
    """
    tasks_path = Path(path).expanduser().resolve()
    if not tasks_path.exists():
        raise FileNotFoundError(f"Tasks file not found: {tasks_path}")
    if tasks_path.suffix != ".py":
        raise ValueError(f"Tasks file must be a .py file, got: {tasks_path.name}")

    globals_dict = runpy.run_path(str(tasks_path), run_name=f"devstack_tasks_{tasks_path.stem}")

    ops = None
    if "operations" in globals_dict and callable(globals_dict["operations"]):
        ops = globals_dict["operations"](settings)
    elif "OPERATIONS" in globals_dict:
        ops = globals_dict["OPERATIONS"]

    if not isinstance(ops, list) or not all(isinstance(o, Operation) for o in ops):
        raise TypeError(
            "Tasks file must return/define a List[Operation]. "
            "Define operations(settings) -> List[Operation] or OPERATIONS = [Operation, ...]."
        )
    return ops


# ----------------------------------------------------------------------
# Execution
# ----------------------------------------------------------------------

@dataclass
class RunResult:
    target: str
    results: Dict[str, str] = field(default_factory=dict)
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        """No failure; for a dry run nothing executes, so every status is NOT_RUN."""
        if self.dry_run:
            return FAILED not in self.results.values()
        return all(status == OK for status in self.results.values())

    @property
    def completed(self) -> List[str]:
        return [name for name, status in self.results.items() if status == OK]


class Runner:
    """
    Sequential task-graph runner.

    The graph is validated once in the constructor. `run(name)` resolves the
    prerequisite chain and executes it in order; the first failure stops the
    chain and surfaces as OperationFailed. Side effects of operations that
    already ran are left in place.
    """

    def __init__(
        self,
        operations: Iterable[Operation],
        config: EnvConfig,
        *,
        settings: Optional[Settings] = None,
        executor: Optional[Executor] = None,
        console: Optional[Console] = None,
        root: str | Path = ".",
    ):
        self.graph = build_graph(operations)
        self.config = config
        self.root = Path(root).resolve()
        self.settings = settings or Settings.from_config(config)
        self.executor = executor or ProcessExecutor(self.root, base_env=config)
        self.console = console or get_console()

    @property
    def operations(self) -> List[Operation]:
        return list(self.graph.values())

    def plan(self, name: str) -> List[Operation]:
        return resolve(self.graph, name)

    def run(self, name: str, *, dry_run: bool = False) -> RunResult:
        plan = self.plan(name)
        result = RunResult(target=name, results={op.name: NOT_RUN for op in plan}, dry_run=dry_run)
        log.debug("plan for %s: %s", name, [op.name for op in plan])

        if dry_run:
            self.console.print_plan(plan)
            return result

        for op in plan:
            self.console.print_operation_start(op.name)
            try:
                self._execute(op)
            except Exception as e:
                result.results[op.name] = FAILED
                self.console.print_failure(
                    op.name,
                    str(e),
                    exit_code=getattr(e, "exit_code", None),
                    is_operation=True,
                )
                raise OperationFailed(name=op.name, cause=e, completed=result.completed) from e
            result.results[op.name] = OK
            self.console.print_success(op.name)

        return result

    def _execute(self, op: Operation) -> None:
        if op.action is None:
            return
        ctx = ActionContext(
            config=self.config,
            settings=self.settings,
            executor=self.executor,
            operation=op.name,
            root=self.root,
        )
        op.action(ctx)
