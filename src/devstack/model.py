# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable, List, Optional

if TYPE_CHECKING:
    from .config import EnvConfig, Settings
    from .executor import Executor


@dataclass(frozen=True)
class Step:
    """A single external command inside an operation."""
    name: str
    argv: tuple[str, ...]
    cwd: str | None = None

    @property
    def display(self) -> str:
        return " ".join(self.argv)


@dataclass(frozen=True)
class ActionContext:
    """
    Everything an operation's action may touch.

    The config is built once at startup and shared by reference; actions
    read from it and never replace it.
    """
    config: "EnvConfig"
    settings: "Settings"
    executor: "Executor"
    operation: str
    root: Path = Path(".")

    def path(self, rel: str) -> Path:
        return self.root / rel


Action = Callable[[ActionContext], None]


@dataclass
class Operation:
    """
    A named unit of work: prerequisites + an action + a one-line description.

    `action` is None for aggregate operations that only exist to pull in
    their prerequisites (e.g. `init`, `check`).
    """
    name: str
    needs: List[str] = field(default_factory=list)
    action: Optional[Action] = None
    description: str = ""

    # Shown by --dry-run; the action is what executes.
    steps: List[Step] = field(default_factory=list)
