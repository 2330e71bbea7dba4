# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


class DevstackError(Exception):
    """Base class for every error devstack reports to the operator."""


@dataclass(eq=False)
class UnknownOperation(DevstackError):
    name: str
    known: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"Unknown operation '{self.name}'"


@dataclass(eq=False)
class CycleError(DevstackError, ValueError):
    path: List[str]

    def __str__(self) -> str:
        return "Operation graph has a cycle: " + " -> ".join(self.path)


@dataclass(eq=False)
class StepFailure(DevstackError):
    operation: str
    step: str
    cmd: str
    exit_code: int

    def __str__(self) -> str:
        return f"[{self.operation}] step '{self.step}' failed (exit={self.exit_code}): {self.cmd}"


@dataclass(eq=False)
class OperationFailed(DevstackError):
    name: str
    cause: BaseException
    completed: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"Operation '{self.name}' failed: {self.cause}"


@dataclass(eq=False)
class ContainerNotRunning(DevstackError):
    container: str

    def __str__(self) -> str:
        return f"Container '{self.container}' is not running"


@dataclass(eq=False)
class CertificateGenerationError(DevstackError):
    reason: str

    def __str__(self) -> str:
        return f"Certificate generation failed: {self.reason}"


@dataclass(eq=False)
class CopyError(DevstackError):
    source: str
    destination: str
    reason: str

    def __str__(self) -> str:
        return f"Copy {self.source} -> {self.destination} failed: {self.reason}"


@dataclass(eq=False)
class EnvironmentBootstrapError(DevstackError):
    template: str
    live: str

    def __str__(self) -> str:
        return f"Cannot create {self.live}: template {self.template} not found"
