# dag.py
from __future__ import annotations

from typing import Dict, Iterable, List, Set

from .errors import CycleError, UnknownOperation
from .model import Operation


def build_graph(operations: Iterable[Operation]) -> Dict[str, Operation]:
    """
    Build the operation graph once at startup.

    Requires:
      - op.name: str (unique)
      - op.needs: names of operations that must run BEFORE this one

    Returns an insertion-ordered name -> Operation map (declaration order is
    the listing order). Raises ValueError on duplicates or unknown needs and
    CycleError when the needs graph is not acyclic.
    """
    operations = list(operations)
    names = [op.name for op in operations]
    if len(set(names)) != len(names):
        dupes = sorted({n for n in names if names.count(n) > 1})
        raise ValueError(f"Duplicate operation names found: {dupes}")

    graph: Dict[str, Operation] = {op.name: op for op in operations}

    for op in operations:
        for need in op.needs:
            if need not in graph:
                raise ValueError(
                    f"Operation '{op.name}' needs missing operation '{need}'. "
                    f"Known operations: {sorted(graph)}"
                )

    _check_acyclic(graph)
    return graph


def _check_acyclic(graph: Dict[str, Operation]) -> None:
    done: Set[str] = set()

    def visit(name: str, stack: List[str]) -> None:
        if name in stack:
            raise CycleError(stack[stack.index(name):] + [name])
        if name in done:
            return
        stack.append(name)
        for need in graph[name].needs:
            visit(need, stack)
        stack.pop()
        done.add(name)

    for name in graph:
        visit(name, [])


def resolve(graph: Dict[str, Operation], target: str) -> List[Operation]:
    """
    Resolve `target` into an execution plan.

    Depth-first, post-order: every prerequisite precedes its dependents,
    siblings keep their declared left-to-right order, and an operation
    reachable through several paths appears once (at its first visit).
    The target itself is last.
    """
    if target not in graph:
        raise UnknownOperation(name=target, known=list(graph))

    plan: List[Operation] = []
    seen: Set[str] = set()

    def visit(name: str) -> None:
        if name in seen:
            return
        seen.add(name)
        op = graph[name]
        for need in op.needs:
            visit(need)
        plan.append(op)

    visit(target)
    return plan
