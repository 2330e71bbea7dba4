# executor.py
# The only place devstack spawns processes. Everything else goes through an
# Executor so tests can swap in a fake that records argv.

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Dict, Mapping, Optional, Protocol, Sequence, Tuple

log = logging.getLogger(__name__)

# Shell convention for "command not found"
EXIT_NOT_FOUND = 127


class Executor(Protocol):
    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> int: ...

    def capture(self, argv: Sequence[str]) -> Tuple[int, str]: ...

    def which(self, tool: str) -> Optional[str]: ...


class ProcessExecutor:
    """
    Blocking subprocess executor.

    `run` inherits stdout/stderr so long-running commands (logs --follow,
    yarn dev) stream straight to the terminal. No timeout is imposed; the
    command decides.
    """

    def __init__(self, root: str | Path = ".", base_env: Mapping[str, str] | None = None):
        self.root = Path(root).resolve()
        self.base_env: Dict[str, str] = dict(base_env or {})

    def _env(self, extra: Mapping[str, str] | None) -> Dict[str, str]:
        env = os.environ.copy()
        env.update(self.base_env)
        env.update(extra or {})
        return env

    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> int:
        workdir = (self.root / (cwd or ".")).resolve()
        if not workdir.exists():
            raise FileNotFoundError(f"cwd not found: {workdir}")

        log.debug("exec %s (cwd=%s)", " ".join(argv), workdir)
        try:
            proc = subprocess.run(list(argv), cwd=str(workdir), env=self._env(env))
        except FileNotFoundError:
            log.debug("executable not found: %s", argv[0])
            return EXIT_NOT_FOUND
        return proc.returncode

    def capture(self, argv: Sequence[str]) -> Tuple[int, str]:
        try:
            proc = subprocess.run(
                list(argv),
                cwd=str(self.root),
                env=self._env(None),
                text=True,
                capture_output=True,
            )
        except FileNotFoundError:
            return EXIT_NOT_FOUND, ""
        return proc.returncode, proc.stdout.strip()

    def which(self, tool: str) -> Optional[str]:
        return shutil.which(tool)
