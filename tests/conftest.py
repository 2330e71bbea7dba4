"""Pytest configuration and fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple

import pytest

from devstack.config import EnvConfig, Settings
from devstack.runner import Runner
from devstack.tasks import operations
from devstack.ui.console import Console


class FakeExecutor:
    """
    Records every command instead of spawning it.

    - fail_on: substring of the joined argv -> exit code to return
    - running: containers `docker inspect` reports as running
    - missing_tools: tools `which` cannot find
    - mkcert calls write the requested key/cert files, like the real tool
    """

    def __init__(
        self,
        fail_on: Optional[Dict[str, int]] = None,
        running: Sequence[str] = ("traefik-reverse-proxy",),
        missing_tools: Sequence[str] = (),
        mkcert_writes: bool = True,
    ):
        self.fail_on = dict(fail_on or {})
        self.running: Set[str] = set(running)
        self.missing_tools: Set[str] = set(missing_tools)
        self.mkcert_writes = mkcert_writes
        self.calls: List[Tuple[str, ...]] = []
        self.captures: List[Tuple[str, ...]] = []

    def run(self, argv, *, cwd=None, env=None) -> int:
        argv = tuple(argv)
        self.calls.append(argv)
        joined = " ".join(argv)
        for needle, code in self.fail_on.items():
            if needle in joined:
                return code
        if argv[0] == "mkcert" and self.mkcert_writes:
            for flag in ("-cert-file", "-key-file"):
                path = Path(argv[argv.index(flag) + 1])
                path.write_text(f"{flag} for {' '.join(argv[5:])}\n")
        return 0

    def capture(self, argv) -> Tuple[int, str]:
        argv = tuple(argv)
        self.captures.append(argv)
        if argv[:2] == ("docker", "inspect"):
            if argv[-1] in self.running:
                return 0, "true"
            return 1, ""
        return 0, ""

    def which(self, tool: str) -> Optional[str]:
        if tool in self.missing_tools:
            return None
        return f"/usr/local/bin/{tool}"

    # helpers for assertions
    def joined_calls(self) -> List[str]:
        return [" ".join(c) for c in self.calls]

    def docker_cp_calls(self) -> List[Tuple[str, ...]]:
        return [c for c in self.calls if c[:2] == ("docker", "cp")]

    def index_of(self, needle: str) -> int:
        for idx, joined in enumerate(self.joined_calls()):
            if needle in joined:
                return idx
        raise AssertionError(f"no call containing {needle!r}: {self.joined_calls()}")


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A minimal project tree: env template + routing config."""
    (tmp_path / ".env.dist").write_text("APP_ENV=dev\nPROJECT=organizaer\n")
    (tmp_path / "docker").mkdir()
    (tmp_path / "docker" / "traefik-config.yaml").write_text("tls:\n  certificates: []\n")
    return tmp_path


@pytest.fixture
def make_runner(project: Path, fake_executor: FakeExecutor):
    """Factory: Runner over the built-in table with the fake executor."""

    def _make(executor: Optional[FakeExecutor] = None, config: Optional[EnvConfig] = None, ops=None) -> Runner:
        config = config if config is not None else EnvConfig.load(project)
        settings = Settings.from_config(config)
        return Runner(
            ops if ops is not None else operations(settings),
            config,
            settings=settings,
            executor=executor or fake_executor,
            console=Console(),
            root=project,
        )

    return _make
