# step_workflows/docker.py
from __future__ import annotations

import logging

from ..config import Settings
from ..dsl import sh
from ..executor import Executor
from ..model import Step

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------
# Compose step helpers
# ---------------------------------------------------------------------

def compose_step(settings: Settings, name: str, *args: str) -> Step:
    """`docker compose <args>` on the host."""
    return sh(name, *settings.compose_command, *args)


def exec_step(settings: Settings, service: str, name: str, *args: str, tty: bool = True) -> Step:
    """Run a command inside a running compose service."""
    cmd = [*settings.compose_command, "exec"]
    if not tty:
        cmd.append("-T")
    cmd.append(service)
    return sh(name, *cmd, *args)


def php_step(settings: Settings, name: str, *args: str, tty: bool = True) -> Step:
    """`php -d memory_limit=-1 <args>` in the API container."""
    return exec_step(settings, settings.api_service, name, "php", "-d", "memory_limit=-1", *args, tty=tty)


def console_step(settings: Settings, name: str, *args: str, env: str | None = None) -> Step:
    """`bin/console -e <env> <args>`; env defaults to APP_ENV."""
    return php_step(settings, name, "bin/console", "-e", env or settings.app_env, *args)


def composer_step(settings: Settings, name: str, *args: str) -> Step:
    return exec_step(settings, settings.api_service, name, "composer", *args)


def yarn_step(settings: Settings, name: str, *args: str) -> Step:
    return exec_step(settings, settings.pwa_service, name, "yarn", *args)


# ---------------------------------------------------------------------
# Container primitives
# ---------------------------------------------------------------------

def container_running(executor: Executor, container: str) -> bool:
    """True when `docker inspect` reports the named container as running."""
    code, out = executor.capture(["docker", "inspect", "-f", "{{.State.Running}}", container])
    running = code == 0 and out.strip().lower() == "true"
    log.debug("container %s running=%s", container, running)
    return running


def copy_to_container(executor: Executor, container: str, source: str, destination: str) -> int:
    """`docker cp <source> <container>:<destination>`; overwrites the destination."""
    return executor.run(["docker", "cp", source, f"{container}:{destination}"])
