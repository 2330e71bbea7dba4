"""Environment configuration for devstack.

Variables come from layered dotenv files read once at startup:

    .env -> .env.local -> api/.env -> api/.env.local

A later file overrides an earlier one only for the keys it defines. Missing
files are skipped. The result is an immutable `EnvConfig` that every action
receives by reference; `Settings` is the typed view of the knobs devstack
itself cares about.
"""

from __future__ import annotations

import io
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple

from dotenv import dotenv_values

from .errors import EnvironmentBootstrapError

log = logging.getLogger(__name__)

ENV_FILE = ".env"
ENV_TEMPLATE_SUFFIX = ".dist"
ENV_LAYERS: Tuple[str, ...] = (".env", ".env.local", "api/.env", "api/.env.local")


class EnvConfig(Mapping[str, str]):
    """Read-only mapping of environment variables plus the files it came from."""

    def __init__(self, values: Mapping[str, str] | None = None, sources: Iterable[Path] = ()):
        self._values = MappingProxyType(dict(values or {}))
        self.sources: Tuple[Path, ...] = tuple(sources)

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"EnvConfig({len(self)} vars from {[str(p) for p in self.sources]})"

    @classmethod
    def load(cls, root: str | Path = ".", layers: Iterable[str] = ENV_LAYERS) -> "EnvConfig":
        root_p = Path(root)
        chunks: list[str] = []
        used: list[Path] = []
        for rel in layers:
            path = root_p / rel
            if not path.is_file():
                log.debug("env layer %s absent, skipped", path)
                continue
            chunks.append(path.read_text(encoding="utf-8"))
            used.append(path)

        # One parse over all layers in order: ${VAR} sees earlier layers and
        # a later assignment still wins.
        stream = io.StringIO("\n".join(chunks))
        merged: Dict[str, str] = {
            key: "" if value is None else value
            for key, value in dotenv_values(stream=stream).items()
        }
        return cls(merged, used)


def bootstrap_env_file(live: str | Path, template: str | Path | None = None) -> bool:
    """
    Copy `template` to `live` if and only if `live` does not exist yet.

    Returns True when a copy happened. An existing live file is never
    touched, even when the template has changed since.
    """
    live_p = Path(live)
    template_p = Path(template) if template is not None else live_p.with_name(live_p.name + ENV_TEMPLATE_SUFFIX)

    if live_p.exists():
        log.debug("%s already exists, leaving it alone", live_p)
        return False
    if not template_p.is_file():
        raise EnvironmentBootstrapError(template=str(template_p), live=str(live_p))

    shutil.copyfile(template_p, live_p)
    log.debug("created %s from %s", live_p, template_p)
    return True


def _split_csv(raw: str) -> Tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    project: str = "organizaer"
    compose_command: Tuple[str, ...] = ("docker", "compose")
    api_service: str = "php"
    pwa_service: str = "pwa"
    app_env: str = "dev"

    # TLS gateway
    proxy_container: str = "traefik-reverse-proxy"
    tls_hostnames: Tuple[str, ...] = ("todo-app.com.localhost", "*.todo-app.com.localhost")
    certs_dir: str = "docker"
    cert_file: str = "todo-app-cert.pem"
    key_file: str = "todo-app-key.pem"
    routing_config_file: str = "traefik-config.yaml"
    proxy_ssl_dir: str = "/etc/traefik/ssl"
    proxy_routing_path: str = "/etc/traefik/config/todo-app.yaml"

    # Presence of this file means the dev container cache is already built
    dev_cache_marker: str = "api/var/cache/dev/App_KernelDevDebugContainer.php"

    @classmethod
    def from_config(cls, config: Mapping[str, str]) -> "Settings":
        defaults = cls()

        def pick(key: str, default: str) -> str:
            value: Optional[str] = config.get(key)
            return value if value else default

        compose = config.get("DOCKER_COMPOSE")
        hostnames = config.get("TLS_HOSTNAMES")

        return cls(
            project=pick("PROJECT", defaults.project),
            compose_command=tuple(compose.split()) if compose else defaults.compose_command,
            api_service=pick("API_SERVICE", defaults.api_service),
            pwa_service=pick("PWA_SERVICE", defaults.pwa_service),
            app_env=pick("APP_ENV", defaults.app_env),
            proxy_container=pick("PROXY_CONTAINER", defaults.proxy_container),
            tls_hostnames=_split_csv(hostnames) if hostnames is not None else defaults.tls_hostnames,
            certs_dir=pick("CERTS_DIR", defaults.certs_dir),
        )

    @property
    def local_cert_path(self) -> str:
        return f"{self.certs_dir}/{self.cert_file}"

    @property
    def local_key_path(self) -> str:
        return f"{self.certs_dir}/{self.key_file}"

    @property
    def local_routing_path(self) -> str:
        return f"{self.certs_dir}/{self.routing_config_file}"
