"""TLS gateway certificate provisioning.

mkcert writes the key pair to the host file system, while the reverse proxy
only sees its own container's file system. Provisioning is therefore split
into generation on the host and explicit `docker cp` distribution into the
running proxy container. No shared volume is assumed.

Every stage overwrites its outputs, so re-running the whole pipeline after
fixing a failed precondition is safe. There is no rollback: if the key is
copied and the certificate copy then fails, the key stays in place.
"""

from __future__ import annotations

import ipaddress
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

from ..errors import CertificateGenerationError, ContainerNotRunning, CopyError
from ..executor import Executor
from ..model import ActionContext
from .docker import container_running, copy_to_container

log = logging.getLogger(__name__)

MKCERT = "mkcert"

_LABEL = r"[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?"
HOSTNAME_RE = re.compile(rf"^(?:\*\.)?{_LABEL}(?:\.{_LABEL})*$", re.IGNORECASE)


@dataclass(frozen=True)
class CertificateArtifacts:
    key_file: Path
    cert_file: Path
    routing_config: Path


@dataclass(frozen=True)
class ArtifactCopy:
    source: Path
    container: str
    destination: str

    @property
    def target(self) -> str:
        return f"{self.container}:{self.destination}"


def validate_hostnames(hostnames: Iterable[str]) -> Tuple[str, ...]:
    names = tuple(hostnames)
    if not names:
        raise CertificateGenerationError("no host names given")
    for name in names:
        if HOSTNAME_RE.match(name):
            continue
        try:
            ipaddress.ip_address(name)
        except ValueError:
            raise CertificateGenerationError(f"malformed host name pattern: {name!r}") from None
    return names


def generate_certificate(
    executor: Executor,
    hostnames: Sequence[str],
    cert_file: Path,
    key_file: Path,
) -> Tuple[Path, Path]:
    """
    Generate a locally-trusted key/certificate valid for exactly `hostnames`.

    Existing files are overwritten. Returns (key_file, cert_file).
    """
    names = validate_hostnames(hostnames)

    if executor.which(MKCERT) is None:
        raise CertificateGenerationError(f"{MKCERT} not found on PATH (install it from https://github.com/FiloSottile/mkcert)")

    cert_file.parent.mkdir(parents=True, exist_ok=True)
    key_file.parent.mkdir(parents=True, exist_ok=True)

    code = executor.run([MKCERT, "-cert-file", str(cert_file), "-key-file", str(key_file), *names])
    if code != 0:
        raise CertificateGenerationError(f"{MKCERT} exited with {code}")

    missing = [str(p) for p in (key_file, cert_file) if not p.is_file()]
    if missing:
        raise CertificateGenerationError(f"{MKCERT} did not write {', '.join(missing)}")

    log.debug("generated %s and %s for %s", key_file, cert_file, names)
    return key_file, cert_file


def distribute(executor: Executor, copies: Sequence[ArtifactCopy]) -> List[str]:
    """
    Copy artifacts into their containers, in order.

    Every target container is checked before the first copy, so a stopped
    container means zero copies. Returns the remote targets written.
    """
    for container in dict.fromkeys(c.container for c in copies):
        if not container_running(executor, container):
            raise ContainerNotRunning(container)

    written: List[str] = []
    for copy in copies:
        if not copy.source.is_file():
            raise CopyError(str(copy.source), copy.target, "source file does not exist")
        code = copy_to_container(executor, copy.container, str(copy.source), copy.destination)
        if code != 0:
            raise CopyError(str(copy.source), copy.target, f"docker cp exited with {code}")
        written.append(copy.target)
    return written


# ---------------------------------------------------------------------
# Operation actions
# ---------------------------------------------------------------------

def artifacts_for(ctx: ActionContext) -> CertificateArtifacts:
    s = ctx.settings
    return CertificateArtifacts(
        key_file=ctx.path(s.local_key_path),
        cert_file=ctx.path(s.local_cert_path),
        routing_config=ctx.path(s.local_routing_path),
    )


def generate_action(ctx: ActionContext) -> None:
    artifacts = artifacts_for(ctx)
    generate_certificate(ctx.executor, ctx.settings.tls_hostnames, artifacts.cert_file, artifacts.key_file)


def distribute_key_action(ctx: ActionContext) -> None:
    s = ctx.settings
    copy = ArtifactCopy(artifacts_for(ctx).key_file, s.proxy_container, f"{s.proxy_ssl_dir}/{s.key_file}")
    distribute(ctx.executor, [copy])


def distribute_cert_action(ctx: ActionContext) -> None:
    s = ctx.settings
    copy = ArtifactCopy(artifacts_for(ctx).cert_file, s.proxy_container, f"{s.proxy_ssl_dir}/{s.cert_file}")
    distribute(ctx.executor, [copy])


def distribute_routing_action(ctx: ActionContext) -> None:
    s = ctx.settings
    copy = ArtifactCopy(artifacts_for(ctx).routing_config, s.proxy_container, s.proxy_routing_path)
    distribute(ctx.executor, [copy])
