import pytest

from conftest import FakeExecutor
from devstack.errors import CertificateGenerationError, ContainerNotRunning, CopyError
from devstack.step_workflows.certs import (
    ArtifactCopy,
    distribute,
    generate_certificate,
    validate_hostnames,
)


@pytest.fixture
def paths(tmp_path):
    return tmp_path / "docker" / "cert.pem", tmp_path / "docker" / "key.pem"


def test_empty_hostname_set_fails(fake_executor, paths):
    cert, key = paths
    with pytest.raises(CertificateGenerationError, match="no host names"):
        generate_certificate(fake_executor, [], cert, key)
    assert fake_executor.calls == []


@pytest.mark.parametrize("bad", ["", "exa mple.com", "*.*.example.com", "foo.*.example.com", "-bad.localhost", "a..b"])
def test_malformed_patterns_fail(fake_executor, paths, bad):
    cert, key = paths
    with pytest.raises(CertificateGenerationError, match="malformed"):
        generate_certificate(fake_executor, ["ok.localhost", bad], cert, key)
    assert fake_executor.calls == []


def test_wildcards_and_ips_are_accepted():
    names = ["todo-app.com.localhost", "*.todo-app.com.localhost", "localhost", "127.0.0.1", "::1"]
    assert validate_hostnames(names) == tuple(names)


def test_missing_tool_fails(paths):
    executor = FakeExecutor(missing_tools=["mkcert"])
    cert, key = paths
    with pytest.raises(CertificateGenerationError, match="not found on PATH"):
        generate_certificate(executor, ["app.localhost"], cert, key)
    assert executor.calls == []


def test_tool_rejection_fails(paths):
    executor = FakeExecutor(fail_on={"mkcert": 1})
    cert, key = paths
    with pytest.raises(CertificateGenerationError, match="exited with 1"):
        generate_certificate(executor, ["app.localhost"], cert, key)


def test_tool_exiting_zero_without_files_fails(paths):
    executor = FakeExecutor(mkcert_writes=False)
    cert, key = paths
    with pytest.raises(CertificateGenerationError, match="did not write"):
        generate_certificate(executor, ["app.localhost"], cert, key)


def test_valid_set_produces_one_key_and_one_cert(fake_executor, paths):
    cert, key = paths
    hosts = ["todo-app.com.localhost", "*.todo-app.com.localhost"]

    assert generate_certificate(fake_executor, hosts, cert, key) == (key, cert)

    assert fake_executor.calls == [
        ("mkcert", "-cert-file", str(cert), "-key-file", str(key), *hosts),
    ]
    assert sorted(p.name for p in cert.parent.iterdir()) == ["cert.pem", "key.pem"]


def test_regeneration_overwrites(fake_executor, paths):
    cert, key = paths
    generate_certificate(fake_executor, ["a.localhost"], cert, key)
    generate_certificate(fake_executor, ["b.localhost"], cert, key)
    assert "b.localhost" in cert.read_text()
    assert len(list(cert.parent.iterdir())) == 2


def _copies(tmp_path, container="traefik-reverse-proxy"):
    key = tmp_path / "key.pem"
    cert = tmp_path / "cert.pem"
    key.write_text("k")
    cert.write_text("c")
    return [
        ArtifactCopy(key, container, "/etc/traefik/ssl/key.pem"),
        ArtifactCopy(cert, container, "/etc/traefik/ssl/cert.pem"),
    ]


def test_distribute_copies_in_order(fake_executor, tmp_path):
    copies = _copies(tmp_path)
    written = distribute(fake_executor, copies)

    assert written == [
        "traefik-reverse-proxy:/etc/traefik/ssl/key.pem",
        "traefik-reverse-proxy:/etc/traefik/ssl/cert.pem",
    ]
    assert fake_executor.docker_cp_calls() == [
        ("docker", "cp", str(copies[0].source), "traefik-reverse-proxy:/etc/traefik/ssl/key.pem"),
        ("docker", "cp", str(copies[1].source), "traefik-reverse-proxy:/etc/traefik/ssl/cert.pem"),
    ]


def test_distribute_to_stopped_container_copies_nothing(tmp_path):
    executor = FakeExecutor(running=[])
    with pytest.raises(ContainerNotRunning) as exc:
        distribute(executor, _copies(tmp_path))
    assert exc.value.container == "traefik-reverse-proxy"
    assert executor.docker_cp_calls() == []


def test_distribute_checks_every_container_before_copying(tmp_path):
    executor = FakeExecutor(running=["traefik-reverse-proxy"])
    copies = _copies(tmp_path) + [ArtifactCopy(tmp_path / "key.pem", "other", "/x")]
    with pytest.raises(ContainerNotRunning, match="other"):
        distribute(executor, copies)
    assert executor.docker_cp_calls() == []


def test_copy_failure_is_reported_without_rollback(tmp_path):
    executor = FakeExecutor(fail_on={"cert.pem traefik": 1})
    copies = _copies(tmp_path)
    with pytest.raises(CopyError) as exc:
        distribute(executor, copies)

    assert exc.value.source == str(copies[1].source)
    assert exc.value.destination == "traefik-reverse-proxy:/etc/traefik/ssl/cert.pem"
    # the key copy already happened and stays
    assert len(executor.docker_cp_calls()) == 2


def test_missing_source_is_a_copy_error(fake_executor, tmp_path):
    copy = ArtifactCopy(tmp_path / "nope.pem", "traefik-reverse-proxy", "/etc/traefik/ssl/nope.pem")
    with pytest.raises(CopyError, match="does not exist"):
        distribute(fake_executor, [copy])
    assert fake_executor.docker_cp_calls() == []


def test_distribute_twice_overwrites(fake_executor, tmp_path):
    copies = _copies(tmp_path)
    distribute(fake_executor, copies)
    distribute(fake_executor, copies)
    assert len(fake_executor.docker_cp_calls()) == 4
