import pytest

from devstack.config import EnvConfig, Settings, bootstrap_env_file
from devstack.errors import EnvironmentBootstrapError


def test_layers_override_only_their_own_keys(tmp_path):
    (tmp_path / ".env").write_text("APP_ENV=dev\nPROJECT=organizaer\nDB=base\n")
    (tmp_path / ".env.local").write_text("DB=local\n")
    (tmp_path / "api").mkdir()
    (tmp_path / "api" / ".env").write_text("APP_SECRET=abc\nAPP_ENV=prod\n")
    (tmp_path / "api" / ".env.local").write_text("APP_ENV=test\n")

    config = EnvConfig.load(tmp_path)

    assert config["APP_ENV"] == "test"
    assert config["DB"] == "local"
    assert config["PROJECT"] == "organizaer"
    assert config["APP_SECRET"] == "abc"
    assert len(config.sources) == 4


def test_missing_layers_are_skipped(tmp_path):
    (tmp_path / ".env").write_text("A=1\n")
    config = EnvConfig.load(tmp_path)
    assert dict(config) == {"A": "1"}
    assert config.sources == (tmp_path / ".env",)


def test_no_files_gives_empty_config(tmp_path):
    assert len(EnvConfig.load(tmp_path)) == 0


def test_key_without_value_is_empty_string(tmp_path):
    (tmp_path / ".env").write_text("EMPTY\n")
    assert EnvConfig.load(tmp_path)["EMPTY"] == ""


def test_config_is_read_only():
    config = EnvConfig({"A": "1"})
    with pytest.raises(TypeError):
        config["A"] = "2"
    with pytest.raises(TypeError):
        config._values["A"] = "2"


def test_bootstrap_copies_template_when_absent(tmp_path):
    template = tmp_path / ".env.dist"
    template.write_text("APP_ENV=dev\n")

    assert bootstrap_env_file(tmp_path / ".env") is True
    assert (tmp_path / ".env").read_text() == "APP_ENV=dev\n"


def test_bootstrap_twice_is_idempotent(tmp_path):
    (tmp_path / ".env.dist").write_text("APP_ENV=dev\n")
    live = tmp_path / ".env"

    bootstrap_env_file(live)
    assert bootstrap_env_file(live) is False
    assert live.read_text() == "APP_ENV=dev\n"


def test_bootstrap_leaves_existing_file_untouched(tmp_path):
    (tmp_path / ".env.dist").write_text("APP_ENV=prod\n")
    live = tmp_path / ".env"
    live.write_text("APP_ENV=dev\nMINE=1\n")

    assert bootstrap_env_file(live) is False
    assert live.read_text() == "APP_ENV=dev\nMINE=1\n"


def test_bootstrap_existing_file_without_template_is_fine(tmp_path):
    live = tmp_path / ".env"
    live.write_text("A=1\n")
    assert bootstrap_env_file(live) is False


def test_bootstrap_fails_when_template_missing(tmp_path):
    with pytest.raises(EnvironmentBootstrapError) as exc:
        bootstrap_env_file(tmp_path / ".env")
    assert exc.value.template.endswith(".env.dist")
    assert not (tmp_path / ".env").exists()


def test_settings_defaults():
    s = Settings.from_config(EnvConfig())
    assert s.compose_command == ("docker", "compose")
    assert s.proxy_container == "traefik-reverse-proxy"
    assert s.tls_hostnames == ("todo-app.com.localhost", "*.todo-app.com.localhost")
    assert s.local_key_path == "docker/todo-app-key.pem"
    assert s.local_cert_path == "docker/todo-app-cert.pem"


def test_settings_from_config():
    s = Settings.from_config(EnvConfig({
        "DOCKER_COMPOSE": "docker-compose -f compose.dev.yaml",
        "APP_ENV": "test",
        "PROXY_CONTAINER": "gateway",
        "TLS_HOSTNAMES": "app.localhost, *.app.localhost",
    }))
    assert s.compose_command == ("docker-compose", "-f", "compose.dev.yaml")
    assert s.app_env == "test"
    assert s.proxy_container == "gateway"
    assert s.tls_hostnames == ("app.localhost", "*.app.localhost")


def test_empty_hostnames_setting_gives_empty_set():
    assert Settings.from_config(EnvConfig({"TLS_HOSTNAMES": ""})).tls_hostnames == ()


def test_references_resolve_against_earlier_layers(tmp_path, monkeypatch):
    monkeypatch.delenv("POSTGRES_USER", raising=False)
    (tmp_path / ".env").write_text("POSTGRES_USER=app")
    (tmp_path / "api").mkdir()
    (tmp_path / "api" / ".env").write_text("DATABASE_URL=postgresql://${POSTGRES_USER}@db/app\n")

    assert EnvConfig.load(tmp_path)["DATABASE_URL"] == "postgresql://app@db/app"


def test_later_layer_override_is_seen_by_later_references(tmp_path, monkeypatch):
    monkeypatch.delenv("APP_ENV", raising=False)
    (tmp_path / ".env").write_text("APP_ENV=dev\n")
    (tmp_path / ".env.local").write_text("APP_ENV=test\n")
    (tmp_path / "api").mkdir()
    (tmp_path / "api" / ".env").write_text("CACHE_DIR=var/cache/${APP_ENV}\n")

    config = EnvConfig.load(tmp_path)
    assert config["APP_ENV"] == "test"
    assert config["CACHE_DIR"] == "var/cache/test"
