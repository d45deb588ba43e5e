import pytest

from rolesync.config import settings as settings_module
from rolesync.config.settings import RoleSyncConfig, load_settings

ENV_VARS = [
    "KEYCLOAK_URL",
    "KEYCLOAK_REALM",
    "KEYCLOAK_REQUEST_TIMEOUT",
    "KEYCLOAK_SERVICE_REALM",
    "KEYCLOAK_SERVICE_CLIENT_ID",
    "KEYCLOAK_SERVICE_CLIENT_SECRET",
    "KEYCLOAK_ADMIN",
    "KEYCLOAK_ADMIN_PASSWORD",
    "ROLESYNC_LOG_LEVEL",
    "ROLESYNC_OPERATOR",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    secrets_dir = tmp_path / "run_secrets"
    secrets_dir.mkdir()
    monkeypatch.setattr(settings_module, "SECRETS_DIR", secrets_dir)
    return secrets_dir


def test_defaults():
    config = load_settings()

    assert config.keycloak_url == "http://localhost:8080"
    assert config.keycloak_realm == "demo"
    assert config.request_timeout == settings_module.REQUEST_TIMEOUT
    assert config.keycloak_service_client_id == "automation-cli"
    assert config.uses_service_account is False
    assert config.log_level == "INFO"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("KEYCLOAK_URL", "https://sso.example.com/")
    monkeypatch.setenv("KEYCLOAK_REALM", "corp")
    monkeypatch.setenv("KEYCLOAK_REQUEST_TIMEOUT", "12.5")
    monkeypatch.setenv("KEYCLOAK_SERVICE_CLIENT_SECRET", "from-env")
    monkeypatch.setenv("ROLESYNC_LOG_LEVEL", "debug")

    config = load_settings()

    assert config.keycloak_url == "https://sso.example.com"
    assert config.keycloak_realm == "corp"
    assert config.request_timeout == 12.5
    assert config.keycloak_service_client_secret == "from-env"
    assert config.log_level == "DEBUG"


def test_secret_file_wins_over_environment(monkeypatch, clean_env):
    (clean_env / "keycloak_service_client_secret").write_text("from-file\n", encoding="utf-8")
    monkeypatch.setenv("KEYCLOAK_SERVICE_CLIENT_SECRET", "from-env")

    config = load_settings()

    assert config.keycloak_service_client_secret == "from-file"


@pytest.mark.parametrize("value", ["soon", "0", "-3"])
def test_invalid_timeout_is_rejected(monkeypatch, value):
    monkeypatch.setenv("KEYCLOAK_REQUEST_TIMEOUT", value)

    with pytest.raises(RuntimeError):
        load_settings()


def test_build_client_prefers_service_account(monkeypatch):
    calls = []
    monkeypatch.setattr(
        settings_module.KeycloakClient, "authenticate_service_account",
        lambda self, realm, cid, secret: calls.append(("svc", realm, cid, secret)) or "t",
    )
    monkeypatch.setattr(
        settings_module.KeycloakClient, "authenticate_admin",
        lambda self, user, pwd: calls.append(("admin", user, pwd)) or "t",
    )
    config = RoleSyncConfig(keycloak_service_client_secret="s3cret", keycloak_admin_password="pwd", request_timeout=7)

    client = config.build_client()

    assert calls == [("svc", "master", "automation-cli", "s3cret")]
    assert client.timeout == 7


def test_build_client_falls_back_to_admin(monkeypatch):
    calls = []
    monkeypatch.setattr(
        settings_module.KeycloakClient, "authenticate_admin",
        lambda self, user, pwd: calls.append((user, pwd)) or "t",
    )

    RoleSyncConfig(keycloak_admin_password="pwd").build_client()

    assert calls == [("admin", "pwd")]


def test_build_client_without_credentials():
    with pytest.raises(RuntimeError):
        RoleSyncConfig().build_client()
