"""
Tests for configuration loading and validation.
"""

import pytest

from meeting_signup.core.config import AppConfig, ConfigManager, DEFAULT_LINK_PROVIDERS


ENV_VARS = [
    "SLACK_BOT_TOKEN", "SLACK_SIGNING_SECRET", "SLACK_APP_TOKEN",
    "GRAPH_CLIENT_ID", "GRAPH_CLIENT_SECRET", "GRAPH_TENANT_ID", "GRAPH_AUTHORITY",
    "GRAPH_ORGANIZER_MAILBOX",
    "MS_CLIENT_ID", "MS_CLIENT_SECRET", "MS_TENANT_ID",
    "HOST", "PORT",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove config variables; anything load_dotenv sets is undone afterwards."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def make_manager(tmp_path, env_text: str = "", yaml_text=None) -> ConfigManager:
    env_file = tmp_path / ".env"
    env_file.write_text(env_text)
    config_file = tmp_path / "config.yaml"
    if yaml_text is not None:
        config_file.write_text(yaml_text)
    return ConfigManager(env_file=str(env_file), config_file=str(config_file))


VALID_ENV = """
SLACK_BOT_TOKEN=xoxb-1
SLACK_SIGNING_SECRET=signing
GRAPH_CLIENT_ID=client
GRAPH_CLIENT_SECRET=secret
GRAPH_TENANT_ID=tenant
"""


class TestEnvConfig:

    def test_loads_env_file(self, clean_env, tmp_path):
        config = make_manager(tmp_path, VALID_ENV + "GRAPH_ORGANIZER_MAILBOX=org@example.com\nPORT=8080\n")

        assert config.slack.bot_token == "xoxb-1"
        assert config.slack.signing_secret == "signing"
        assert not config.slack.socket_mode_available
        assert config.graph_api.client_id == "client"
        assert config.graph_api.authority == "https://login.microsoftonline.com/tenant"
        assert config.graph_api.organizer_mailbox == "org@example.com"
        assert config.server.port == 8080
        assert config.server.host == "0.0.0.0"
        assert config.validate() == []

    def test_ms_prefixed_credentials_fallback(self, clean_env, tmp_path):
        clean_env.setenv("MS_CLIENT_ID", "legacy-client")
        clean_env.setenv("MS_CLIENT_SECRET", "legacy-secret")
        clean_env.setenv("MS_TENANT_ID", "legacy-tenant")

        config = make_manager(tmp_path)

        assert config.graph_api.client_id == "legacy-client"
        assert config.graph_api.client_secret == "legacy-secret"
        assert config.graph_api.tenant_id == "legacy-tenant"

    def test_graph_prefixed_wins_over_ms(self, clean_env, tmp_path):
        clean_env.setenv("GRAPH_CLIENT_ID", "new")
        clean_env.setenv("MS_CLIENT_ID", "old")

        assert make_manager(tmp_path).graph_api.client_id == "new"

    def test_app_token_enables_socket_mode(self, clean_env, tmp_path):
        clean_env.setenv("SLACK_APP_TOKEN", "xapp-1")
        assert make_manager(tmp_path).slack.socket_mode_available

    def test_missing_credentials_reported(self, clean_env, tmp_path):
        errors = make_manager(tmp_path).validate()

        assert "SLACK_BOT_TOKEN not set in .env" in errors
        assert "GRAPH_CLIENT_ID not set in .env" in errors
        assert "GRAPH_CLIENT_SECRET not set in .env" in errors
        assert "GRAPH_TENANT_ID not set in .env" in errors
        assert any("SLACK_APP_TOKEN" in e for e in errors)


class TestYamlConfig:

    def test_defaults_without_yaml(self, clean_env, tmp_path):
        config = make_manager(tmp_path, VALID_ENV)

        assert config.app == AppConfig()
        assert config.app.opt_in_reaction == "raised_hand"
        assert config.app.marker_reaction == "calendar"
        assert config.app.serialize_enrollments is True
        assert config.app.link_providers == DEFAULT_LINK_PROVIDERS

    def test_yaml_overrides(self, clean_env, tmp_path):
        config = make_manager(tmp_path, VALID_ENV, (
            "opt_in_reaction: hand\n"
            "serialize_enrollments: false\n"
            "attendee_type: optional\n"
            "request_timeout_seconds: 5\n"
        ))

        assert config.app.opt_in_reaction == "hand"
        assert config.app.serialize_enrollments is False
        assert config.app.attendee_type == "optional"
        assert config.app.request_timeout_seconds == 5
        assert config.validate() == []

    def test_unknown_key_falls_back_to_defaults(self, clean_env, tmp_path, capsys):
        config = make_manager(tmp_path, VALID_ENV, "not_a_setting: 1\n")

        assert config.app == AppConfig()
        assert "WARNING" in capsys.readouterr().out

    def test_empty_yaml_uses_defaults(self, clean_env, tmp_path):
        assert make_manager(tmp_path, VALID_ENV, "").app == AppConfig()

    def test_invalid_provider_reported(self, clean_env, tmp_path):
        config = make_manager(tmp_path, VALID_ENV, (
            "link_providers:\n"
            "  - name: zoom\n"
            "    pattern: 'https://zoom\\.us/j/\\S+'\n"
        ))

        assert config.validate() == ["link_providers[0] missing 'id_param'"]

    def test_bad_timeout_reported(self, clean_env, tmp_path):
        config = make_manager(tmp_path, VALID_ENV, "request_timeout_seconds: 0\n")
        assert "request_timeout_seconds must be >= 1" in config.validate()

    def test_invalid_provider_regex_reported(self, clean_env, tmp_path):
        config = make_manager(tmp_path, VALID_ENV, (
            "link_providers:\n"
            "  - name: broken\n"
            "    pattern: 'https://meet\\.example/(unclosed'\n"
            "    id_param: id\n"
        ))

        errors = config.validate()

        assert len(errors) == 1
        assert errors[0].startswith("link_providers[0] pattern is not a valid regex")
