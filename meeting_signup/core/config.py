"""
Configuration management for the meeting sign-up bot.

Loads configuration from:
1. .env file (secrets - never committed)
2. config.yaml (runtime settings)
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import os
import re
import yaml
from dotenv import load_dotenv


DEFAULT_LINK_PROVIDERS = [
    {
        "name": "teams",
        "pattern": r"https://teams\.microsoft\.com/l/meetup-join/[^\s<>|]+",
        "id_param": "meetingId",
    }
]


def _env(*names: str, default: str = "") -> str:
    """Return the first non-empty environment variable among names."""
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return default


@dataclass
class GraphAPIConfig:
    """Microsoft Graph API configuration."""

    client_id: str
    client_secret: str
    tenant_id: str
    authority: str = ""
    organizer_mailbox: str = ""  # Empty = /me (delegated-style path)
    scopes: List[str] = field(
        default_factory=lambda: [
            "https://graph.microsoft.com/.default"  # Application permissions
        ]
    )

    def __post_init__(self):
        """Build authority URL from tenant ID if not provided."""
        if self.tenant_id and not self.authority:
            self.authority = f"https://login.microsoftonline.com/{self.tenant_id}"


@dataclass
class SlackConfig:
    """Slack app credentials."""

    bot_token: str = ""
    signing_secret: str = ""
    app_token: str = ""  # xapp- token, enables Socket Mode

    @property
    def socket_mode_available(self) -> bool:
        return bool(self.app_token)


@dataclass
class ServerConfig:
    """Listen address for the HTTP side (health + Events API)."""

    host: str = "0.0.0.0"
    port: int = 3000


@dataclass
class AppConfig:
    """Runtime application configuration (from config.yaml)."""

    # Reactions
    opt_in_reaction: str = "raised_hand"
    marker_reaction: str = "calendar"

    # Hold a per-meeting lock across check → remote add → record
    serialize_enrollments: bool = True

    # Graph attendee settings
    attendee_type: str = "required"
    request_timeout_seconds: int = 30

    # Meeting link providers, tried in order; earliest match in the text wins
    link_providers: List[Dict[str, Any]] = field(
        default_factory=lambda: [dict(p) for p in DEFAULT_LINK_PROVIDERS]
    )


class ConfigManager:
    """Central configuration manager.

    Loads configuration from:
    - .env file for secrets (Slack tokens, Graph API credentials)
    - config.yaml for runtime settings
    """

    def __init__(self, env_file: Optional[str] = None, config_file: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            env_file: Path to .env file (default: .env in working directory)
            config_file: Path to config.yaml file (default: config.yaml in working directory)
        """
        if env_file is None:
            env_file = ".env"
        load_dotenv(env_file)

        if config_file is None:
            config_file = "config.yaml"
        self.config_file = config_file

        self._load_env_config()
        self._load_yaml_config()

    def _load_env_config(self):
        """Load secrets from .env file."""

        # Graph API configuration (MS_* names kept for older deployments)
        self.graph_api = GraphAPIConfig(
            client_id=_env("GRAPH_CLIENT_ID", "MS_CLIENT_ID"),
            client_secret=_env("GRAPH_CLIENT_SECRET", "MS_CLIENT_SECRET"),
            tenant_id=_env("GRAPH_TENANT_ID", "MS_TENANT_ID"),
            authority=_env("GRAPH_AUTHORITY"),
            organizer_mailbox=_env("GRAPH_ORGANIZER_MAILBOX"),
        )

        self.slack = SlackConfig(
            bot_token=_env("SLACK_BOT_TOKEN"),
            signing_secret=_env("SLACK_SIGNING_SECRET"),
            app_token=_env("SLACK_APP_TOKEN"),
        )

        self.server = ServerConfig(
            host=_env("HOST", default="0.0.0.0"),
            port=int(_env("PORT", default="3000")),
        )

    def _load_yaml_config(self):
        """Load runtime configuration from config.yaml."""
        if os.path.exists(self.config_file):
            try:
                with open(self.config_file, "r") as f:
                    data = yaml.safe_load(f) or {}
                    self.app = AppConfig(**data)
            except Exception as e:
                print(f"WARNING: Failed to load {self.config_file}: {e}")
                print("Using default configuration")
                self.app = AppConfig()
        else:
            self.app = AppConfig()

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not self.slack.bot_token:
            errors.append("SLACK_BOT_TOKEN not set in .env")
        if not self.slack.app_token and not self.slack.signing_secret:
            errors.append("Set SLACK_APP_TOKEN (Socket Mode) or SLACK_SIGNING_SECRET (Events API)")

        if not self.graph_api.client_id:
            errors.append("GRAPH_CLIENT_ID not set in .env")
        if not self.graph_api.client_secret:
            errors.append("GRAPH_CLIENT_SECRET not set in .env")
        if not self.graph_api.tenant_id:
            errors.append("GRAPH_TENANT_ID not set in .env")

        if not self.app.opt_in_reaction:
            errors.append("opt_in_reaction must not be empty")
        if self.app.request_timeout_seconds < 1:
            errors.append("request_timeout_seconds must be >= 1")
        if not self.app.link_providers:
            errors.append("link_providers must list at least one provider")
        for i, provider in enumerate(self.app.link_providers):
            for key in ("name", "pattern", "id_param"):
                if not provider.get(key):
                    errors.append(f"link_providers[{i}] missing '{key}'")
            if provider.get("pattern"):
                try:
                    re.compile(provider["pattern"])
                except re.error as e:
                    errors.append(f"link_providers[{i}] pattern is not a valid regex: {e}")

        return errors


# Global singleton instance (CLI entry point only)
_config: Optional[ConfigManager] = None


def get_config(env_file: Optional[str] = None, config_file: Optional[str] = None) -> ConfigManager:
    """
    Get global configuration manager instance (singleton).

    Args:
        env_file: Path to .env file (only used on first call)
        config_file: Path to config.yaml file (only used on first call)

    Returns:
        ConfigManager instance
    """
    global _config
    if _config is None:
        _config = ConfigManager(env_file=env_file, config_file=config_file)
    return _config
