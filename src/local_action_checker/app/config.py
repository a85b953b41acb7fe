from __future__ import annotations

from pathlib import Path

from platformdirs import PlatformDirs
from pydantic import BaseModel, Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_NAME = "local_action_checker"


def _default_home() -> Path:
    """Get default home directory using platformdirs."""
    return Path(PlatformDirs(appname=APP_NAME, appauthor=False).user_log_dir)


class DirectoryConfig(BaseModel):
    """Directory configuration with computed paths."""

    home: Path = Field(
        default_factory=_default_home,
        description="Base directory for local_action_checker data",
    )

    @computed_field
    @property
    def logs_dir(self) -> Path:
        """Logs directory for the decision log."""
        path = self.home / "logs"
        path.mkdir(parents=True, exist_ok=True)
        return path


class GitHubConfig(BaseModel):
    """GitHub App configuration."""

    app_id: str | None = Field(
        default=None,
        description="GitHub App id",
    )

    private_key: str | None = Field(
        default=None,
        description="GitHub App private key (PEM; escaped newlines accepted)",
    )

    private_key_path: Path | None = Field(
        default=None,
        description="Path to the GitHub App private key PEM file",
    )

    webhook_secret: str | None = Field(
        default=None,
        description="Shared secret used to sign webhook deliveries",
    )

    api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL (GitHub Enterprise Server: https://HOST/api/v3)",
    )

    request_timeout: float | None = Field(
        default=None,
        description="HTTP timeout in seconds for GitHub calls (unset: no timeout)",
    )


class PolicyConfig(BaseModel):
    """Protection rule policy."""

    allow_local_actions: bool = Field(
        default=False,
        description="Approve deployments even when the workflow uses local actions",
    )

    allow_deployment_id_fallback: bool = Field(
        default=True,
        description=(
            "Submit against the deployment id when no workflow run id can be resolved. "
            "GitHub may reject the verdict in that case."
        ),
    )


class ServerConfig(BaseModel):
    """Webhook server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3000, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    logger_name: str = Field(default=APP_NAME, description="Logger name for decision events")
    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    console_output: bool = Field(default=True, description="Human-readable logs on stderr")
    file_output: bool = Field(default=False, description="Append JSON Lines events to logs_dir/decisions.jsonl")


class AppConfig(BaseSettings):
    """Root application configuration.

    All configuration is loaded from environment variables with LOCAL_ACTION_CHECKER_ prefix.
    Use double underscore for nested config: LOCAL_ACTION_CHECKER_GITHUB__APP_ID

    Example env vars:
        # Required for the webhook server
        export LOCAL_ACTION_CHECKER_GITHUB__APP_ID=123456
        export LOCAL_ACTION_CHECKER_GITHUB__PRIVATE_KEY_PATH=/etc/checker/app.pem
        export LOCAL_ACTION_CHECKER_GITHUB__WEBHOOK_SECRET=xxxxxxxx

        # Optional (with defaults)
        export LOCAL_ACTION_CHECKER_POLICY__ALLOW_LOCAL_ACTIONS=false
        export LOCAL_ACTION_CHECKER_SERVER__PORT=3000
        export LOCAL_ACTION_CHECKER_LOGGING__LEVEL=INFO
        export LOCAL_ACTION_CHECKER_LOGGING__FILE_OUTPUT=true
        export LOCAL_ACTION_CHECKER_DIRECTORIES__HOME=/custom/path
    """

    model_config = SettingsConfigDict(
        env_prefix="LOCAL_ACTION_CHECKER_",
        env_nested_delimiter="__",
        frozen=True,
        extra="forbid",
    )

    directories: DirectoryConfig = Field(default_factory=DirectoryConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    policy: PolicyConfig = Field(default_factory=PolicyConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
