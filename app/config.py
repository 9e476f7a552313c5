"""git-utils configuration: loaded from environment / .env file."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="GITUTILS_", extra="ignore")

    env: str = "development"
    secret_key: str = "change-me"
    log_level: str = "INFO"

    # Local record store
    storage_backend: str = "sql"  # "sql" or "memory"
    database_url: str = "sqlite+aiosqlite:///./git-utils.db"

    # Upstream APIs (defaults; per-user overrides live in the settings table)
    gitlab_api_url: str = "https://gitlab.com/api/v4"
    github_api_url: str = "https://api.github.com"
    cloudflare_api_url: str = "https://api.cloudflare.com/client/v4"
    http_timeout: float = 30.0

    cors_origins: list[str] = ["http://localhost:3000"]

    @property
    def sql_echo(self) -> bool:
        return self.env == "development" and self.log_level.upper() == "DEBUG"


settings = Settings()
