"""Application configuration management.

This module provides configuration management using Pydantic settings
with runtime config file and environment variable support.
"""

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import Field, validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

RUNTIME_CONFIG_ENV = "RUNTIME_CONFIG_FILE"
DEFAULT_RUNTIME_CONFIG = "runtime-config.json"


def _split_csv(value: str) -> List[str]:
    return [item.strip().lower() for item in value.split(",") if item.strip()]


class RuntimeConfigSettingsSource(PydanticBaseSettingsSource):
    """Settings source backed by a deployment runtime config file.

    The file holds nested sections the way hosted function runtimes expose
    their config, e.g. ``{"reddit": {"client_id": "..."}}``. Sections are
    flattened into field names (``reddit_client_id``).
    """

    def __init__(self, settings_cls: Type[BaseSettings], path: Optional[str] = None) -> None:
        super().__init__(settings_cls)
        self.path = Path(path or os.environ.get(RUNTIME_CONFIG_ENV, DEFAULT_RUNTIME_CONFIG))
        self._data = self._load()

    def _load(self) -> Dict[str, Any]:
        if not self.path.is_file():
            return {}
        raw = json.loads(self.path.read_text(encoding="utf-8"))
        return self._flatten(raw)

    def _flatten(self, raw: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
        flat: Dict[str, Any] = {}
        for key, value in raw.items():
            name = f"{prefix}{key}".lower()
            if isinstance(value, dict):
                flat.update(self._flatten(value, prefix=f"{name}_"))
            else:
                flat[name] = value
        return flat

    def get_field_value(self, field: FieldInfo, field_name: str) -> Tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, False

    def __call__(self) -> Dict[str, Any]:
        return {
            name: value
            for name, value in self._data.items()
            if name in self.settings_cls.model_fields and value is not None
        }


class Settings(BaseSettings):
    """Application settings.

    All settings can be overridden using environment variables. Values from
    the runtime config file take precedence over the environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = Field(default="Media Feed Proxy", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment (development, staging, production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server settings
    host: str = Field(default="0.0.0.0", description="Host to bind to")
    port: int = Field(default=3000, description="Port to bind to")
    workers: int = Field(default=1, description="Number of worker processes")
    reload: bool = Field(default=False, description="Enable auto-reload")

    # Proxy settings
    allowed_hosts: str = Field(
        default="reddit.com,redd.it,reddituploads.com,r.jina.ai,imgur.com,gfycat.com,giphy.com,redgifs.com,streamable.com,tenor.com",
        description="Comma separated hostnames or domain suffixes the proxy may contact",
    )
    proxy_user_agent: str = Field(
        default="media-feed-proxy/1.0 (+https://github.com/media-feed-proxy)",
        description="User-Agent sent upstream when the client sends none",
    )
    upstream_timeout: Optional[float] = Field(
        default=None, description="Upstream request timeout in seconds (none by default)"
    )
    debug_snippet_chars: int = Field(
        default=5000, description="Maximum upstream body characters returned in debug mode"
    )
    media_cache_max_age: int = Field(
        default=3600, description="max-age hint for successful media responses"
    )

    # Reddit OAuth settings
    reddit_client_id: Optional[str] = Field(default=None, description="Reddit OAuth client ID")
    reddit_client_secret: Optional[str] = Field(default=None, description="Reddit OAuth client secret")
    reddit_username: Optional[str] = Field(default=None, description="Reddit account for password grant")
    reddit_password: Optional[str] = Field(default=None, description="Reddit account password")
    reddit_device_id: Optional[str] = Field(default=None, description="Device ID for installed-client grant")
    reddit_token_url: str = Field(
        default="https://www.reddit.com/api/v1/access_token",
        description="Reddit token URL"
    )
    reddit_oauth_host: str = Field(default="oauth.reddit.com", description="Reddit OAuth API host")
    reddit_web_hosts: str = Field(
        default="reddit.com,www.reddit.com,old.reddit.com",
        description="Reddit web hosts rewritten to the OAuth host when a server token is attached",
    )
    reddit_app_name: str = Field(default="media-feed-proxy", description="App name used in the OAuth User-Agent")
    reddit_user_agent: str = Field(
        default="media-feed-proxy/1.0 (server-side token client)",
        description="OAuth User-Agent when no Reddit username is configured",
    )
    token_timeout: int = Field(default=30, description="Token endpoint request timeout in seconds")
    token_refresh_margin_ms: int = Field(
        default=60_000, description="Treat tokens expiring within this window as expired"
    )

    # Logging settings
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format (json or text)")
    log_file: Optional[str] = Field(default=None, description="Log file path")
    log_max_size: str = Field(default="10MB", description="Maximum log file size")
    log_backup_count: int = Field(default=5, description="Number of backup log files")

    # CORS settings
    cors_origins: str = Field(default="*", description="Comma separated allowed CORS origins")

    # Monitoring settings
    metrics_enabled: bool = Field(default=True, description="Enable Prometheus metrics")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Put the runtime config file ahead of the environment."""
        return (
            init_settings,
            RuntimeConfigSettingsSource(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    @validator("environment")
    def validate_environment(cls, v):
        """Validate environment value."""
        allowed = ["development", "staging", "production"]
        if v not in allowed:
            raise ValueError(f"Environment must be one of {allowed}")
        return v

    @validator("log_level")
    def validate_log_level(cls, v):
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of {allowed}")
        return v.upper()

    @validator("log_format")
    def validate_log_format(cls, v):
        """Validate log format."""
        allowed = ["json", "text"]
        if v not in allowed:
            raise ValueError(f"Log format must be one of {allowed}")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def allowed_hosts_list(self) -> List[str]:
        """Get allowlist entries as a list."""
        return _split_csv(self.allowed_hosts)

    @property
    def reddit_web_hosts_list(self) -> List[str]:
        """Get Reddit web hosts as a list."""
        return _split_csv(self.reddit_web_hosts)

    @property
    def reddit_credentialed_hosts(self) -> List[str]:
        """Hosts that receive a server-acquired bearer token."""
        return self.reddit_web_hosts_list + [self.reddit_oauth_host.lower()]

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
