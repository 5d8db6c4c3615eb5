"""Configuration management using Pydantic BaseSettings.

This module provides centralized configuration management with validation,
type safety, and sensible defaults for the identity resolver.
"""
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Main configuration class combining all settings."""

    # Supabase (PostgREST) Configuration
    supabase_url: str = Field("", description="Supabase project URL, e.g. https://xyz.supabase.co")
    supabase_service_role_key: str = Field("", description="Service-role key used for admin reads")
    supabase_schema: str = Field("public", description="Postgres schema exposed through PostgREST")
    users_table: str = Field("user_data", description="Table holding one row per user")
    activity_table: str = Field("summary_generation", description="Table holding per-user IP/device activity")
    store_timeout: int = Field(20, ge=1, le=120, description="Request timeout in seconds")
    store_page_size: int = Field(1000, ge=1, le=10000, description="Rows requested per page")

    # Resolver Configuration
    active_window_days: int = Field(30, ge=1, le=365, description="Window for counting a user as active")

    # Logging Configuration
    log_level: str = Field("INFO", description="Logging level")
    log_format: str = Field("%(asctime)s - %(name)s - %(levelname)s - %(message)s", description="Log format")

    # Metrics Configuration
    metrics_enabled: bool = Field(False, description="Emit DogStatsD metrics")
    dd_agent_host: str = Field("localhost", description="DogStatsD host")
    dd_agent_port: int = Field(8125, ge=1, le=65535, description="DogStatsD port")
    metrics_prefix: str = Field("resolver", description="Metric namespace")
    metrics_service: str = Field("duplicate-resolver", description="Value of the service tag on every metric")
    metrics_env: str = Field("dev", description="Value of the env tag on every metric")

    # HTTP API Configuration
    api_host: str = Field("0.0.0.0", description="Bind address for the HTTP API")
    api_port: int = Field(8000, ge=1, le=65535, description="Port for the HTTP API")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore"
    }

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Invalid log level: {v}. Valid options: {valid_levels}')
        return v.upper()

    @field_validator('supabase_url')
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.strip().rstrip('/')

    def rest_url(self, table: str) -> str:
        """PostgREST endpoint for a table."""
        return f"{self.supabase_url}/rest/v1/{table}"

    def validate_configuration(self) -> List[str]:
        """Validate the complete configuration and return any issues."""
        issues = []

        # Check required fields
        if not self.supabase_url:
            issues.append("SUPABASE_URL is required")
        elif not self.supabase_url.startswith(("http://", "https://")):
            issues.append("SUPABASE_URL must start with http:// or https://")
        if not self.supabase_service_role_key:
            issues.append("SUPABASE_SERVICE_ROLE_KEY is required")

        # Check logical constraints
        if not self.users_table or not self.activity_table:
            issues.append("USERS_TABLE and ACTIVITY_TABLE must not be empty")
        elif self.users_table == self.activity_table:
            issues.append("USERS_TABLE and ACTIVITY_TABLE must be different tables")

        if self.store_page_size < 10:
            issues.append("STORE_PAGE_SIZE is very low, detection will issue many requests")

        return issues

    def log_configuration(self) -> None:
        """Log the current configuration (sanitized)."""
        from resolver.utils.logger import log_info

        log_info("Configuration loaded",
                 supabase_url=self.supabase_url,
                 supabase_schema=self.supabase_schema,
                 users_table=self.users_table,
                 activity_table=self.activity_table,
                 store_page_size=self.store_page_size,
                 active_window_days=self.active_window_days,
                 metrics_enabled=self.metrics_enabled,
                 metrics_env=self.metrics_env,
                 log_level=self.log_level)


# Global configuration instance (lazy loading)
_config = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config() -> Config:
    """Reload configuration from environment variables."""
    global _config
    _config = Config()
    return _config
