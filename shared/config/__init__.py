"""Shared configuration base classes.

Common settings blocks reused by the query service and its tooling so the
logging and store connection knobs are spelled the same way everywhere.
"""

from pydantic_settings import BaseSettings


class BaseLoggingConfig(BaseSettings):
    """Common logging configuration."""

    app_log_level: str = "INFO"
    app_log_redaction_patterns: list[str] = [
        "password",
        "token",
        "secret",
        "key",
        "authorization",
        "cookie",
        "session",
    ]
    app_environment: str = "production"


class BaseClickHouseConfig(BaseSettings):
    """Connection settings for the raw sample store."""

    clickhouse_host: str = "clickhouse"
    clickhouse_port: int = 9000
    clickhouse_db: str = "admiral"
    clickhouse_user: str = "admin"
    clickhouse_password: str = "admin"
    clickhouse_send_receive_timeout: int = 30  # seconds, per socket operation


class BaseServiceConfig(BaseLoggingConfig, BaseClickHouseConfig):
    """Base configuration combining logging and store settings.

    Services inherit from this and add their own specific settings.
    The service_name should be overridden by each service.
    """

    service_name: str = "unknown"  # Should be overridden by service


__all__ = ["BaseLoggingConfig", "BaseClickHouseConfig", "BaseServiceConfig"]
