"""Shared utilities and components for the fleet metrics service."""

from .config import BaseClickHouseConfig, BaseLoggingConfig, BaseServiceConfig
from .constants import Environment, Tables

__all__ = [
    "Environment",
    "Tables",
    "BaseServiceConfig",
    "BaseLoggingConfig",
    "BaseClickHouseConfig",
]
