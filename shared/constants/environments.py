from enum import Enum


class Environment(str, Enum):
    """Deployment environments the service knows how to run in."""

    PRODUCTION = "production"
    STAGING = "staging"
    TESTING = "testing"
    DEVELOPMENT = "development"

    @classmethod
    def is_production(cls, env: str) -> bool:
        return env.lower() == cls.PRODUCTION.value

    @classmethod
    def exposes_docs(cls, env: str) -> bool:
        """Interactive API docs are served everywhere except production."""
        return not cls.is_production(env)
