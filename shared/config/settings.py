"""
Application settings loaded from environment variables.
Uses pydantic-settings for type-safe configuration.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with defaults for development."""

    # Environment
    environment: str = "development"
    debug: bool = True

    # Server port for the host application
    ws_registry_port: int = 8001

    # Comma-separated list of allowed origins (empty uses default localhost list)
    allowed_origins: str = ""

    # WebSocket transport
    ws_accept_timeout: float = 5.0  # Seconds allowed for the upgrade handshake
    ws_max_total_connections: int = 1000  # Handles the transport factory may hand out
    ws_max_message_size: int = 64 * 1024  # Bytes, larger inbound frames close the connection
    ws_broadcast_batch_size: int = 50  # Connections to send to in parallel

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    def validate_production_settings(self) -> list[str]:
        """
        Validate that settings are sane for production.
        Returns a list of validation errors. Empty list means all checks pass.
        """
        errors = []

        if self.environment == "production":
            if self.debug:
                errors.append("DEBUG must be False in production")

            if not self.allowed_origins:
                errors.append(
                    "ALLOWED_ORIGINS must be set in production (comma-separated list of allowed domains)"
                )

        if self.ws_accept_timeout <= 0:
            errors.append("WS_ACCEPT_TIMEOUT must be positive")

        if self.ws_max_total_connections <= 0:
            errors.append("WS_MAX_TOTAL_CONNECTIONS must be positive")

        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience exports
settings = get_settings()
