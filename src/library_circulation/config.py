"""Configuration management for the Library Circulation MCP Server.

Settings come from the environment (``LIBRARY_CIRCULATION_*``) or a local
``.env`` file and are validated with Pydantic v2:
1. Protocol Metadata - server name and version for the MCP handshake
2. Circulation Policy - how a returned item is offered to waiting members
3. Logging and Tracing - log level and logfire behaviour
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models.circulation import ReservationPolicy


class CirculationConfig(BaseSettings):
    """Server and circulation settings.

    The reservation policy is the one behavioural switch: ``broadcast``
    tells every waiting member when an item comes back and lets the next
    checkout win, ``priority`` keeps the item for the member at the head
    of the queue.
    """

    model_config = SettingsConfigDict(
        env_prefix="LIBRARY_CIRCULATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Server Metadata ===

    server_name: str = Field(
        default="library-circulation",
        description="MCP server name used in protocol handshake",
        pattern=r"^[a-z0-9-]+$",
    )

    server_version: str = Field(
        default="0.1.0",
        description="Server version for capability negotiation",
        pattern=r"^\d+\.\d+\.\d+(-[a-zA-Z0-9.]+)?$",
    )

    transport: str = Field(
        default="stdio",
        description="Primary transport mechanism",
        pattern=r"^(stdio|streamable_http)$",
    )

    # === Circulation Policy ===

    reservation_policy: ReservationPolicy = Field(
        default=ReservationPolicy.BROADCAST,
        description="What happens to the reservation queue when an item is returned",
    )

    availability_message: str = Field(
        default="The book you reserved is now available!",
        description="Message delivered to waiting members when an item is released",
        min_length=1,
        max_length=500,
    )

    max_recommendations: int = Field(
        default=5,
        description="Default number of recommendations returned for a patron",
        ge=1,
        le=50,
    )

    # === Logging and Tracing ===

    debug: bool = Field(
        default=False,
        description="Enable debug logging",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
    )

    observability_enabled: bool = Field(
        default=True,
        description="Wrap circulation operations in logfire spans",
    )

    observability_console: bool = Field(
        default=False,
        description="Print logfire spans to the console",
    )

    observability_send: bool = Field(
        default=False,
        description="Send spans to the logfire backend (requires a token)",
    )

    @field_validator("server_name")
    @classmethod
    def validate_server_name(cls, v: str) -> str:
        """Keep server names short enough for client display."""
        if len(v) < 3:
            raise ValueError("Server name must be at least 3 characters")
        if len(v) > 50:
            raise ValueError("Server name must not exceed 50 characters")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        if isinstance(v, str):
            return v.upper()
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.debug or self.log_level == "DEBUG"

    @property
    def server_info(self) -> dict[str, str]:
        """Get server information for the MCP handshake."""
        return {
            "name": self.server_name,
            "version": self.server_version,
            "transport": self.transport,
            "reservation_policy": self.reservation_policy.value,
        }


class _ConfigStore:
    """Internal storage for configuration singleton."""

    _instance: CirculationConfig | None = None


def get_config() -> CirculationConfig:
    """Get or create the global configuration instance."""
    if _ConfigStore._instance is None:  # type: ignore[reportPrivateUsage]
        _ConfigStore._instance = CirculationConfig()  # type: ignore[reportPrivateUsage]
    return _ConfigStore._instance  # type: ignore[reportPrivateUsage]


def reset_config() -> None:
    """Reset configuration (useful for testing)."""
    _ConfigStore._instance = None  # type: ignore[reportPrivateUsage]
