"""
Pydantic-based configuration models for the PairChat server.

Each concern gets its own BaseSettings model with an environment prefix; the
models are aggregated by AppConfig, which also reads a ``.env`` file.
"""

import json
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

from ..structured_logging.enhanced_logging_config import VALID_ENVIRONMENTS, get_logger

logger = get_logger(__name__)


def _parse_env_list(candidate: Any) -> list[str]:
    """Parse a string from the environment as JSON list or CSV."""
    if candidate is None:
        return []
    if isinstance(candidate, list | tuple):
        return [str(item).strip() for item in candidate if str(item).strip()]
    s = str(candidate).strip()
    if not s:
        return []
    try:
        loaded = json.loads(s)
        if isinstance(loaded, list):
            return [str(item).strip() for item in loaded if str(item).strip()]
    except json.JSONDecodeError:
        pass
    return [item.strip() for item in s.split(",") if item.strip()]


class ServerConfig(BaseSettings):
    """Server network configuration."""

    host: str = Field(default="127.0.0.1", description="Server bind address")
    port: int = Field(default=3001, description="Server port")

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is in valid range."""
        if not 1024 <= v <= 65535:
            logger.error("Invalid server port", port=v, valid_range="1024-65535")
            raise ValueError("Port must be between 1024 and 65535")
        return v

    model_config = {"env_prefix": "SERVER_", "case_sensitive": False, "extra": "ignore"}


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    environment: str = Field(default="local", description="Logging environment")
    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="colored", description="Log format")
    mask_identities: bool = Field(default=True, description="Mask participant identities in log entries")
    disable_logging: bool = Field(default=False, description="Disable all logging")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate logging environment."""
        if v not in VALID_ENVIRONMENTS:
            raise ValueError(f"Environment must be one of {VALID_ENVIRONMENTS}, got '{v}'")
        return v

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}, got '{v}'")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = ["json", "human", "colored"]
        if v not in valid_formats:
            raise ValueError(f"Log format must be one of {valid_formats}, got '{v}'")
        return v

    model_config = {"env_prefix": "LOGGING_", "case_sensitive": False, "extra": "ignore"}

    def to_legacy_dict(self) -> dict:
        """Return the dict structure expected by setup_enhanced_logging."""
        return {
            "environment": self.environment,
            "level": self.level,
            "format": self.format,
            "mask_identities": self.mask_identities,
            "disable_logging": self.disable_logging,
        }


class MatchmakingConfig(BaseSettings):
    """Registration policy and pairing configuration."""

    accepted_identity_suffixes: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: [".edu", ".ac.in", ".edu.in"],
        description="Identity suffixes accepted at registration (case-insensitive)",
    )
    attribute_values: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["male", "female"],
        description="The two attribute values participants are paired across",
    )
    notify_displaced: bool = Field(
        default=False,
        description="Send a 'displaced' event before force-closing a replaced session",
    )
    max_message_size: int = Field(default=10 * 1024, description="Maximum inbound frame size in bytes")
    max_json_depth: int = Field(default=10, description="Maximum nesting depth of inbound frames")
    max_string_length: int = Field(default=4096, description="Maximum length of any string in an inbound frame")

    @field_validator("accepted_identity_suffixes", mode="before")
    @classmethod
    def parse_suffixes(cls, v: Any) -> list[str]:
        """Accept JSON or CSV and normalize to lower case."""
        suffixes = [item.lower() for item in _parse_env_list(v)]
        if not suffixes:
            raise ValueError("At least one accepted identity suffix is required")
        return suffixes

    @field_validator("attribute_values", mode="before")
    @classmethod
    def parse_attribute_values(cls, v: Any) -> list[str]:
        """Require exactly two distinct attribute values."""
        values = _parse_env_list(v)
        if len(values) != 2 or values[0] == values[1]:
            logger.error("Invalid attribute values", attribute_values=values)
            raise ValueError("Exactly two distinct attribute values are required")
        return values

    @field_validator("max_message_size", "max_json_depth", "max_string_length")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate limits are positive."""
        if v <= 0:
            raise ValueError("Limits must be positive")
        return v

    model_config = {"env_prefix": "MATCHMAKING_", "case_sensitive": False, "extra": "ignore"}


class CORSConfig(BaseSettings):
    """Cross-origin resource sharing configuration."""

    allow_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Origins permitted to open the chat socket",
    )
    allow_methods: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["GET", "POST"],
        description="HTTP methods permitted by CORS responses",
    )
    allow_headers: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["Content-Type", "Accept"],
        description="Request headers permitted by CORS responses",
    )
    allow_credentials: bool = Field(default=True, description="Whether credentialed requests are accepted")

    @field_validator("allow_origins", "allow_methods", "allow_headers", mode="before")
    @classmethod
    def parse_lists(cls, v: Any) -> list[str]:
        """Accept JSON or CSV lists from the environment."""
        return _parse_env_list(v)

    @field_validator("allow_methods")
    @classmethod
    def upper_methods(cls, v: list[str]) -> list[str]:
        """Normalize methods to upper case."""
        return [method.upper() for method in v]

    model_config = {"env_prefix": "CORS_", "case_sensitive": False, "extra": "ignore"}


class AppConfig(BaseSettings):
    """
    Composite application configuration.

    Access via the get_config() function.
    """

    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    matchmaking: MatchmakingConfig = Field(default_factory=MatchmakingConfig)
    cors: CORSConfig = Field(default_factory=CORSConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "case_sensitive": False, "extra": "ignore"}

    def to_legacy_dict(self) -> dict:
        """Convert to the dict format consumed by the logging setup."""
        return {
            "host": self.server.host,
            "port": self.server.port,
            "logging": self.logging.to_legacy_dict(),
        }
