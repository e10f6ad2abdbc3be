"""Configuration management for environment variables."""

import os
from pathlib import Path

from dotenv import load_dotenv

from wikidump.utils.exceptions import ConfigurationError

DEFAULT_WIKIPEDIA_URL = (
    "https://dumps.wikimedia.org/enwiki/latest/enwiki-latest-pages-articles.xml.bz2"
)
DEFAULT_TOTAL_ENTITY_SIZE_LIMIT = 100_000_000
DEFAULT_MAX_DIGEST_LENGTH = 100
# Room for one character plus the "..." suffix
MIN_DIGEST_LENGTH = 4


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Load configuration from .env file and environment."""
        env_path = Path(".env")
        if env_path.exists():
            load_dotenv(env_path)

        self.dump_url = os.getenv("WIKIDUMP_URL", DEFAULT_WIKIPEDIA_URL)
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.total_entity_size_limit = self._get_int(
            "WIKIDUMP_TOTAL_ENTITY_SIZE_LIMIT", DEFAULT_TOTAL_ENTITY_SIZE_LIMIT
        )
        self.max_digest_length = self._get_int(
            "WIKIDUMP_MAX_DIGEST_LENGTH", DEFAULT_MAX_DIGEST_LENGTH
        )
        if self.max_digest_length < MIN_DIGEST_LENGTH:
            raise ConfigurationError(
                f"WIKIDUMP_MAX_DIGEST_LENGTH must be at least {MIN_DIGEST_LENGTH}, "
                f"got {self.max_digest_length}"
            )
        self.limit = self._get_int("WIKIDUMP_LIMIT", 0)
        self.read_interval = self._get_float("WIKIDUMP_READ_INTERVAL", 0.0)

    def _get_int(self, key: str, default: int) -> int:
        """Get integer environment variable or raise error.

        Args:
            key: Environment variable name
            default: Value used when the variable is not set

        Returns:
            Parsed integer value

        Raises:
            ConfigurationError: If the value is not an integer
        """
        value = os.getenv(key)
        if value is None or not value.strip():
            return default
        try:
            return int(value)
        except ValueError as e:
            raise ConfigurationError(f"{key} must be an integer, got {value!r}") from e

    def _get_float(self, key: str, default: float) -> float:
        value = os.getenv(key)
        if value is None or not value.strip():
            return default
        try:
            return float(value)
        except ValueError as e:
            raise ConfigurationError(f"{key} must be a number, got {value!r}") from e

    @staticmethod
    def get_optional(key: str, default: str | None = None) -> str | None:
        """Get optional environment variable with default value.

        Args:
            key: Environment variable name
            default: Default value if not set

        Returns:
            Environment variable value or default
        """
        return os.getenv(key, default)
