from dotenv import load_dotenv
from dataclasses import dataclass
import os

from crawlerview.constants import (
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_MAX_RETRIES,
    MAX_REDIRECTS,
    INITIAL_BACKOFF_DELAY_SECONDS,
)

load_dotenv()  # Loads variables from .env file


def _env_number(name: str, default, cast):
    """Read a numeric environment variable, keeping the default if it does not parse."""
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return cast(value)
    except ValueError:
        return default  # Keep default if conversion fails


@dataclass
class Config:
    """Configuration for a crawler accessibility session."""
    timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES
    max_redirects: int = MAX_REDIRECTS
    backoff_base: float = INITIAL_BACKOFF_DELAY_SECONDS
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables.

        Returns:
            Config: Configuration instance with values from environment
        """
        return cls(
            timeout=_env_number("CRAWLERVIEW_TIMEOUT", DEFAULT_REQUEST_TIMEOUT_SECONDS, float),
            max_retries=_env_number("CRAWLERVIEW_MAX_RETRIES", DEFAULT_MAX_RETRIES, int),
            max_redirects=_env_number("CRAWLERVIEW_MAX_REDIRECTS", MAX_REDIRECTS, int),
            backoff_base=_env_number("CRAWLERVIEW_BACKOFF_BASE", INITIAL_BACKOFF_DELAY_SECONDS, float),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    def to_dict(self) -> dict:
        """Convert configuration to dictionary.

        Returns:
            Dictionary of all configuration values
        """
        return {
            field_name: getattr(self, field_name)
            for field_name in self.__dataclass_fields__
        }


# Global default configuration instance
default_config = Config()
