import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import structlog
from dotenv import load_dotenv

logger = structlog.get_logger(__name__)

DEFAULT_SESSION_FILE = Path.home() / ".credvend" / ".credentials"


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


def _parse_seconds(name: str, value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise ValueError(f"Invalid value for {name}: {value!r}. Expected a number of seconds.")
    if seconds <= 0:
        raise ValueError(f"Invalid value for {name}: {value!r}. Must be greater than zero.")
    return seconds


@dataclass
class Config:
    """Client configuration read from environment variables.

    Required environment variables:
        - CONSOLEME_URL: Base URL of the credential-vending service

    Optional environment variables:
        - CONSOLEME_OPEN_URL_OVERRIDE: Web base URL for console links (default: CONSOLEME_URL)
        - AWS_REGION: Region for the STS client used by role-assumption hops (default: us-east-1)
        - HTTP_TIMEOUT: Connect timeout in seconds (default: 10)
        - HTTP_READ_TIMEOUT: Read timeout in seconds (default: 60)
        - FEATURE_CONSOLEME_METADATA: Attach instance-identity metadata to credential requests (default: false)
        - CREDVEND_SESSION_FILE: Cached session file deleted when authentication expires
        - LOG_LEVEL: Logging level (default: INFO)
        - APP_ENV: Application environment (default: development)
    """

    consoleme_url: str = ""
    open_url_override: str = ""
    aws_region: str = ""
    http_timeout: Optional[float] = None
    http_read_timeout: Optional[float] = None
    metadata_enabled: Optional[bool] = None
    session_file: Optional[Path] = None
    log_level: str = ""
    app_env: str = ""

    def __post_init__(self):
        self.consoleme_url = self.consoleme_url or os.getenv("CONSOLEME_URL", "")
        self.open_url_override = self.open_url_override or os.getenv("CONSOLEME_OPEN_URL_OVERRIDE", "")
        self.aws_region = self.aws_region or os.getenv("AWS_REGION", "us-east-1")

        if self.http_timeout is None:
            self.http_timeout = _parse_seconds("HTTP_TIMEOUT", os.getenv("HTTP_TIMEOUT") or "10")
        if self.http_read_timeout is None:
            self.http_read_timeout = _parse_seconds("HTTP_READ_TIMEOUT", os.getenv("HTTP_READ_TIMEOUT") or "60")

        if self.metadata_enabled is None:
            self.metadata_enabled = _parse_bool(os.getenv("FEATURE_CONSOLEME_METADATA", "false"))

        if self.session_file is None:
            session_file = os.getenv("CREDVEND_SESSION_FILE")
            self.session_file = Path(session_file).expanduser() if session_file else DEFAULT_SESSION_FILE

        self.log_level = self.log_level or os.getenv("LOG_LEVEL", "INFO")
        self.app_env = self.app_env or os.getenv("APP_ENV", "development")

        self._validate()

    def _validate(self):
        if not self.consoleme_url:
            raise ValueError(
                "Missing required configuration: CONSOLEME_URL\n"
                "\n"
                "CONSOLEME_URL must be set to the base URL of the credential-vending service.\n"
                "Example: CONSOLEME_URL=https://consoleme.example.com\n"
            )
        if not self.consoleme_url.startswith(("https://", "http://")):
            raise ValueError(
                f"Invalid CONSOLEME_URL: {self.consoleme_url!r}\n"
                "\n"
                "The URL must include the scheme, e.g. https://consoleme.example.com\n"
            )

    @property
    def host(self) -> str:
        """Service base URL without a trailing slash."""
        return self.consoleme_url.rstrip("/")

    def base_web_url(self) -> str:
        """Web base URL used to build console links."""
        return (self.open_url_override or self.consoleme_url).rstrip("/")


def get_config() -> Config:
    """Load `.env` (if present) and build a Config from the environment."""
    load_dotenv()
    config = Config()
    logger.debug(
        "Configuration loaded",
        host=config.host,
        region=config.aws_region,
        metadata_enabled=config.metadata_enabled,
    )
    return config
