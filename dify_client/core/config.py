"""Client configuration for dify-client."""

import os
import ssl
from enum import Enum
from urllib.parse import urlparse

import dotenv
from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

DEFAULT_BASE_URL = "https://api.dify.ai"
DEFAULT_TIMEOUT = 30.0


class TlsMode(str, Enum):
    """Certificate verification strategy for outbound connections."""

    DEFAULT = "default"  # certifi bundle shipped with httpx
    STRICT = "strict"  # system trust store, TLS 1.2+, hostname checking


class ClientConfig(BaseModel):
    """Immutable settings shared by every request a client makes.

    Attributes:
        base_url: Absolute http(s) URL of the Dify API, without trailing slash
        api_key: App API key sent as a bearer token
        request_timeout: Seconds before a call times out (0 disables the timeout)
        tls_mode: Certificate verification strategy
    """

    model_config = ConfigDict(frozen=True)

    base_url: str = DEFAULT_BASE_URL
    api_key: SecretStr
    request_timeout: float = Field(default=DEFAULT_TIMEOUT, ge=0)
    tls_mode: TlsMode = TlsMode.DEFAULT

    @field_validator("base_url")
    @classmethod
    def _validate_base_url(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            msg = f"base_url must be an absolute http(s) URL, got {value!r}"
            raise ValueError(msg)
        return value

    @field_validator("api_key")
    @classmethod
    def _validate_api_key(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError("api_key must not be empty")
        return value

    @classmethod
    def from_environment(cls, *, env_file: str | None = None) -> "ClientConfig":
        """Create a config from DIFY_* environment variables.

        A ``.env`` file is loaded first (without overriding variables that are
        already set).

        Args:
            env_file: Optional path to a dotenv file (defaults to searching for ``.env``)

        Returns:
            ClientConfig built from the environment

        Raises:
            ValueError: If DIFY_API_KEY is missing or a value is invalid
        """
        dotenv.load_dotenv(env_file)

        api_key = os.environ.get("DIFY_API_KEY")
        if not api_key:
            raise ValueError("DIFY_API_KEY is not set")

        timeout = os.environ.get("DIFY_TIMEOUT")
        return cls(
            base_url=os.environ.get("DIFY_BASE_URL", DEFAULT_BASE_URL),
            api_key=api_key,
            request_timeout=float(timeout) if timeout else DEFAULT_TIMEOUT,
            tls_mode=TlsMode(os.environ.get("DIFY_TLS_MODE", TlsMode.DEFAULT.value).lower()),
        )

    @property
    def timeout_seconds(self) -> float | None:
        """Timeout in seconds, or None when disabled."""
        return self.request_timeout or None

    def authorization_header(self) -> str:
        """Bearer token value for the Authorization header."""
        return f"Bearer {self.api_key.get_secret_value()}"

    def ssl_verify(self) -> bool | ssl.SSLContext:
        """Value for httpx's ``verify`` argument according to ``tls_mode``."""
        if self.tls_mode is TlsMode.STRICT:
            context = ssl.create_default_context()
            context.minimum_version = ssl.TLSVersion.TLSv1_2
            context.check_hostname = True
            context.verify_mode = ssl.CERT_REQUIRED
            return context
        return True
