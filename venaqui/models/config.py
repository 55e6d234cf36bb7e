"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_RPC_URL = "http://localhost:6800/jsonrpc"
DEFAULT_TORRENT_TIMEOUT = 300


class AppConfig(BaseModel):
    """A validated configuration model for the application."""

    # Real-Debrid
    api_token: str = ""

    # aria2 daemon
    rpc_url: str = DEFAULT_RPC_URL
    rpc_secret: str = ""
    auto_start_daemon: bool = True

    # Download Settings
    download_dir: str = ""
    torrent_timeout: int = DEFAULT_TORRENT_TIMEOUT
    exit_on_complete: bool = False

    # Internal fields not loaded from INI file
    config_path: str = Field(..., repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("rpc_url")
    @classmethod
    def validate_rpc_url(cls, v: str) -> str:
        """Ensures the aria2 RPC endpoint is an HTTP(S) URL."""
        if not v:
            return DEFAULT_RPC_URL
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(
                f"rpc_url must be an http(s) URL such as {DEFAULT_RPC_URL}, got: {v}"
            )
        return v

    @field_validator("torrent_timeout")
    @classmethod
    def validate_torrent_timeout(cls, v: int) -> int:
        """Keeps the torrent readiness wait within sane bounds."""
        if v < 10 or v > 3600:
            raise ValueError("torrent_timeout must be between 10 and 3600 seconds.")
        return v

    @model_validator(mode="after")
    def validate_token(self) -> "AppConfig":
        """The API token is the only mandatory setting."""
        if not self.api_token:
            raise ValueError(
                "api_token is required. Get one at https://real-debrid.com/apitoken"
            )
        return self

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path"}
        return {key for key in cls.model_fields if key not in internal_fields}
