"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class VenaquiError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(VenaquiError):
    """Raised for issues related to configuration loading or validation."""


class InvalidLinkError(VenaquiError):
    """Raised when the link passed on the command line is not a usable URL."""


class InvalidPathError(VenaquiError):
    """Raised when the download directory is unusable."""


class RealDebridError(VenaquiError):
    """
    Raised when the Real-Debrid API rejects a request.

    The HTTP status code (if any) is kept on the exception so callers can
    tell permanent failures apart from throttling.
    """

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class AuthenticationError(RealDebridError):
    """Raised when the Real-Debrid API token is missing, invalid or expired."""


class RateLimitError(RealDebridError):
    """Raised when Real-Debrid answers with 429 Too Many Requests."""


class TorrentError(RealDebridError):
    """Raised when Real-Debrid fails to process a torrent or magnet."""


class TorrentTimeoutError(TorrentError):
    """Raised when a torrent does not become ready before the deadline."""


class DaemonError(VenaquiError):
    """Raised when the aria2 daemon returns a JSON-RPC error."""

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.code = code


class DaemonUnavailableError(DaemonError):
    """Raised when the aria2 daemon cannot be reached or started."""


class TransferError(VenaquiError):
    """Raised when aria2 reports that the transfer itself failed."""


class OpenerError(VenaquiError):
    """Raised when the OS cannot open or reveal a downloaded file."""
