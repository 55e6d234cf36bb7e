"""
Real-Debrid API Layer.

This package handles all communication with the Real-Debrid REST API.
"""

from .client import RealDebridClient
from .rate_limiter import RateLimiter
from .torrents import TorrentManager

__all__ = ["RateLimiter", "RealDebridClient", "TorrentManager"]
