"""
aria2 daemon layer: the JSON-RPC client and the local daemon launcher.
"""

from .client import Aria2Client
from .launcher import ensure_daemon_running

__all__ = ["Aria2Client", "ensure_daemon_running"]
