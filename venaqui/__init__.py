"""
venaqui: download premium-hoster and torrent links through Real-Debrid and aria2.
"""

__version__ = "0.1.0"
