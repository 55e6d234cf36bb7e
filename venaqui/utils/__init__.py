"""
Shared helpers: human-readable formatting, link and path validation, and
the platform file opener.
"""
