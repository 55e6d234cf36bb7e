"""
Command-line interface: Typer commands, the live session display and console formatting.
"""
