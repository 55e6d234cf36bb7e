"""
Core application engine.

The resolver turns a link into an aria2 transfer; the monitor is the pure
state machine for that transfer and the session runner drives it.
"""
