"""Plumtree epidemic broadcast trees as a sans-I/O state machine, plus vector clocks."""

__version__ = "0.1.0"
__all__ = ["action", "message", "missing", "node", "time", "vclock"]