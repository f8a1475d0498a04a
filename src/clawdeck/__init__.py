"""Operator dashboard for agents managed by an agent gateway."""

__version__ = "0.1.0"
