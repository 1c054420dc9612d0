"""Taskboard: kanban task transitions with optimistic client reconciliation."""

__version__ = "1.0.0"
