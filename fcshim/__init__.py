"""Helpers for running containers inside microVMs: stub drives, directory layouts, stdio proxying and task management."""

__version__ = "0.1.0"