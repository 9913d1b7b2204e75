"""Datadget: poll JSON endpoints, keep a bounded value history, derive trends."""

__version__ = "1.0.0"
