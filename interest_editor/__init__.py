"""Staged editing of a user's categorized interests."""

__version__ = "0.1.0"
