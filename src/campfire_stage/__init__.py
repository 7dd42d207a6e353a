"""Campfire Stage: ephemeral chat groups with self-destruct rules."""

__version__ = "0.1.0"
