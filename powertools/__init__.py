"""Powertools - repository lifecycle commands for a Git hosting server."""

__version__ = "0.4.0"
