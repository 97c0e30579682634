"""Shared exceptions, logging and protocol types."""
