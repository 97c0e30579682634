"""Command logic independent of the CLI."""
