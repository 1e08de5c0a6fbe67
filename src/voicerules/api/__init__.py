"""API layer: execution service, admin API and CLI."""
