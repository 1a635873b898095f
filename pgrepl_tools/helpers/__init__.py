"""Shared helpers: console output, settings and the PostgreSQL admin client."""
