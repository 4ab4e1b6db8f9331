"""Command-line interface for clusterview."""
