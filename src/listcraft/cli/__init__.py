"""Command-line interface for listcraft."""
