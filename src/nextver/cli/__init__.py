"""Command line interface for nextver."""
