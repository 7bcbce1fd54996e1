"""Command-line entry points, one per provider family."""
