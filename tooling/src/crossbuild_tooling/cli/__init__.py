"""Command-line entry points for the crossbuild command."""
