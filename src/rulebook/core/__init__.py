"""Rulebook core: configuration, compilation and shared utilities."""
