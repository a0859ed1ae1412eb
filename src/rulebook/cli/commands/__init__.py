"""Top-level Rulebook commands."""
