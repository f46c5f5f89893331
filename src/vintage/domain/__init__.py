"""Domain models and deadline helpers."""
