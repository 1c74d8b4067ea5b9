"""Domain layer for the TypeSpeed application."""
