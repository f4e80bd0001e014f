"""User config and project history storage."""
