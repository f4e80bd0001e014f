"""Settings file discovery and loading."""
