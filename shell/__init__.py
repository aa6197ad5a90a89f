"""The chauffeur command-line entry point."""
