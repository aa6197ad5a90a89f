"""In-memory content-management backend for development and tests."""
