"""Logging, printing and settings shared by every part of the project."""
