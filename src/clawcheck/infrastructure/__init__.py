"""Logging and error plumbing."""
