"""Diagnostic and validation engines."""
