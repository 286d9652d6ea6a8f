"""Command-line interface for ClawCheck."""
