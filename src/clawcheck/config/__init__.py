"""Configuration loading for ClawCheck."""
