"""Typer command modules registered by :mod:`clawcheck.cli.app`."""
