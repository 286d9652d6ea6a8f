"""Clients for the services ClawCheck inspects."""
