"""Endpoint modules for external lookup services."""
