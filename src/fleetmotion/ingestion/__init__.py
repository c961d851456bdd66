"""Ingestion layer.

This package contains adapters that turn live transport payloads into
normalized :class:`fleetmotion.models.PositionEvent` objects.
"""

__all__: list[str] = []
