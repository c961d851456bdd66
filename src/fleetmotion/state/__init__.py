"""State/store layer.

This package is the single source of truth for the rendered position,
heading and traveled path of every entity, whether it is driven by the
route animator or by live position events.
"""
