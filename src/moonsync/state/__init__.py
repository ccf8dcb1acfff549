"""State layer.

This package is the single source of truth for how inbound channel events
are merged into the printer state snapshot.
"""
