"""
Utility module for gatescope.

Contains helper functions used by both Core and GUI.
"""

from .formatting import (
    format_frequency,
    format_db,
    format_voltage,
    format_sample_rate,
)

__all__ = [
    "format_frequency",
    "format_db",
    "format_voltage",
    "format_sample_rate",
]
