"""
QuickColor Core

Color mathematics, harmony generation, dominant-color extraction and the
palette / recent-colors persistence layer of the QuickColor app.
"""

__version__ = "1.0.0"
