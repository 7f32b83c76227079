"""
QuickColor Colors Module

Provides colorspace conversion, contrast scoring, harmony generation and
dominant-color extraction from raw pixel buffers.
"""

__version__ = "1.0.0"
