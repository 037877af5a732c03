"""
adaptive-progression: performance-driven workout plan regeneration.
"""

__version__ = "0.1.0"
