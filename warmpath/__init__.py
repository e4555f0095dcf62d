"""
Warm Path

Warm-introduction pathfinding and relationship strength scoring.
"""

__version__ = "0.1.0"
