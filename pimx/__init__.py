"""
PIMX planner backend
Local cache, sync engine and key-value store for the personal tracking dashboard
"""

__version__ = "1.0.0"
