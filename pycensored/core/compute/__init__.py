"""
Shared compute infrastructure for pycensored.

Submodules:
    timing: Execution timing utilities
"""

from pycensored.core.compute.timing import Timer, timed

__all__ = [
    "Timer",
    "timed",
]
