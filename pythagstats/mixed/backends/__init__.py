"""
Variance component backends for the hierarchical fit.
"""

from pythagstats.mixed.backends.cpu import ProfiledDevianceBackend
from pythagstats.mixed.backends.em import EMBackend

__all__ = ['ProfiledDevianceBackend', 'EMBackend']
