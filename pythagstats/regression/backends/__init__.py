"""
OLS backends.
"""

from pythagstats.regression.backends.cpu import CPUQRBackend

__all__ = ['CPUQRBackend']
