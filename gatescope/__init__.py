"""
gatescope - live spectral noise gate for analog voltage acquisition.
"""

__version__ = "1.0.0"
