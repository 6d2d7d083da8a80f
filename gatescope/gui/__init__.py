"""
GUI module for gatescope.

PySide6-based user interface with pyqtgraph for live plots.
"""

from .main_window import MainWindow

__all__ = ["MainWindow"]
