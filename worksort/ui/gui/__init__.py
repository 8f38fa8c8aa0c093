"""GUI module using PySide6 (Qt6).

This module provides the graphical resolution dialog for Worksort.
Requires PySide6 to be installed: pip install PySide6
"""

from .dialog import QtResolutionAdapter, load_qt_widgets

__all__ = [
    "QtResolutionAdapter",
    "load_qt_widgets",
]
