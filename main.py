#!/usr/bin/env python3
"""
gatescope - entry point

Continuous voltage acquisition with a spectral noise gate and rolling
RMS display.

Usage:
    python main.py [config.yaml]

Example:
    python main.py lab_bench.yaml
"""

import sys
import logging
from pathlib import Path


def main():
    """Start the gatescope application."""
    # Check Python version
    if sys.version_info < (3, 11):
        print("Error: Python 3.11 or higher is required.")
        print(f"Current version: {sys.version}")
        sys.exit(1)

    # Import PySide6 (late import for faster error if not installed)
    try:
        from PySide6.QtWidgets import QApplication
        from PySide6.QtCore import Qt
    except ImportError:
        print("Error: PySide6 is not installed.")
        print("Install with: pip install PySide6")
        sys.exit(1)

    from gatescope.core.config import default_config_path, load_config
    from gatescope.core.errors import ConfigurationError
    from gatescope.core.logger import setup_logging
    from gatescope.gui import MainWindow

    setup_logging()
    log = logging.getLogger("Main")

    config_path = Path(sys.argv[1]) if len(sys.argv) > 1 else default_config_path()
    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        log.error("Invalid configuration: %s", e)
        sys.exit(1)

    # Enable High DPI scaling
    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    # Create application
    app = QApplication(sys.argv)
    app.setApplicationName("gatescope")
    app.setApplicationVersion("1.0.0")
    app.setOrganizationName("gatescope")

    # Create and show main window
    window = MainWindow(config, config_path)
    window.show()
    log.info("gatescope UI launched")

    # Run application
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
