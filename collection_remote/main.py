#!/usr/bin/env python3
"""
Main entry point for the Collection Remote desktop app.

Builds one RecordingSession from the persisted host/port and the remote
YAML config, hands it to the window and connects.
"""

import argparse
import logging
import sys
from pathlib import Path

import yaml


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Remote control for robot data collection.")
    parser.add_argument("--config", type=Path, default=None,
                        help="Remote endpoint YAML (default: ~/.config/collection_remote/remote.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args, qt_args = parser.parse_known_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Suppress websocket stack noise
    logging.getLogger('autobahn').setLevel(logging.WARNING)
    logging.getLogger('twisted').setLevel(logging.WARNING)

    # Import PyQt6
    try:
        from PyQt6.QtWidgets import QApplication, QMessageBox
        from PyQt6.QtCore import Qt
    except ImportError:
        print("Error: PyQt6 is required but not installed.")
        print("Install it with: pip install PyQt6")
        sys.exit(1)

    # Create application
    app = QApplication([sys.argv[0]] + qt_args)
    app.setApplicationName("Collection Remote")
    app.setApplicationVersion("1.0.0")
    app.setOrganizationName("CollectionRemote")

    # Apply qt-material theme if available
    try:
        from qt_material import apply_stylesheet
        apply_stylesheet(app, theme='dark_blue.xml')
    except ImportError:
        # qt-material not installed, use default dark palette
        from PyQt6.QtWidgets import QStyleFactory
        from PyQt6.QtGui import QPalette, QColor

        app.setStyle(QStyleFactory.create("Fusion"))

        palette = QPalette()
        palette.setColor(QPalette.ColorRole.Window, QColor(53, 53, 53))
        palette.setColor(QPalette.ColorRole.WindowText, Qt.GlobalColor.white)
        palette.setColor(QPalette.ColorRole.Base, QColor(25, 25, 25))
        palette.setColor(QPalette.ColorRole.Text, Qt.GlobalColor.white)
        palette.setColor(QPalette.ColorRole.Button, QColor(53, 53, 53))
        palette.setColor(QPalette.ColorRole.ButtonText, Qt.GlobalColor.white)
        palette.setColor(QPalette.ColorRole.Highlight, QColor(42, 130, 218))
        palette.setColor(QPalette.ColorRole.HighlightedText, Qt.GlobalColor.black)
        app.setPalette(palette)

    from collection_remote.config import ConnectionConfig, RemoteConfig
    from collection_remote.session import RecordingSession
    from collection_remote.settings import QtSettingsStore
    from collection_remote.gui.main_window import RemoteWindow

    config_path = args.config or RemoteConfig.default_config_path()
    try:
        remote_config = RemoteConfig.load_or_default(config_path)
    except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
        QMessageBox.critical(None, "Invalid Configuration", f"{config_path}:\n{e}")
        sys.exit(1)

    settings_store = QtSettingsStore()
    session = RecordingSession(ConnectionConfig.from_settings(settings_store), remote_config)

    window = RemoteWindow(session, settings_store)
    window.show()

    session.connect()

    # Run application
    sys.exit(app.exec())


if __name__ == '__main__':
    main()
