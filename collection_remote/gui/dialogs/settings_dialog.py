"""
Connection settings dialog for Collection Remote.

Edits the rosbridge host and port. Saving hands a new ConnectionConfig to
the window, which persists it and reconnects the session.
"""

from typing import Optional

from PyQt6.QtGui import QIntValidator
from PyQt6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QFormLayout, QLabel,
    QLineEdit, QPushButton
)

from collection_remote.config import ConnectionConfig


class SettingsDialog(QDialog):
    """Modal host/port editor."""

    def __init__(self, current: ConnectionConfig, parent=None):
        super().__init__(parent)
        self._result: Optional[ConnectionConfig] = None

        self.setWindowTitle("Connection Settings")
        self.setMinimumWidth(320)
        self._setup_ui(current)

    def _setup_ui(self, current: ConnectionConfig):
        """Set up the UI components."""
        layout = QVBoxLayout(self)
        layout.setSpacing(16)

        form = QFormLayout()

        self._host_edit = QLineEdit(current.host)
        self._host_edit.setPlaceholderText("localhost")
        form.addRow("Robot IP:", self._host_edit)

        self._port_edit = QLineEdit(current.port)
        self._port_edit.setPlaceholderText("9091")
        self._port_edit.setValidator(QIntValidator(1, 65535, self))
        form.addRow("Port:", self._port_edit)

        layout.addLayout(form)

        info_label = QLabel("Saving reconnects to the new address.")
        info_label.setStyleSheet("color: #757575;")
        layout.addWidget(info_label)

        button_layout = QHBoxLayout()
        button_layout.addStretch()

        cancel_btn = QPushButton("Cancel")
        cancel_btn.clicked.connect(self.reject)
        button_layout.addWidget(cancel_btn)

        save_btn = QPushButton("Save")
        save_btn.setDefault(True)
        save_btn.clicked.connect(self._on_save)
        button_layout.addWidget(save_btn)

        layout.addLayout(button_layout)

    def _on_save(self):
        self._result = ConnectionConfig(
            host=self._host_edit.text().strip(),
            port=self._port_edit.text().strip(),
        )
        self.accept()

    def get_config(self) -> Optional[ConnectionConfig]:
        """Edited config, or None if the dialog was cancelled."""
        return self._result

    @staticmethod
    def edit_config(current: ConnectionConfig, parent=None) -> Optional[ConnectionConfig]:
        """Show the dialog and return the edited config (None if cancelled)."""
        dialog = SettingsDialog(current, parent)
        if dialog.exec() == QDialog.DialogCode.Accepted:
            return dialog.get_config()
        return None
