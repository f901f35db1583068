"""
Delete confirmation dialog for Collection Remote.

Stays open after the operator confirms; the window closes it once the
session reports the delete completed, so a failed delete leaves it up.
"""

from PyQt6.QtCore import pyqtSignal
from PyQt6.QtWidgets import QDialog, QVBoxLayout, QHBoxLayout, QLabel, QPushButton


class DeleteDialog(QDialog):
    """Confirm deletion of the recorded data on the robot."""

    confirmed = pyqtSignal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Delete Recording")
        self.setMinimumWidth(320)
        self._setup_ui()

    def _setup_ui(self):
        """Set up the UI components."""
        layout = QVBoxLayout(self)
        layout.setSpacing(16)

        message = QLabel("Delete the recorded data on the robot?\nThis cannot be undone.")
        message.setWordWrap(True)
        layout.addWidget(message)

        button_layout = QHBoxLayout()
        button_layout.addStretch()

        cancel_btn = QPushButton("Cancel")
        cancel_btn.clicked.connect(self.reject)
        button_layout.addWidget(cancel_btn)

        self._delete_btn = QPushButton("Delete")
        self._delete_btn.setStyleSheet("""
            QPushButton {
                background-color: #d32f2f;
                color: white;
                font-weight: bold;
            }
            QPushButton:hover {
                background-color: #f44336;
            }
        """)
        self._delete_btn.clicked.connect(self.confirmed)
        button_layout.addWidget(self._delete_btn)

        layout.addLayout(button_layout)
