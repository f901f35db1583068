"""
Main window for Collection Remote.

Renders the session's recording state and connection status, and forwards
START / STOP / DELETE and settings changes to the RecordingSession. All
command logic lives in the session; this module only wires signals and
updates widgets.
"""

from typing import Optional

from PyQt6.QtCore import QTimer
from PyQt6.QtGui import QAction
from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QLabel,
    QPushButton, QStatusBar, QToolBar, QMessageBox
)

from collection_remote.config import ConnectionConfig, ConnectionStatus, RecordingState
from collection_remote.session import RecordingSession

from .dialogs import DeleteDialog, SettingsDialog

_STATUS_COLORS = {
    ConnectionStatus.CONNECTED: "#4caf50",
    ConnectionStatus.DISCONNECTED: "#616161",
    ConnectionStatus.ERRORED: "#f44336",
}

_BUTTON_STYLE = """
    QPushButton {
        font-weight: bold;
        font-size: 16px;
        padding: 16px;
        min-height: 60px;
    }
"""

_ACTIVE_BUTTON_STYLE = """
    QPushButton {
        font-weight: bold;
        font-size: 16px;
        padding: 16px;
        min-height: 60px;
        background-color: %s;
        color: white;
    }
"""


class RemoteWindow(QMainWindow):
    """
    Collection remote window.

    Layout:
    - Toolbar: connection settings
    - Central: connection indicator, state label, START / STOP / DELETE
    - Status bar: endpoint and transient messages
    """

    def __init__(self, session: RecordingSession, settings_store, parent=None):
        super().__init__(parent)
        self._session = session
        self._settings_store = settings_store
        self._delete_dialog: Optional[DeleteDialog] = None

        self.setWindowTitle("Collection Remote")
        self.setMinimumSize(360, 420)

        self._setup_toolbar()
        self._setup_central_widget()
        self._setup_status_bar()
        self._connect_signals()

        self._on_connection_changed(self._session.connection_status)
        self._on_state_changed(self._session.state)

    def _setup_toolbar(self):
        """Set up the toolbar."""
        toolbar = QToolBar("Main Toolbar")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        settings_action = QAction("Settings", self)
        settings_action.setToolTip("Robot address")
        settings_action.triggered.connect(self._open_settings)
        toolbar.addAction(settings_action)

    def _setup_central_widget(self):
        """Set up the indicator and command buttons."""
        central = QWidget()
        self.setCentralWidget(central)

        layout = QVBoxLayout(central)
        layout.setContentsMargins(16, 16, 16, 16)
        layout.setSpacing(16)

        status_row = QHBoxLayout()
        self._status_led = QLabel()
        self._status_led.setFixedSize(16, 16)
        status_row.addWidget(self._status_led)

        self._connection_label = QLabel("Disconnected")
        status_row.addWidget(self._connection_label)
        status_row.addStretch()
        layout.addLayout(status_row)

        self._state_label = QLabel("Idle")
        self._state_label.setStyleSheet("font-size: 24px; font-weight: bold;")
        layout.addWidget(self._state_label)

        self._start_btn = QPushButton("START")
        self._start_btn.clicked.connect(self._session.start)
        layout.addWidget(self._start_btn)

        self._stop_btn = QPushButton("STOP")
        self._stop_btn.clicked.connect(self._session.stop)
        layout.addWidget(self._stop_btn)

        self._delete_btn = QPushButton("DELETE")
        self._delete_btn.setStyleSheet(_BUTTON_STYLE)
        self._delete_btn.clicked.connect(self._open_delete_dialog)
        layout.addWidget(self._delete_btn)

        layout.addStretch()

    def _setup_status_bar(self):
        """Set up the status bar."""
        self._status_bar = QStatusBar()
        self.setStatusBar(self._status_bar)

        self._endpoint_label = QLabel(self._session.connection_config.url)
        self._status_bar.addWidget(self._endpoint_label)

        self._message_label = QLabel("")
        self._status_bar.addPermanentWidget(self._message_label)

    def _connect_signals(self):
        """Connect session signals."""
        self._session.state_changed.connect(self._on_state_changed)
        self._session.connection_status_changed.connect(self._on_connection_changed)
        self._session.error_occurred.connect(self._show_error_message)
        self._session.delete_completed.connect(self._on_delete_completed)
        self._session.delete_failed.connect(self._on_delete_failed)

    # === Session Handlers ===

    def _on_state_changed(self, state: RecordingState):
        """Mark START active while recording, STOP active while idle."""
        recording = state is RecordingState.RECORDING
        self._state_label.setText("Recording" if recording else "Idle")
        self._start_btn.setStyleSheet(
            _ACTIVE_BUTTON_STYLE % "#d32f2f" if recording else _BUTTON_STYLE)
        self._stop_btn.setStyleSheet(
            _BUTTON_STYLE if recording else _ACTIVE_BUTTON_STYLE % "#424242")
        self._delete_btn.setEnabled(
            not recording or self._session.state_machine.allow_delete_while_recording)

    def _on_connection_changed(self, status: ConnectionStatus):
        self._status_led.setStyleSheet(f"""
            QLabel {{
                background-color: {_STATUS_COLORS[status]};
                border-radius: 8px;
            }}
        """)
        self._connection_label.setText(status.value.capitalize())

    def _on_delete_completed(self):
        if self._delete_dialog is not None:
            self._delete_dialog.accept()
        self._show_status_message("Recording deleted")

    def _on_delete_failed(self, message: str):
        if self._delete_dialog is not None:
            QMessageBox.warning(self._delete_dialog, "Delete Failed", message)

    # === Dialogs ===

    def _open_delete_dialog(self):
        self._delete_dialog = DeleteDialog(self)
        self._delete_dialog.confirmed.connect(self._session.delete)
        self._delete_dialog.exec()
        self._delete_dialog = None

    def _open_settings(self):
        current = ConnectionConfig.from_settings(self._settings_store)
        edited = SettingsDialog.edit_config(current, self)
        if edited is None:
            return

        edited.save(self._settings_store)
        config = ConnectionConfig.from_settings(self._settings_store)
        self._endpoint_label.setText(config.url)
        self._session.reconfigure(config)

    # === UI Helpers ===

    def _show_status_message(self, message: str):
        """Show a status message."""
        self._message_label.setStyleSheet("")
        self._message_label.setText(message)
        # Clear after 5 seconds
        QTimer.singleShot(5000, lambda: self._message_label.setText(""))

    def _show_error_message(self, message: str):
        """Show an error message."""
        self._message_label.setText(f"Error: {message}")
        self._message_label.setStyleSheet("color: #ef5350;")
        # Clear after 5 seconds
        QTimer.singleShot(5000, lambda: (
            self._message_label.setText(""),
            self._message_label.setStyleSheet("")
        ))

    def closeEvent(self, event):
        """Handle window close."""
        self._session.shutdown()
        event.accept()
