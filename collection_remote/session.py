"""
Recording session for Collection Remote.

RecordingSession owns the transport, the command channel and the state
machine, and is the only object the user interfaces talk to. Changing the
endpoint goes through ``reconfigure()``, which swaps the transport in place
and keeps the recording state.
"""

import logging
from typing import Callable, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from collection_remote.channels import create_channel
from collection_remote.config import (
    ConnectionConfig, ConnectionStatus, DeliveryMode, RecordingState, RemoteConfig
)
from collection_remote.state_machine import RecordingStateMachine
from collection_remote.transport import RosbridgeTransport

logger = logging.getLogger(__name__)


class RecordingSession(QObject):
    """
    One remote recording session over one rosbridge connection at a time.

    Signals:
        state_changed: RecordingState after every transition.
        connection_status_changed: ConnectionStatus of the current transport.
        error_occurred: Operator-facing error message.
        delete_completed: Remote data was deleted.
        delete_failed: A delete was refused or failed, with its message.
    """

    state_changed = pyqtSignal(object)
    connection_status_changed = pyqtSignal(object)
    error_occurred = pyqtSignal(str)
    delete_completed = pyqtSignal()
    delete_failed = pyqtSignal(str)

    def __init__(self, connection_config: Optional[ConnectionConfig] = None,
                 remote_config: Optional[RemoteConfig] = None,
                 transport_factory: Optional[Callable] = None,
                 channel_factory: Optional[Callable] = None,
                 parent=None):
        super().__init__(parent)
        self._connection_config = connection_config or ConnectionConfig()
        self._remote_config = remote_config or RemoteConfig()
        self._transport_factory = transport_factory or self._default_transport
        self._channel_factory = channel_factory or create_channel

        self._transport = self._build_transport(self._connection_config)
        self._channel = self._channel_factory(self._transport, self._remote_config, parent=self)

        self._machine = RecordingStateMachine(
            self._channel,
            allow_delete_while_recording=self._remote_config.allow_delete_while_recording,
            parent=self,
        )
        self._machine.state_changed.connect(self.state_changed)
        self._machine.error_occurred.connect(self.error_occurred)
        self._machine.delete_completed.connect(self.delete_completed)
        self._machine.delete_failed.connect(self.delete_failed)

        self._shut_down = False

    # -- Properties ----------------------------------------------------------

    @property
    def state(self) -> RecordingState:
        return self._machine.state

    @property
    def connection_status(self) -> ConnectionStatus:
        return self._transport.status

    @property
    def connection_config(self) -> ConnectionConfig:
        return self._connection_config

    @property
    def remote_config(self) -> RemoteConfig:
        return self._remote_config

    @property
    def delivery_mode(self) -> DeliveryMode:
        return self._machine.delivery_mode

    @property
    def state_machine(self) -> RecordingStateMachine:
        return self._machine

    @property
    def transport(self):
        return self._transport

    # -- Public methods ------------------------------------------------------

    def connect(self):
        """Open the current transport."""
        self._transport.connect()

    def start(self):
        self._machine.start()

    def stop(self):
        self._machine.stop()

    def delete(self):
        self._machine.delete()

    def reconfigure(self, config: ConnectionConfig):
        """
        Reconnect to a new endpoint.

        The old transport and channel are fully discarded before the new
        ones are built; answers still in flight on the old connection are
        dropped. The recording state is preserved.
        """
        if self._shut_down:
            logger.warning("reconfigure() called after shutdown; ignoring")
            return
        logger.info("Reconfiguring connection: %s -> %s",
                    self._connection_config.url, config.url)
        self._teardown()

        self._connection_config = config
        self._transport = self._build_transport(config)
        self._channel = self._channel_factory(self._transport, self._remote_config, parent=self)
        self._machine.attach_channel(self._channel)

        self.connection_status_changed.emit(self._transport.status)
        self._transport.connect()

    def shutdown(self):
        """Close the connection for good. Safe to call more than once."""
        if self._shut_down:
            return
        self._shut_down = True
        self._teardown()

    # -- Internal methods ----------------------------------------------------

    def _default_transport(self, config: ConnectionConfig):
        return RosbridgeTransport(
            config, connect_timeout_sec=self._remote_config.connect_timeout_sec, parent=self)

    def _build_transport(self, config: ConnectionConfig):
        transport = self._transport_factory(config)
        transport.status_changed.connect(self.connection_status_changed)
        return transport

    def _teardown(self):
        transport = self._transport
        channel = self._channel
        transport.status_changed.disconnect(self.connection_status_changed)
        channel.close()
        transport.close()
        # Released to Python ownership; late reactor callbacks may still hold them
        channel.setParent(None)
        transport.setParent(None)
