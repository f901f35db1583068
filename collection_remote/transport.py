"""
rosbridge transport for Collection Remote.

Owns the single websocket connection to the robot's rosbridge server and
exposes its status. roslibpy runs its own reactor thread; every lifecycle
callback is re-emitted through a Qt signal so status changes are applied on
the thread that owns the transport.
"""

import logging
import threading
from typing import Callable, Optional

import roslibpy
from PyQt6.QtCore import QObject, pyqtSignal
from twisted.internet import reactor as twisted_reactor

from collection_remote.config import ConnectionConfig, ConnectionStatus

logger = logging.getLogger(__name__)


class RosbridgeTransport(QObject):
    """
    One persistent rosbridge connection for one ConnectionConfig.

    The config is fixed for the lifetime of the transport. To talk to a
    different endpoint, close this transport and build a new one.

    Signals:
        status_changed: Emitted with the new ConnectionStatus on every
            connection lifecycle event (opened, failed, closed), in order.
    """

    status_changed = pyqtSignal(object)

    # (ros handle, event name, detail) from the reactor thread
    _lifecycle_event = pyqtSignal(object, str, str)

    def __init__(self, config: ConnectionConfig, connect_timeout_sec: float = 10.0,
                 ros_factory: Optional[Callable] = None, run_in_thread: bool = True,
                 reactor=None, parent=None):
        super().__init__(parent)
        self._config = config
        self._connect_timeout_sec = connect_timeout_sec
        self._ros_factory = ros_factory if ros_factory is not None else roslibpy.Ros
        self._run_in_thread = run_in_thread
        # Twisted calls must be made on the reactor thread
        self._reactor = reactor if reactor is not None else twisted_reactor
        self._ros = None
        self._connect_thread: Optional[threading.Thread] = None
        self._status = ConnectionStatus.DISCONNECTED

        self._lifecycle_event.connect(self._on_lifecycle_event)

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    @property
    def status(self) -> ConnectionStatus:
        """Current observed connection status."""
        return self._status

    @property
    def is_connected(self) -> bool:
        return self._ros is not None and self._status == ConnectionStatus.CONNECTED

    @property
    def ros(self):
        """The live roslibpy handle, or None when not connected."""
        return self._ros

    def on_status_change(self, handler: Callable[[ConnectionStatus], None]):
        """Register a listener for every status transition."""
        self.status_changed.connect(handler)

    def connect(self):
        """Open the connection. Must not be called while a connection is open."""
        if self._ros is not None:
            logger.warning("connect() called on an open transport to %s; ignoring",
                           self._config.url)
            return

        logger.info("Connecting to rosbridge at %s", self._config.url)
        try:
            ros = self._ros_factory(host=self._config.host, port=self._config.port_number)
        except Exception as e:
            logger.warning("Cannot connect to rosbridge at %s: %s", self._config.url, e)
            self._set_status(ConnectionStatus.ERRORED)
            return
        self._ros = ros

        ros.on_ready(lambda *_: self._lifecycle_event.emit(ros, 'opened', ''))
        ros.on('close', lambda *_: self._lifecycle_event.emit(ros, 'closed', ''))
        ros.on('error', lambda *args: self._lifecycle_event.emit(
            ros, 'failed', _describe_error(args)))

        if self._run_in_thread:
            # ros.run() blocks until the handshake completes or times out
            self._connect_thread = threading.Thread(
                target=self._run, args=(ros,), name='rosbridge-connect', daemon=True)
            self._connect_thread.start()
        else:
            self._run(ros)

    def close(self):
        """Tear the connection down. Later events from it are ignored."""
        ros = self._ros
        if ros is None:
            return

        self._ros = None
        self._stop_reconnecting(ros)
        if ros.is_connected:
            try:
                ros.close()
            except Exception as e:
                logger.warning("Error closing rosbridge connection to %s: %s",
                               self._config.url, e)
        logger.info("Closed rosbridge connection to %s", self._config.url)

        if self._status != ConnectionStatus.DISCONNECTED:
            self._set_status(ConnectionStatus.DISCONNECTED)

    def _run(self, ros):
        """Start the roslibpy event loop and wait for the handshake."""
        try:
            ros.run(timeout=self._connect_timeout_sec)
        except Exception as e:
            self._lifecycle_event.emit(ros, 'failed', str(e) or type(e).__name__)

    def _on_lifecycle_event(self, ros, event: str, detail: str):
        """Apply a lifecycle event on the owning thread."""
        if ros is not self._ros:
            logger.debug("Ignoring '%s' from a discarded connection", event)
            return

        if event == 'opened':
            logger.info("Connected to rosbridge at %s", self._config.url)
            self._set_status(ConnectionStatus.CONNECTED)
        elif event == 'failed':
            logger.warning("Error connecting to rosbridge at %s: %s", self._config.url, detail)
            self._stop_reconnecting(ros)
            self._set_status(ConnectionStatus.ERRORED)
        elif event == 'closed':
            logger.info("Connection to rosbridge at %s closed", self._config.url)
            self._stop_reconnecting(ros)
            self._set_status(ConnectionStatus.DISCONNECTED)

    def _set_status(self, status: ConnectionStatus):
        self._status = status
        self.status_changed.emit(status)

    def _stop_reconnecting(self, ros):
        """Stop roslibpy's reconnecting client factory from retrying on its own."""
        factory = getattr(ros, 'factory', None)
        if factory is not None and hasattr(factory, 'stopTrying'):
            self._reactor.callFromThread(factory.stopTrying)


def _describe_error(args) -> str:
    if not args:
        return "unknown error"
    return " ".join(str(a) for a in args)
