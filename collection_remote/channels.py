"""
Command channels for Collection Remote.

Two interchangeable ways of delivering a Command over the rosbridge
transport:

- ServiceCommandChannel: rosbridge service calls that answer with
  ``{success, message}`` (SetBool for start/stop, Trigger for delete).
- TopicCommandChannel: one-way ``std_msgs/String`` publishes of
  ``"start" | "stop" | "delete"`` with no confirmation.

The state machine only sees ``send()``; the mode is picked once by
``create_channel()``.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

import roslibpy
from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from collection_remote.config import Command, DeliveryMode, RemoteConfig

logger = logging.getLogger(__name__)


@dataclass
class CommandOutcome:
    """Result of a request/response command."""
    success: bool
    message: str = ""


OutcomeCallback = Callable[[CommandOutcome], None]


class CommandChannel(QObject):
    """Base class for command delivery over a RosbridgeTransport."""

    delivery_mode: DeliveryMode = None

    def __init__(self, transport, parent=None):
        super().__init__(parent)
        self._transport = transport

    @property
    def transport(self):
        return self._transport

    def send(self, command: Command, on_outcome: Optional[OutcomeCallback] = None) -> bool:
        """
        Hand a command to the transport.

        Args:
            command: Command to deliver.
            on_outcome: Called with a CommandOutcome once the remote answers.
                Only request/response channels ever call it.

        Returns:
            True if the command was dispatched, False if it was dropped
            because no connection is established.
        """
        raise NotImplementedError

    def close(self):
        """Release remote handles. A closed channel never calls back."""

    def _ready_ros(self, command: Command):
        """Return the live ros handle, or None (and log) when not connected."""
        if not self._transport.is_connected:
            logger.warning("Dropping '%s': not connected to rosbridge", command.value)
            return None
        return self._transport.ros


class ServiceCommandChannel(CommandChannel):
    """Request/response delivery through rosbridge service calls."""

    delivery_mode = DeliveryMode.REQUEST_RESPONSE

    # (request id, CommandOutcome) from the reactor thread
    _outcome_received = pyqtSignal(int, object)

    def __init__(self, transport,
                 toggle_service: str = "/collection_toggle",
                 toggle_service_type: str = "std_srvs/srv/SetBool",
                 delete_service: str = "/collection_delete",
                 delete_service_type: str = "std_srvs/srv/Trigger",
                 request_timeout_sec: float = 5.0,
                 service_factory: Optional[Callable] = None,
                 parent=None):
        super().__init__(transport, parent)
        self._toggle_name = toggle_service
        self._toggle_type = toggle_service_type
        self._delete_name = delete_service
        self._delete_type = delete_service_type
        self._request_timeout_sec = request_timeout_sec
        self._service_factory = service_factory if service_factory is not None else roslibpy.Service

        # Service handles are bound to one ros handle
        self._services_ros = None
        self._toggle_client = None
        self._delete_client = None

        self._next_request_id = 0
        self._pending: Dict[int, Tuple[Command, Optional[OutcomeCallback], Optional[QTimer]]] = {}

        self._outcome_received.connect(self._resolve)

    @property
    def pending_count(self) -> int:
        """Number of calls still waiting for an answer."""
        return len(self._pending)

    def send(self, command: Command, on_outcome: Optional[OutcomeCallback] = None) -> bool:
        ros = self._ready_ros(command)
        if ros is None:
            return False

        service, request = self._encode(command, ros)

        request_id = self._next_request_id
        self._next_request_id += 1

        timer = None
        if self._request_timeout_sec > 0:
            timer = QTimer(self)
            timer.setSingleShot(True)
            timer.timeout.connect(lambda: self._on_timeout(request_id))
            timer.start(int(self._request_timeout_sec * 1000))

        # Registered before the call so a synchronous answer still finds it
        self._pending[request_id] = (command, on_outcome, timer)
        logger.debug("Calling %s for '%s' (request %d)", service.name, command.value, request_id)

        service.call(
            request,
            callback=lambda result: self._outcome_received.emit(
                request_id, _outcome_from_response(result)),
            errback=lambda error: self._outcome_received.emit(
                request_id, CommandOutcome(False, str(error))),
        )
        return True

    def close(self):
        for _command, _callback, timer in self._pending.values():
            if timer is not None:
                timer.stop()
                timer.deleteLater()
        if self._pending:
            logger.info("Discarding %d unanswered command(s)", len(self._pending))
        self._pending.clear()
        self._services_ros = None
        self._toggle_client = None
        self._delete_client = None

    def _encode(self, command: Command, ros):
        """Map a command to (service client, request)."""
        if self._services_ros is not ros:
            self._toggle_client = self._service_factory(ros, self._toggle_name, self._toggle_type)
            self._delete_client = self._service_factory(ros, self._delete_name, self._delete_type)
            self._services_ros = ros

        if command is Command.DELETE:
            return self._delete_client, roslibpy.ServiceRequest({})
        return self._toggle_client, roslibpy.ServiceRequest({'data': command is Command.START})

    def _on_timeout(self, request_id: int):
        entry = self._pending.get(request_id)
        if entry is None:
            return
        command = entry[0]
        self._resolve(request_id, CommandOutcome(
            False,
            f"Timed out waiting for '{command.value}' response "
            f"after {self._request_timeout_sec:.1f}s"))

    def _resolve(self, request_id: int, outcome: CommandOutcome):
        """Deliver an outcome once; later answers for the same request are dropped."""
        entry = self._pending.pop(request_id, None)
        if entry is None:
            logger.debug("Dropping late answer for request %d", request_id)
            return

        command, on_outcome, timer = entry
        if timer is not None:
            timer.stop()
            timer.deleteLater()

        if outcome.success:
            logger.info("'%s' succeeded: %s", command.value, outcome.message)
        else:
            logger.error("'%s' failed: %s", command.value, outcome.message)

        if on_outcome is not None:
            on_outcome(outcome)


class TopicCommandChannel(CommandChannel):
    """Fire-and-forget delivery through a std_msgs/String topic."""

    delivery_mode = DeliveryMode.FIRE_AND_FORGET

    def __init__(self, transport,
                 command_topic: str = "/collection_command",
                 command_topic_type: str = "std_msgs/String",
                 topic_factory: Optional[Callable] = None,
                 parent=None):
        super().__init__(transport, parent)
        self._topic_name = command_topic
        self._topic_type = command_topic_type
        self._topic_factory = topic_factory if topic_factory is not None else roslibpy.Topic
        self._topic_ros = None
        self._topic = None

    def send(self, command: Command, on_outcome: Optional[OutcomeCallback] = None) -> bool:
        ros = self._ready_ros(command)
        if ros is None:
            return False

        if self._topic_ros is not ros:
            self._topic = self._topic_factory(ros, self._topic_name, self._topic_type)
            self._topic_ros = ros

        self._topic.publish(roslibpy.Message({'data': command.value}))
        logger.info("Published '%s' on %s", command.value, self._topic_name)
        return True

    def close(self):
        if self._topic is not None and self._transport.is_connected:
            self._topic.unadvertise()
        self._topic = None
        self._topic_ros = None


def create_channel(transport, remote_config: RemoteConfig,
                   service_factory: Optional[Callable] = None,
                   topic_factory: Optional[Callable] = None,
                   parent=None) -> CommandChannel:
    """Build the channel for the configured delivery mode."""
    if remote_config.delivery_mode is DeliveryMode.FIRE_AND_FORGET:
        return TopicCommandChannel(
            transport,
            command_topic=remote_config.command_topic,
            command_topic_type=remote_config.command_topic_type,
            topic_factory=topic_factory,
            parent=parent,
        )
    return ServiceCommandChannel(
        transport,
        toggle_service=remote_config.toggle_service,
        toggle_service_type=remote_config.toggle_service_type,
        delete_service=remote_config.delete_service,
        delete_service_type=remote_config.delete_service_type,
        request_timeout_sec=remote_config.request_timeout_sec,
        service_factory=service_factory,
        parent=parent,
    )


def _outcome_from_response(result) -> CommandOutcome:
    """Convert a SetBool/Trigger response into a CommandOutcome."""
    return CommandOutcome(
        success=bool(result.get('success', False)),
        message=str(result.get('message', '')),
    )
