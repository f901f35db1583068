"""
Configuration module for Collection Remote.

Defines the connection and remote-endpoint dataclasses with YAML support,
plus the enums shared by the transport, channels and state machine.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import yaml

# Settings keys, shared with the browser remote
HOST_KEY = 'ros_ip'
PORT_KEY = 'ros_port'

DEFAULT_HOST = 'localhost'
DEFAULT_PORT = '9091'


class ConnectionStatus(Enum):
    """Connectivity of the rosbridge transport."""
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    ERRORED = "errored"


class RecordingState(Enum):
    """States of the remote recording session."""
    IDLE = "idle"
    RECORDING = "recording"


class Command(Enum):
    """Commands understood by the remote collection node."""
    START = "start"
    STOP = "stop"
    DELETE = "delete"


class DeliveryMode(Enum):
    """How commands reach the remote node."""
    REQUEST_RESPONSE = "request_response"  # service call, awaits success/message
    FIRE_AND_FORGET = "fire_and_forget"    # topic publish, assumed delivered


@dataclass(frozen=True)
class ConnectionConfig:
    """Resolved rosbridge endpoint."""
    host: str = DEFAULT_HOST
    port: str = DEFAULT_PORT

    @property
    def url(self) -> str:
        return f"ws://{self.host}:{self.port}"

    @property
    def port_number(self) -> int:
        """Port as an int, for the websocket client."""
        return int(self.port)

    @classmethod
    def from_settings(cls, store) -> 'ConnectionConfig':
        """Resolve config from a settings store. Missing or blank keys use defaults."""
        host = (store.get(HOST_KEY) or '').strip() or DEFAULT_HOST
        port = (store.get(PORT_KEY) or '').strip() or DEFAULT_PORT
        return cls(host=host, port=port)

    def save(self, store) -> None:
        """
        Persist host/port to a settings store.

        Values are trimmed and blank values are skipped, so an empty field
        keeps whatever was stored before.
        """
        host = self.host.strip()
        port = self.port.strip()
        if host:
            store.set(HOST_KEY, host)
        if port:
            store.set(PORT_KEY, port)


@dataclass
class RemoteConfig:
    """Remote endpoint configuration, fixed when the session is built."""
    delivery_mode: DeliveryMode = DeliveryMode.REQUEST_RESPONSE
    toggle_service: str = "/collection_toggle"
    toggle_service_type: str = "std_srvs/srv/SetBool"
    delete_service: str = "/collection_delete"
    delete_service_type: str = "std_srvs/srv/Trigger"
    command_topic: str = "/collection_command"
    command_topic_type: str = "std_msgs/String"
    request_timeout_sec: float = 5.0  # 0 disables the timeout
    connect_timeout_sec: float = 10.0
    allow_delete_while_recording: bool = True

    def __post_init__(self):
        # Accept the YAML string form of the delivery mode
        if not isinstance(self.delivery_mode, DeliveryMode):
            try:
                self.delivery_mode = DeliveryMode(self.delivery_mode)
            except ValueError:
                modes = ", ".join(m.value for m in DeliveryMode)
                raise ValueError(
                    f"Unknown delivery_mode '{self.delivery_mode}' (expected one of: {modes})")
        if self.request_timeout_sec < 0:
            raise ValueError("request_timeout_sec must be >= 0")
        if self.connect_timeout_sec <= 0:
            raise ValueError("connect_timeout_sec must be > 0")

    def to_dict(self) -> dict:
        return {
            'delivery_mode': self.delivery_mode.value,
            'toggle_service': self.toggle_service,
            'toggle_service_type': self.toggle_service_type,
            'delete_service': self.delete_service,
            'delete_service_type': self.delete_service_type,
            'command_topic': self.command_topic,
            'command_topic_type': self.command_topic_type,
            'request_timeout_sec': self.request_timeout_sec,
            'connect_timeout_sec': self.connect_timeout_sec,
            'allow_delete_while_recording': self.allow_delete_while_recording,
        }

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def save(self, path: Path):
        """Save config to YAML file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            f.write(self.to_yaml())

    @classmethod
    def from_yaml(cls, yaml_str: str) -> 'RemoteConfig':
        """Load config from YAML string. An empty document gives the defaults."""
        data = yaml.safe_load(yaml_str) or {}
        return cls(**data)

    @classmethod
    def load(cls, path: Path) -> 'RemoteConfig':
        """Load config from YAML file."""
        with open(path, 'r') as f:
            return cls.from_yaml(f.read())

    @classmethod
    def load_or_default(cls, path: Path) -> 'RemoteConfig':
        """Load config from path if it exists, otherwise return defaults."""
        if path.exists():
            return cls.load(path)
        return cls()

    @classmethod
    def default_config_path(cls) -> Path:
        """Get default config path."""
        return Path.home() / '.config' / 'collection_remote' / 'remote.yaml'
