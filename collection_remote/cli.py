#!/usr/bin/env python3
"""
Headless command-line client for Collection Remote.

Connects to rosbridge, sends a single command and exits. Uses
QCoreApplication (no display server required).

Usage:
    collection_remote_cli [--host HOST] [--port PORT] [--mode MODE] start|stop|delete|status

The one-shot client talks to the command channel directly: it has no local
session state to guard against, so the remote node is the judge.

Exit status is 0 when the command was acknowledged (or published, in
fire-and-forget mode) and 1 on failure, connection error or timeout.
"""

import argparse
import logging
import signal
import sys
from pathlib import Path

import yaml

COMMANDS = ("start", "stop", "delete", "status")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Send one command to the robot's data-collection node over rosbridge.",
    )
    parser.add_argument("command", choices=COMMANDS, help="Command to send")
    parser.add_argument("--host", default=None, help="rosbridge host (default: localhost)")
    parser.add_argument("--port", default=None, help="rosbridge port (default: 9091)")
    parser.add_argument(
        "--mode",
        choices=["request_response", "fire_and_forget"],
        default=None,
        help="Delivery mode (default: from config file, else request_response)",
    )
    parser.add_argument("--config", type=Path, default=None,
                        help="Remote endpoint YAML (default: ~/.config/collection_remote/remote.yaml)")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Seconds to wait for a service response")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def load_remote_config(args):
    """Resolve the RemoteConfig from the YAML file and command-line overrides."""
    from collection_remote.config import DeliveryMode, RemoteConfig

    config = RemoteConfig.load_or_default(args.config or RemoteConfig.default_config_path())
    if args.mode is not None:
        config.delivery_mode = DeliveryMode(args.mode)
    if args.timeout is not None:
        if args.timeout < 0:
            raise ValueError("--timeout must be >= 0")
        config.request_timeout_sec = args.timeout
    return config


def main(argv=None):
    """Main entry point for the headless client."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger('autobahn').setLevel(logging.WARNING)
    logging.getLogger('twisted').setLevel(logging.WARNING)

    try:
        from PyQt6.QtCore import QCoreApplication, QTimer
    except ImportError:
        print("Error: PyQt6 is required but not installed.", file=sys.stderr)
        print("Install it with: pip install PyQt6", file=sys.stderr)
        sys.exit(1)

    from collection_remote.channels import create_channel
    from collection_remote.config import (
        HOST_KEY, PORT_KEY, Command, ConnectionConfig, ConnectionStatus, DeliveryMode
    )
    from collection_remote.settings import MemorySettingsStore
    from collection_remote.transport import RosbridgeTransport

    try:
        remote_config = load_remote_config(args)
    except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
        print(f"[remote] ERROR: invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    store = MemorySettingsStore()
    if args.host:
        store.set(HOST_KEY, args.host)
    if args.port:
        store.set(PORT_KEY, args.port)
    connection_config = ConnectionConfig.from_settings(store)

    try:
        connection_config.port_number
    except ValueError:
        print(f"[remote] ERROR: invalid port '{connection_config.port}'", file=sys.stderr)
        sys.exit(1)

    app = QCoreApplication(sys.argv[:1])
    app.setApplicationName("Collection Remote CLI")

    transport = RosbridgeTransport(
        connection_config, connect_timeout_sec=remote_config.connect_timeout_sec)
    channel = create_channel(transport, remote_config)

    exit_code = 1
    command_sent = False
    finished = False

    def finish(code: int):
        nonlocal exit_code, finished
        if finished:
            return
        finished = True
        exit_code = code
        channel.close()
        transport.close()
        app.quit()

    def on_outcome(outcome):
        if outcome.success:
            print(f"[remote] {args.command}: ok {outcome.message}".rstrip())
            finish(0)
        else:
            print(f"[remote] {args.command} failed: {outcome.message}", file=sys.stderr)
            finish(1)

    def send_command():
        nonlocal command_sent
        if command_sent:
            return
        command_sent = True

        if args.command == "status":
            print(f"[remote] Connected to {connection_config.url}")
            finish(0)
            return

        command = Command(args.command)
        if not channel.send(command, on_outcome):
            print("[remote] ERROR: connection lost before sending", file=sys.stderr)
            finish(1)
            return

        if channel.delivery_mode is DeliveryMode.FIRE_AND_FORGET:
            print(f"[remote] {args.command}: published")
            # Give the reactor a moment to flush the publish
            QTimer.singleShot(500, lambda: finish(0))

    def on_status_changed(status):
        if finished:
            return
        if status is ConnectionStatus.CONNECTED:
            QTimer.singleShot(0, send_command)
        elif status is ConnectionStatus.ERRORED:
            print(f"[remote] ERROR: could not connect to {connection_config.url}", file=sys.stderr)
            finish(1)
        elif not command_sent:
            print(f"[remote] ERROR: connection to {connection_config.url} closed", file=sys.stderr)
            finish(1)

    transport.on_status_change(on_status_changed)

    # Ctrl+C quits without sending anything further
    def sigint_handler(signum, frame):
        QTimer.singleShot(0, lambda: finish(130))

    signal.signal(signal.SIGINT, sigint_handler)

    # Qt needs a timer to process Python signals (SIGINT won't interrupt C++ event loop)
    signal_timer = QTimer()
    signal_timer.timeout.connect(lambda: None)
    signal_timer.start(200)

    # Overall deadline in case neither an answer nor a channel timeout arrives
    deadline_sec = remote_config.connect_timeout_sec + remote_config.request_timeout_sec + 2.0
    QTimer.singleShot(int(deadline_sec * 1000), lambda: (
        print("[remote] ERROR: timed out", file=sys.stderr),
        finish(1),
    ))

    print(f"[remote] Connecting to {connection_config.url} ...")
    transport.connect()

    app.exec()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
