"""
Collection Remote - remote control for a robot's data-collection session.

This package provides:
- A rosbridge websocket transport with observable connection status
- Start/stop/delete commands over service calls or topic publishes
- A guarded two-state recording session model
- A PyQt6 desktop remote and a headless command-line client
"""

__version__ = "1.0.0"
