"""
Recording state machine for Collection Remote.

Two states, IDLE and RECORDING. ``start`` and ``stop`` are guarded so a
duplicate request (double click, stale render) never reaches the remote
node, which has no idempotency of its own. ``delete`` is a side action that
never changes the state.

With request/response delivery the state only changes once the remote node
confirms; with fire-and-forget delivery it changes immediately and the
publish follows.
"""

import logging
from typing import Optional

from PyQt6.QtCore import QObject, pyqtSignal

from collection_remote.channels import CommandChannel, CommandOutcome
from collection_remote.config import Command, DeliveryMode, RecordingState

logger = logging.getLogger(__name__)


class RecordingStateMachine(QObject):
    """
    Guarded model of the remote recording session.

    Signals:
        state_changed: Emitted with the new RecordingState on every transition.
        error_occurred: Emitted with a message when a command fails or cannot
            be sent. Guarded no-ops never emit.
        delete_completed: Emitted when a delete succeeded (or, for
            fire-and-forget delivery, was published).
        delete_failed: Emitted with the message of a delete that was refused,
            could not be sent or failed remotely. error_occurred fires too.
        command_dispatched: Emitted with each Command handed to the channel.
    """

    state_changed = pyqtSignal(object)
    error_occurred = pyqtSignal(str)
    delete_completed = pyqtSignal()
    delete_failed = pyqtSignal(str)
    command_dispatched = pyqtSignal(object)

    def __init__(self, channel: CommandChannel, allow_delete_while_recording: bool = True,
                 parent=None):
        super().__init__(parent)
        self._channel = channel
        self._allow_delete_while_recording = allow_delete_while_recording
        self._state = RecordingState.IDLE

        # start/stop awaiting confirmation (request/response only)
        self._pending_command: Optional[Command] = None
        # Bumped when the channel is swapped so old outcomes are ignored
        self._generation = 0

    # -- Properties ----------------------------------------------------------

    @property
    def state(self) -> RecordingState:
        """Current recording state."""
        return self._state

    def current_state(self) -> RecordingState:
        return self._state

    @property
    def delivery_mode(self) -> DeliveryMode:
        return self._channel.delivery_mode

    @property
    def channel(self) -> CommandChannel:
        return self._channel

    @property
    def is_awaiting_response(self) -> bool:
        """True while a start/stop is waiting for the remote node's answer."""
        return self._pending_command is not None

    @property
    def allow_delete_while_recording(self) -> bool:
        return self._allow_delete_while_recording

    # -- Public methods ------------------------------------------------------

    def start(self):
        """Begin recording on the remote node."""
        self._transition(Command.START, RecordingState.RECORDING)

    def stop(self):
        """End recording on the remote node."""
        self._transition(Command.STOP, RecordingState.IDLE)

    def delete(self):
        """Delete the recorded data on the remote node. Never changes state."""
        if self._state is RecordingState.RECORDING and not self._allow_delete_while_recording:
            self._report_delete_failure("Delete is disabled while recording")
            return

        if self.delivery_mode is DeliveryMode.FIRE_AND_FORGET:
            if self._channel.send(Command.DELETE):
                self.command_dispatched.emit(Command.DELETE)
            self.delete_completed.emit()
            return

        generation = self._generation
        dispatched = self._channel.send(
            Command.DELETE, lambda outcome: self._on_delete_outcome(generation, outcome))
        if not dispatched:
            self._report_delete_failure("Cannot delete: not connected to bridge")
            return
        self.command_dispatched.emit(Command.DELETE)

    def attach_channel(self, channel: CommandChannel):
        """Use a new channel (after a reconnect). The state is kept."""
        if self._pending_command is not None:
            logger.info("Forgetting unanswered '%s' from the previous connection",
                        self._pending_command.value)
        self._channel = channel
        self._pending_command = None
        self._generation += 1

    # -- Internal methods ----------------------------------------------------

    def _transition(self, command: Command, target: RecordingState):
        # Guard: already in the requested state
        if self._state is target:
            logger.debug("Ignoring '%s': already %s", command.value, target.value)
            return

        # Guard: a start/stop is still waiting for its answer
        if self._pending_command is not None:
            logger.debug("Ignoring '%s': '%s' is awaiting a response",
                         command.value, self._pending_command.value)
            return

        if self.delivery_mode is DeliveryMode.FIRE_AND_FORGET:
            # Optimistic: no confirmation will ever arrive
            self._set_state(target)
            if self._channel.send(command):
                self.command_dispatched.emit(command)
            return

        generation = self._generation
        self._pending_command = command
        dispatched = self._channel.send(
            command,
            lambda outcome: self._on_transition_outcome(generation, command, target, outcome))
        if not dispatched:
            self._pending_command = None
            self.error_occurred.emit(f"Cannot {command.value}: not connected to bridge")
            return
        self.command_dispatched.emit(command)

    def _on_transition_outcome(self, generation: int, command: Command,
                               target: RecordingState, outcome: CommandOutcome):
        if generation != self._generation:
            logger.debug("Ignoring '%s' outcome from a discarded channel", command.value)
            return

        self._pending_command = None
        if outcome.success:
            self._set_state(target)
        else:
            self.error_occurred.emit(f"{command.value.capitalize()} failed: {outcome.message}")

    def _on_delete_outcome(self, generation: int, outcome: CommandOutcome):
        if generation != self._generation:
            logger.debug("Ignoring delete outcome from a discarded channel")
            return

        if outcome.success:
            self.delete_completed.emit()
        else:
            self._report_delete_failure(f"Delete failed: {outcome.message}")

    def _report_delete_failure(self, message: str):
        self.error_occurred.emit(message)
        self.delete_failed.emit(message)

    def _set_state(self, state: RecordingState):
        if state is self._state:
            return
        logger.info("Recording state: %s -> %s", self._state.value, state.value)
        self._state = state
        self.state_changed.emit(state)
