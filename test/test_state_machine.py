import pytest
from PyQt6.QtTest import QTest

from collection_remote.channels import ServiceCommandChannel, TopicCommandChannel
from collection_remote.config import Command, RecordingState
from collection_remote.state_machine import RecordingStateMachine

IDLE = RecordingState.IDLE
RECORDING = RecordingState.RECORDING


class Recorder:
    """Collects everything the state machine emits."""

    def __init__(self, machine):
        self.states = []
        self.errors = []
        self.deletes = 0
        self.dispatched = []
        machine.state_changed.connect(self.states.append)
        machine.error_occurred.connect(self.errors.append)
        machine.delete_completed.connect(self._on_delete)
        machine.command_dispatched.connect(self.dispatched.append)

    def _on_delete(self):
        self.deletes += 1


@pytest.fixture
def rr_machine(connected_transport, service_factory):
    channel = ServiceCommandChannel(connected_transport, request_timeout_sec=0,
                                    service_factory=service_factory)
    return RecordingStateMachine(channel)


@pytest.fixture
def ff_machine(connected_transport, topic_factory):
    return RecordingStateMachine(TopicCommandChannel(connected_transport,
                                                     topic_factory=topic_factory))


def _answer_last(service_factory, success=True, message="ok"):
    service_factory.all_calls[-1].respond(success, message)


# -- request/response --------------------------------------------------------

def test_initial_state_is_idle(rr_machine):
    assert rr_machine.state is IDLE
    assert rr_machine.current_state() is IDLE


def test_start_waits_for_confirmation(rr_machine, service_factory):
    events = Recorder(rr_machine)

    rr_machine.start()
    assert rr_machine.state is IDLE
    assert rr_machine.is_awaiting_response

    _answer_last(service_factory, True, "ok")
    assert rr_machine.state is RECORDING
    assert events.states == [RECORDING]
    assert not rr_machine.is_awaiting_response


def test_failed_start_keeps_idle_and_reports_once(rr_machine, service_factory):
    events = Recorder(rr_machine)

    rr_machine.start()
    _answer_last(service_factory, False, "disk full")

    assert rr_machine.state is IDLE
    assert events.states == []
    assert events.errors == ["Start failed: disk full"]


def test_request_response_scenario(rr_machine, service_factory):
    events = Recorder(rr_machine)

    rr_machine.start()
    _answer_last(service_factory, True, "ok")
    assert rr_machine.state is RECORDING

    rr_machine.start()
    assert len(service_factory.all_calls) == 1
    assert rr_machine.state is RECORDING

    rr_machine.stop()
    _answer_last(service_factory, True, "ok")
    assert rr_machine.state is IDLE

    assert events.dispatched == [Command.START, Command.STOP]
    assert [c.request for c in service_factory.all_calls] == [{'data': True}, {'data': False}]


def test_double_start_before_answer_dispatches_once(rr_machine, service_factory):
    rr_machine.start()
    rr_machine.start()

    assert len(service_factory.all_calls) == 1


def test_stop_while_idle_is_silent(rr_machine, service_factory):
    events = Recorder(rr_machine)

    rr_machine.stop()

    assert service_factory.all_calls == []
    assert events.errors == []
    assert events.states == []


def test_start_without_connection_reports_error(transport, service_factory):
    channel = ServiceCommandChannel(transport, request_timeout_sec=0,
                                    service_factory=service_factory)
    machine = RecordingStateMachine(channel)
    events = Recorder(machine)

    machine.start()

    assert machine.state is IDLE
    assert not machine.is_awaiting_response
    assert events.errors == ["Cannot start: not connected to bridge"]


@pytest.mark.parametrize("success", [True, False])
def test_delete_never_changes_state(rr_machine, service_factory, success):
    rr_machine.start()
    _answer_last(service_factory)
    events = Recorder(rr_machine)

    rr_machine.delete()
    _answer_last(service_factory, success, "gone" if success else "busy")

    assert rr_machine.state is RECORDING
    assert events.states == []
    assert service_factory.all_calls[-1].request == {}
    if success:
        assert events.deletes == 1
        assert events.errors == []
    else:
        assert events.deletes == 0
        assert events.errors == ["Delete failed: busy"]


def test_delete_refused_while_recording_when_disabled(connected_transport, service_factory):
    channel = ServiceCommandChannel(connected_transport, request_timeout_sec=0,
                                    service_factory=service_factory)
    machine = RecordingStateMachine(channel, allow_delete_while_recording=False)
    events = Recorder(machine)

    machine.start()
    _answer_last(service_factory)
    machine.delete()

    assert len(service_factory.all_calls) == 1
    assert events.errors == ["Delete is disabled while recording"]

    machine.stop()
    _answer_last(service_factory)
    machine.delete()
    _answer_last(service_factory)
    assert events.deletes == 1


def test_outcome_from_detached_channel_is_ignored(rr_machine, service_factory,
                                                   connected_transport):
    rr_machine.start()
    stale_call = service_factory.all_calls[-1]

    rr_machine.attach_channel(ServiceCommandChannel(
        connected_transport, request_timeout_sec=0, service_factory=service_factory))
    stale_call.respond(True, "ok")

    assert rr_machine.state is IDLE
    assert not rr_machine.is_awaiting_response


@pytest.mark.parametrize("calls, expected", [
    (["start"], RECORDING),
    (["start", "stop"], IDLE),
    (["start", "start", "stop", "stop", "start"], RECORDING),
    (["stop", "start", "stop"], IDLE),
])
def test_state_follows_last_successful_transition(rr_machine, service_factory, calls, expected):
    for name in calls:
        before = len(service_factory.all_calls)
        getattr(rr_machine, name)()
        if len(service_factory.all_calls) > before:
            _answer_last(service_factory)

    assert rr_machine.state is expected


# -- fire-and-forget ---------------------------------------------------------

def test_fire_and_forget_scenario(ff_machine, topic_factory):
    events = Recorder(ff_machine)

    ff_machine.start()
    assert ff_machine.state is RECORDING
    assert topic_factory.published == ["start"]

    ff_machine.stop()
    assert ff_machine.state is IDLE
    assert topic_factory.published == ["start", "stop"]

    assert events.states == [RECORDING, IDLE]


def test_fire_and_forget_state_changes_before_publish(ff_machine, topic_factory):
    seen_at_publish = []
    ff_machine.command_dispatched.connect(lambda _cmd: seen_at_publish.append(ff_machine.state))
    ff_machine.state_changed.connect(
        lambda _state: seen_at_publish.append(list(topic_factory.published)))

    ff_machine.start()

    # state_changed fired while nothing was published yet
    assert seen_at_publish == [[], RECORDING]


def test_fire_and_forget_guard(ff_machine, topic_factory):
    ff_machine.start()
    ff_machine.start()
    ff_machine.stop()
    ff_machine.stop()

    assert topic_factory.published == ["start", "stop"]


def test_fire_and_forget_delete_completes_immediately(ff_machine, topic_factory):
    events = Recorder(ff_machine)
    ff_machine.start()

    ff_machine.delete()

    assert topic_factory.published == ["start", "delete"]
    assert events.deletes == 1
    assert ff_machine.state is RECORDING


def test_timed_out_start_stays_idle_and_reports_once(connected_transport, service_factory):
    channel = ServiceCommandChannel(connected_transport, request_timeout_sec=0.05,
                                    service_factory=service_factory)
    machine = RecordingStateMachine(channel)
    events = Recorder(machine)

    machine.start()
    QTest.qWait(300)

    assert machine.state is IDLE
    assert not machine.is_awaiting_response
    assert events.states == []
    assert len(events.errors) == 1
    assert events.errors[0].startswith("Start failed: Timed out")


def test_only_delete_failures_reach_delete_failed(rr_machine, service_factory):
    delete_failures = []
    rr_machine.delete_failed.connect(delete_failures.append)

    rr_machine.start()
    _answer_last(service_factory, False, "no camera")
    rr_machine.delete()
    _answer_last(service_factory, False, "bag locked")

    assert delete_failures == ["Delete failed: bag locked"]
