from PyQt6.QtTest import QTest

from collection_remote.channels import (
    CommandOutcome, ServiceCommandChannel, TopicCommandChannel, create_channel
)
from collection_remote.config import Command, DeliveryMode, RemoteConfig


def _service_channel(transport, service_factory, timeout=0.0):
    return ServiceCommandChannel(transport, request_timeout_sec=timeout,
                                 service_factory=service_factory)


def test_start_and_stop_call_toggle_with_bool(connected_transport, service_factory):
    channel = _service_channel(connected_transport, service_factory)

    assert channel.send(Command.START, lambda outcome: None)
    assert channel.send(Command.STOP, lambda outcome: None)

    toggle = service_factory.service("/collection_toggle")
    assert toggle.service_type == "std_srvs/srv/SetBool"
    assert [c.request for c in toggle.calls] == [{'data': True}, {'data': False}]


def test_delete_calls_trigger_with_empty_request(connected_transport, service_factory):
    channel = _service_channel(connected_transport, service_factory)

    assert channel.send(Command.DELETE, lambda outcome: None)

    delete = service_factory.service("/collection_delete")
    assert delete.service_type == "std_srvs/srv/Trigger"
    assert [c.request for c in delete.calls] == [{}]


def test_outcome_is_delivered_once(connected_transport, service_factory):
    channel = _service_channel(connected_transport, service_factory)
    outcomes = []
    channel.send(Command.START, outcomes.append)

    call = service_factory.all_calls[0]
    call.respond(True, "recording")
    call.respond(False, "duplicate")

    assert outcomes == [CommandOutcome(True, "recording")]
    assert channel.pending_count == 0


def test_service_error_becomes_failed_outcome(connected_transport, service_factory):
    channel = _service_channel(connected_transport, service_factory)
    outcomes = []
    channel.send(Command.STOP, outcomes.append)

    service_factory.all_calls[0].errback("Service /collection_toggle does not exist")

    assert outcomes == [CommandOutcome(False, "Service /collection_toggle does not exist")]


def test_unanswered_call_times_out(connected_transport, service_factory):
    channel = _service_channel(connected_transport, service_factory, timeout=0.05)
    outcomes = []
    channel.send(Command.START, outcomes.append)

    QTest.qWait(300)

    assert len(outcomes) == 1
    assert not outcomes[0].success
    assert "timed out" in outcomes[0].message.lower()

    # A late answer after the timeout is dropped
    service_factory.all_calls[0].respond(True, "late")
    assert len(outcomes) == 1


def test_send_without_connection_is_a_no_op(transport, service_factory):
    channel = _service_channel(transport, service_factory)
    outcomes = []

    assert channel.send(Command.START, outcomes.append) is False
    assert service_factory.created == []
    assert outcomes == []


def test_close_drops_pending_outcomes(connected_transport, service_factory):
    channel = _service_channel(connected_transport, service_factory)
    outcomes = []
    channel.send(Command.START, outcomes.append)

    channel.close()
    service_factory.all_calls[0].respond(True, "ok")

    assert outcomes == []


def test_topic_channel_publishes_command_strings(connected_transport, topic_factory):
    channel = TopicCommandChannel(connected_transport, topic_factory=topic_factory)

    for command in (Command.START, Command.STOP, Command.DELETE):
        assert channel.send(command)

    assert topic_factory.published == ["start", "stop", "delete"]
    topic = topic_factory.created[0]
    assert (topic.name, topic.message_type) == ("/collection_command", "std_msgs/String")
    assert len(topic_factory.created) == 1


def test_topic_channel_without_connection_publishes_nothing(transport, topic_factory):
    channel = TopicCommandChannel(transport, topic_factory=topic_factory)
    assert channel.send(Command.START) is False
    assert topic_factory.published == []


def test_topic_channel_close_unadvertises(connected_transport, topic_factory):
    channel = TopicCommandChannel(connected_transport, topic_factory=topic_factory)
    channel.send(Command.START)
    topic = topic_factory.created[0]

    channel.close()
    assert topic.unadvertised


def test_create_channel_picks_mode(connected_transport):
    rr = create_channel(connected_transport, RemoteConfig())
    ff = create_channel(connected_transport,
                        RemoteConfig(delivery_mode=DeliveryMode.FIRE_AND_FORGET))

    assert isinstance(rr, ServiceCommandChannel)
    assert rr.delivery_mode is DeliveryMode.REQUEST_RESPONSE
    assert isinstance(ff, TopicCommandChannel)
    assert ff.delivery_mode is DeliveryMode.FIRE_AND_FORGET
