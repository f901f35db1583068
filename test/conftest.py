import pytest
from PyQt6.QtCore import QCoreApplication

from collection_remote.config import ConnectionConfig
from collection_remote.transport import RosbridgeTransport

from fakes import FakeReactor, FakeRosFactory, FakeServiceFactory, FakeTopicFactory


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """Qt application instance for signals, timers and queued connections."""
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


@pytest.fixture
def ros_factory():
    return FakeRosFactory()


@pytest.fixture
def service_factory():
    return FakeServiceFactory()


@pytest.fixture
def topic_factory():
    return FakeTopicFactory()


@pytest.fixture
def reactor():
    return FakeReactor()


@pytest.fixture
def transport(ros_factory, reactor):
    """Transport built on the fake ros factory; not yet connected."""
    return RosbridgeTransport(ConnectionConfig(), ros_factory=ros_factory, run_in_thread=False,
                              reactor=reactor)


@pytest.fixture
def connected_transport(transport, ros_factory):
    transport.connect()
    ros_factory.last.open()
    return transport
