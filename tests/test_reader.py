import pytest

from conftest import ATR_R1, FakeReader, FakeTransport
from pcsctester.core.base import ReaderSession, SessionState
from pcsctester.core.errors import (
    ConnectError,
    IndexOutOfRange,
    NoCard,
    ReaderNotFound,
    ServiceUnavailable,
    SessionClosed,
)
from pcsctester.core.smartcard import ReaderDescriptor, ShareMode


def test_establish_transitions_to_ready(transport):
    session = ReaderSession(transport)
    assert session.state is SessionState.UNINITIALIZED
    session.establish()
    assert session.state is SessionState.READY
    session.establish()
    assert len(transport.contexts) == 1


def test_establish_service_unavailable():
    session = ReaderSession(FakeTransport(available=False))
    with pytest.raises(ServiceUnavailable):
        session.establish()
    assert session.state is SessionState.UNINITIALIZED


def test_list_readers(session, r1, r2):
    readers = session.list_readers()
    assert readers == [
        ReaderDescriptor("R1", card_present=True, atr=ATR_R1),
        ReaderDescriptor("R2"),
    ]
    # probes are closed again
    assert r1.open_connections == 0
    assert r2.open_connections == 0


def test_list_readers_tolerates_failing_probe(transport, session):
    transport.readers.insert(0, FakeReader("broken", fail_connect=True))
    transport.readers.append(FakeReader("R3", fail_status=True))
    readers = session.list_readers()
    assert [r.name for r in readers] == ["broken", "R1", "R2", "R3"]
    assert readers[0] == ReaderDescriptor("broken")
    assert readers[1].card_present
    assert readers[3] == ReaderDescriptor("R3", card_present=True, atr=None)


def test_list_readers_does_not_probe_connected_reader(connected, transport, r1):
    transport.connects.clear()
    readers = connected.list_readers()
    assert ("R1", ShareMode.SHARED) not in transport.connects
    assert readers[0].atr == ATR_R1
    assert r1.open_connections == 1


def test_list_readers_empty():
    with ReaderSession(FakeTransport()) as session:
        assert session.list_readers() == []


def test_connect_by_name(session, r1):
    session.connect("R1", ShareMode.EXCLUSIVE)
    assert session.state is SessionState.CONNECTED
    assert session.reader_name == "R1"
    assert session.active_handle is not None
    assert session.active_handle.mode is ShareMode.EXCLUSIVE
    assert r1.open_connections == 1


def test_connect_by_index(session):
    session.list_readers()
    session.connect(0)
    assert session.reader_name == "R1"
    session.connect("1", ShareMode.DIRECT)
    assert session.reader_name == "R2"


def test_connect_by_index_lists_when_needed(session):
    session.connect("0")
    assert session.reader_name == "R1"


def test_connect_index_out_of_range(session):
    session.list_readers()
    with pytest.raises(IndexOutOfRange) as exc:
        session.connect(5)
    assert "0-1" in str(exc.value)
    assert session.state is SessionState.READY


def test_connect_errors(session):
    with pytest.raises(ReaderNotFound):
        session.connect("nope")
    with pytest.raises(NoCard):
        session.connect("R2", ShareMode.SHARED)
    assert isinstance(NoCard("x"), ConnectError)
    assert session.active_handle is None
    assert session.reader_name is None


def test_connect_replaces_previous_connection(session, transport, r1):
    r3 = FakeReader("R3")
    transport.readers.append(r3)
    session.connect("R1")
    first = session.active_handle
    session.connect("R3")
    assert first.closed
    assert r1.open_connections == 0
    assert r3.open_connections == 1
    assert session.reader_name == "R3"


def test_reconnect_same_reader(session, r1):
    session.connect("R1")
    session.connect("R1")
    assert r1.open_connections == 1


def test_disconnect_is_idempotent(connected, r1):
    connected.disconnect()
    connected.disconnect()
    assert connected.state is SessionState.READY
    assert connected.active_handle is None
    assert r1.open_connections == 0


def test_disconnect_failure_is_logged_not_raised(connected, r1, caplog):
    r1.fail_disconnect = True
    connected.disconnect()
    assert connected.active_handle is None
    assert "failed to disconnect cleanly" in caplog.text


def test_context_manager_releases_connection(transport, r1):
    with ReaderSession(transport) as session:
        session.connect("R1")
        assert r1.open_connections == 1
    assert r1.open_connections == 0
    assert session.state is SessionState.CLOSED
    assert transport.contexts[0].released


def test_context_manager_releases_on_error(transport, r1):
    with pytest.raises(RuntimeError):
        with ReaderSession(transport) as session:
            session.connect("R1")
            raise RuntimeError("boom")
    assert r1.open_connections == 0


def test_closed_session_rejects_use(transport):
    session = ReaderSession(transport)
    session.close()
    session.close()
    with pytest.raises(SessionClosed):
        session.list_readers()
    with pytest.raises(SessionClosed):
        session.connect("R1")
    session.disconnect()


def test_current_reader_info(session):
    assert session.current_reader_info() is None
    session.connect("R1")
    assert session.current_reader_info() == ReaderDescriptor("R1", True, ATR_R1)


def test_reader_descriptor_is_frozen():
    desc = ReaderDescriptor("R1")
    with pytest.raises(AttributeError):
        desc.name = "R2"


def test_share_mode_parse():
    assert ShareMode.parse("Shared") is ShareMode.SHARED
    assert ShareMode.parse("DIRECT") is ShareMode.DIRECT
    with pytest.raises(ValueError):
        ShareMode.parse("bogus")
