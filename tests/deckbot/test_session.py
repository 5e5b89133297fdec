import json
from deckbot.models import InboundEvent, RouteKind, Session
from deckbot.router import classify
from deckbot.session import SessionState


def test_save_then_reload_round_trips(tmp_path):
    path = tmp_path / ".rootmessage"
    SessionState(str(path)).update("C-TEST", "1712345678.000100")

    reloaded = SessionState(str(path))
    session = reloaded.load()

    assert session == Session(channel_id="C-TEST", message_ts="1712345678.000100")
    assert reloaded.current() == session

    # A reply in the restored thread is picked up
    event = InboundEvent(channel_id="C-TEST", thread_ts="1712345678.000100", ts="2", text="draw", user_id="U1")
    assert classify(event, reloaded.current(), "C-TEST", "The Fool").kind == RouteKind.DRAW


def test_file_uses_camel_case_record(tmp_path):
    path = tmp_path / ".rootmessage"
    SessionState(str(path)).update("C1", "42")
    assert json.loads(path.read_text()) == {"channelId": "C1", "messageTs": "42"}


def test_missing_file_is_absent(tmp_path):
    state = SessionState(str(tmp_path / "nope"))
    assert state.load() is None
    assert state.current() is None


def test_corrupt_file_is_treated_as_absent(tmp_path, caplog):
    path = tmp_path / ".rootmessage"
    path.write_text("{not json")

    state = SessionState(str(path))
    assert state.load() is None
    assert "Error loading root message" in caplog.text


def test_undecodable_file_is_treated_as_absent(tmp_path, caplog):
    path = tmp_path / ".rootmessage"
    path.write_bytes(b'{"channelId": "C1", "messageTs": "\xff\xfe"}')

    state = SessionState(str(path))
    assert state.load() is None
    assert state.current() is None
    assert "Error loading root message" in caplog.text


def test_wrong_shape_is_treated_as_absent(tmp_path):
    path = tmp_path / ".rootmessage"
    path.write_text('{"channelId": "C1"}')
    assert SessionState(str(path)).load() is None


def test_failed_save_keeps_in_memory_session(tmp_path, caplog):
    # A directory cannot be written as a file
    state = SessionState(str(tmp_path))
    session = state.update("C1", "77")

    assert state.current() == session
    assert "Error saving root message" in caplog.text


def test_newer_root_overwrites_older(tmp_path):
    path = tmp_path / ".rootmessage"
    state = SessionState(str(path))
    state.update("C1", "1")
    state.update("C1", "2")

    assert SessionState(str(path)).load().message_ts == "2"
