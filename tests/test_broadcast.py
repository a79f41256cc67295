from unittest.mock import MagicMock

from live_tournament.broadcast import RecordingBroadcaster, SocketIOBroadcaster


def test_socketio_broadcaster_forwards_events():
    socketio = MagicMock()
    broadcaster = SocketIOBroadcaster(socketio, namespace="/live")

    broadcaster.emit("tournament_updated", {"matchId": "m1"})
    broadcaster.emit("tournament_reset")

    socketio.emit.assert_any_call(
        "tournament_updated", {"matchId": "m1"}, namespace="/live"
    )
    socketio.emit.assert_any_call("tournament_reset", namespace="/live")


def test_recording_broadcaster_keeps_order():
    broadcaster = RecordingBroadcaster()
    broadcaster.emit("a", {"x": 1})
    broadcaster.emit("b")
    assert broadcaster.names() == ["a", "b"]
    assert broadcaster.events[0] == ("a", {"x": 1})
