# tests/test_room_socket.py
from datetime import timedelta

import pytest
from starlette.websockets import WebSocketDisconnect

from app.config import settings
from app.utils.security import create_access_token

from helpers import auth_headers, token_for

URL = "/api/v1/ws/rooms"


def connect(client, token):
    return client.websocket_connect(f"{URL}?token={token}")


def receive(ws, event: str, limit: int = 10) -> dict:
    """Read frames until ``event`` arrives and return its envelope."""
    for _ in range(limit):
        frame = ws.receive_json()
        if frame["event"] == event:
            return frame
    raise AssertionError(f"no '{event}' frame within {limit} frames")


class TestHandshake:

    def test_user_connected(self, client, admin, admin_token):
        with connect(client, admin_token) as ws:
            frame = ws.receive_json()
        assert frame["event"] == "userConnected"
        assert frame["data"] == {
            "userId": admin.id,
            "username": "admin",
            "role": "admin",
            "name": "Admin Tester",
        }

    def test_header_token_is_accepted(self, client, student_token):
        with client.websocket_connect(URL, headers=auth_headers(student_token)) as ws:
            assert ws.receive_json()["data"]["role"] == "student"

    @pytest.mark.parametrize("query", ["", "?token=", "?token=not-a-jwt"])
    def test_rejected_without_valid_token(self, client, query):
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect(URL + query):
                pass
        assert exc.value.code == 1008

    def test_rejected_when_token_expired(self, client, admin):
        token = create_access_token(admin.id, "admin", expires_delta=timedelta(minutes=-1))
        with pytest.raises(WebSocketDisconnect) as exc:
            with connect(client, token):
                pass
        assert exc.value.code == 1008

    def test_rejected_when_account_inactive(self, client, inactive_user):
        with pytest.raises(WebSocketDisconnect) as exc:
            with connect(client, token_for(inactive_user)):
                pass
        assert exc.value.code == 1008

    def test_disconnect_leaves_the_hub(self, app, client, student_token):
        with connect(client, student_token) as ws:
            ws.receive_json()
            assert app.state.room_hub.subscriber_count() == 1
        assert app.state.room_hub.subscriber_count() == 0


class TestCommands:

    def test_get_room_status(self, client, student_token, rooms):
        with connect(client, student_token) as ws:
            ws.send_json({"event": "getRoomStatus", "data": {"roomNumber": "301"}})
            frame = receive(ws, "roomStatus")
        assert frame["data"]["roomNumber"] == "301"
        assert frame["data"]["status"] == "maintenance"

    def test_get_unknown_room(self, client, student_token):
        with connect(client, student_token) as ws:
            ws.send_json({"event": "getRoomStatus", "data": {"roomNumber": "999"}})
            frame = receive(ws, "error")
        assert frame["data"] == {"message": "Room not found", "code": "NOT_FOUND"}

    def test_student_update_is_refused(self, client, student_token, rooms):
        with connect(client, student_token) as ws:
            ws.send_json({"event": "updateRoomStatus", "data": {"roomNumber": "101", "status": "occupied"}})
            error = receive(ws, "error")
            ws.send_json({"event": "getRoomStatus", "data": {"roomNumber": "101"}})
            status = receive(ws, "roomStatus")

        assert error["data"] == {"message": "Unauthorized - Admin access required", "code": "FORBIDDEN"}
        assert status["data"]["status"] == "free"

    def test_admin_update_reaches_other_clients(self, client, admin_token, student_token, rooms):
        with connect(client, student_token) as watcher, connect(client, admin_token) as ws:
            watcher.receive_json()
            ws.send_json({"event": "updateRoomStatus", "data": {"roomNumber": "201", "status": "maintenance"}})
            confirmed = receive(ws, "updateConfirmed")
            update = receive(watcher, "roomStatusUpdate")

        assert confirmed["data"] == {"roomNumber": "201", "status": "maintenance"}
        assert update["data"]["roomNumber"] == "201"
        assert update["data"]["status"] == "maintenance"
        assert update["data"]["updatedBy"]["username"] == "admin"

    def test_invalid_status(self, client, admin_token, rooms):
        with connect(client, admin_token) as ws:
            ws.send_json({"event": "updateRoomStatus", "data": {"roomNumber": "101", "status": "busy"}})
            frame = receive(ws, "error")
        assert frame["data"]["code"] == "INVALID_STATUS"

    def test_bulk_update(self, client, admin_token, rooms):
        with connect(client, admin_token) as ws:
            ws.send_json({"event": "bulkUpdateRoomStatus", "data": [
                {"roomNumber": "101", "status": "occupied"},
                {"roomNumber": "DOES_NOT_EXIST", "status": "free"},
                {"roomNumber": "102", "status": "reserved", "startTime": "00:00", "endTime": "23:59"},
            ]})
            frame = receive(ws, "bulkUpdateCompleted")

        assert [r["roomNumber"] for r in frame["data"]["results"]] == ["101", "102"]
        assert frame["data"]["errors"] == [{"roomNumber": "DOES_NOT_EXIST", "error": "Room not found"}]

    def test_bulk_update_with_malformed_entry(self, client, admin_token, rooms):
        with connect(client, admin_token) as ws:
            ws.send_json({"event": "bulkUpdateRoomStatus", "data": [
                {"roomNumber": "101", "status": "occupied"},
                {"roomNumber": None, "status": "free"},
                {"roomNumber": "102", "status": "reserved"},
            ]})
            frame = receive(ws, "bulkUpdateCompleted")

        assert frame["data"]["results"] == [
            {"roomNumber": "101", "status": "occupied"},
            {"roomNumber": "102", "status": "reserved"},
        ]
        assert frame["data"]["errors"] == [{"roomNumber": None, "error": "roomNumber is required"}]

    def test_bulk_payload_must_be_a_list(self, client, admin_token):
        with connect(client, admin_token) as ws:
            ws.send_json({"event": "bulkUpdateRoomStatus", "data": {"roomNumber": "101"}})
            frame = receive(ws, "error")
        assert frame["data"]["code"] == "VALIDATION_ERROR"

    def test_join_and_leave_floor(self, app, client, student_token):
        hub = app.state.room_hub
        with connect(client, student_token) as ws:
            ws.send_json({"event": "joinFloor", "data": {"floor": 2}})
            joined = receive(ws, "floorJoined")
            assert hub.get_connection_stats()["topics"]["floor-2"] == 1

            ws.send_json({"event": "leaveFloor", "data": 2})
            left = receive(ws, "floorLeft")
            assert "floor-2" not in hub.get_connection_stats()["topics"]

        assert joined["data"] == {"floor": 2}
        assert left["data"] == {"floor": 2}

    def test_bad_floor(self, client, student_token):
        with connect(client, student_token) as ws:
            ws.send_json({"event": "joinFloor", "data": {"floor": "top"}})
            frame = receive(ws, "error")
        assert frame["data"]["message"] == "Floor must be a number"

    @pytest.mark.parametrize("frame, message", [
        ({"event": "danceParty"}, "Unknown event 'danceParty'"),
        (["getRoomStatus"], 'Frames must look like {"event": ..., "data": ...}'),
    ])
    def test_malformed_frames(self, client, student_token, frame, message):
        with connect(client, student_token) as ws:
            ws.send_json(frame)
            error = receive(ws, "error")
            # the connection stays usable
            ws.send_json({"event": "joinFloor", "data": 1})
            receive(ws, "floorJoined")
        assert error["data"] == {"message": message, "code": "VALIDATION_ERROR"}

    def test_non_json_frame(self, client, student_token):
        with connect(client, student_token) as ws:
            ws.send_text("hello")
            frame = receive(ws, "error")
        assert frame["data"]["message"] == "Frames must be JSON"


def test_periodic_snapshot(monkeypatch, client, student_token, rooms):
    monkeypatch.setattr(settings, "ROOM_STATUS_PUSH_INTERVAL_SECONDS", 0.05)
    with connect(client, student_token) as ws:
        frame = receive(ws, "periodicStatusUpdate")
    assert [r["roomNumber"] for r in frame["data"]] == ["101", "102", "201", "301"]
