# tests/test_error_handler.py
import logging

import pytest
from fastapi.testclient import TestClient

from app.utils.exceptions import InvalidTimeSlotException


@pytest.fixture
def failing_client(app):
    @app.get("/boom")
    def boom():
        raise RuntimeError("database exploded")

    @app.get("/bad-slot")
    def bad_slot():
        raise InvalidTimeSlotException("startTime must not be after endTime", field="startTime")

    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


def test_unhandled_error_is_logged_with_traceback(failing_client, caplog):
    with caplog.at_level(logging.ERROR, logger="app.middleware.error_handler"):
        response = failing_client.get("/boom")

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "message": "An unexpected error occurred. Please try again later.",
        "error": {"code": "INTERNAL_SERVER_ERROR", "details": None, "field": None},
    }
    [record] = [r for r in caplog.records if r.name == "app.middleware.error_handler"]
    assert record.exc_info[0] is RuntimeError
    assert "database exploded" not in response.text


def test_app_exception_envelope(failing_client):
    response = failing_client.get("/bad-slot")

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "message": "startTime must not be after endTime",
        "error": {"code": "INVALID_TIME_SLOT", "details": None, "field": "startTime"},
    }
