# tests/helpers.py
from datetime import datetime

from app.models import User
from app.utils.security import create_access_token


class Recorder:
    """Stand-in subscriber that keeps every frame sent to it."""

    def __init__(self, name: str = "recorder", fail: bool = False) -> None:
        self.name = name
        self.fail = fail
        self.frames: list[dict] = []

    async def send_json(self, data) -> None:
        if self.fail:
            raise RuntimeError("connection closed")
        self.frames.append(data)

    def events(self, name: str | None = None) -> list[dict]:
        return [f for f in self.frames if name is None or f["event"] == name]

    def __repr__(self) -> str:
        return f"<Recorder {self.name}>"


def at(clock: str) -> datetime:
    """A fixed local datetime on an arbitrary day at ``HH:MM``."""
    hour, minute = map(int, clock.split(":"))
    return datetime(2026, 10, 18, hour, minute)


def token_for(user: User) -> str:
    return create_access_token(user.id, user.role.value)


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
