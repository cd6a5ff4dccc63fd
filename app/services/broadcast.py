"""
Topic-based fan-out of room events to connected WebSocket clients.

One hub is created per application (``app.state.room_hub``). Every
subscriber is anything with an ``async send_json(dict)`` method, which lets
tests register plain recorders instead of sockets.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Protocol, Set

logger = logging.getLogger(__name__)

ALL_ROOMS_TOPIC = "all"


def floor_topic(floor: int | str) -> str:
    return f"floor-{floor}"


class Subscriber(Protocol):
    async def send_json(self, data: Any) -> None: ...


class RoomBroadcastHub:
    """Registry of subscribers per topic plus the publish path."""

    def __init__(self) -> None:
        self._topics: Dict[str, Set[Subscriber]] = {}
        self._memberships: Dict[Subscriber, Set[str]] = {}
        # Serializes publishes so events for one room reach every subscriber in order
        self._publish_lock = asyncio.Lock()

    # ─── Membership ───────────────────────────────────────────────────────────
    def connect(self, subscriber: Subscriber, topics: Iterable[str] = (ALL_ROOMS_TOPIC,)) -> None:
        self._memberships.setdefault(subscriber, set())
        for topic in topics:
            self.join(subscriber, topic)

    def disconnect(self, subscriber: Subscriber) -> None:
        for topic in self._memberships.pop(subscriber, set()):
            members = self._topics.get(topic)
            if members is None:
                continue
            members.discard(subscriber)
            if not members:
                del self._topics[topic]

    def join(self, subscriber: Subscriber, topic: str) -> None:
        self._topics.setdefault(topic, set()).add(subscriber)
        self._memberships.setdefault(subscriber, set()).add(topic)

    def leave(self, subscriber: Subscriber, topic: str) -> None:
        members = self._topics.get(topic)
        if members is not None:
            members.discard(subscriber)
            if not members:
                del self._topics[topic]
        if subscriber in self._memberships:
            self._memberships[subscriber].discard(topic)

    def topics_of(self, subscriber: Subscriber) -> Set[str]:
        return set(self._memberships.get(subscriber, set()))

    def subscribers_of(self, topic: str) -> Set[Subscriber]:
        return set(self._topics.get(topic, set()))

    def subscriber_count(self) -> int:
        return len(self._memberships)

    # ─── Delivery ─────────────────────────────────────────────────────────────
    @staticmethod
    def envelope(event: str, data: Any) -> Dict[str, Any]:
        return {
            "event": event,
            "data": data,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    async def send(self, subscriber: Subscriber, event: str, data: Any) -> bool:
        """Deliver one event to one subscriber; a failed send drops the subscriber."""
        try:
            await subscriber.send_json(self.envelope(event, data))
            return True
        except Exception as e:
            logger.warning(f"Dropping subscriber after failed '{event}' send: {e}")
            self.disconnect(subscriber)
            return False

    async def publish(self, event: str, data: Any, floor: int | None = None) -> int:
        """
        Fan ``event`` out to the ``all`` topic and, when ``floor`` is given,
        to that floor's topic. A subscriber in both receives it once.
        Returns the number of successful deliveries.
        """
        async with self._publish_lock:
            targets = self.subscribers_of(ALL_ROOMS_TOPIC)
            if floor is not None:
                targets |= self.subscribers_of(floor_topic(floor))

            message = self.envelope(event, data)
            delivered = 0
            for subscriber in targets:
                try:
                    await subscriber.send_json(message)
                    delivered += 1
                except Exception as e:
                    logger.warning(f"Dropping subscriber after failed '{event}' broadcast: {e}")
                    self.disconnect(subscriber)

        logger.debug(f"Published '{event}' (floor={floor}) to {delivered} subscriber(s)")
        return delivered

    async def publish_many(self, events: Iterable[tuple[str, Any, int | None]]) -> None:
        """Publish queued ``(event, data, floor)`` tuples in order."""
        for event, data, floor in events:
            await self.publish(event, data, floor)

    def get_connection_stats(self) -> Dict[str, Any]:
        return {
            "subscribers": self.subscriber_count(),
            "topics": {topic: len(members) for topic, members in self._topics.items()},
        }
