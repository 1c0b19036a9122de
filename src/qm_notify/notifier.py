"""Notify.send(user_id, event) — party notification over Redis pub/sub.

Each user has a channel "{NOTIFY_CHANNEL_PREFIX}:{user_id}"; the delivery
transport (email/SMS/push/websocket) subscribes there and is out of scope.

Notifications are sent after the state change commits and are best-effort:
a Redis outage is logged and never undoes or fails a committed transition.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Protocol

from redis.exceptions import RedisError

from config.settings import settings
from src.qm_common.enums import NotifyEvent
from src.qm_common.redis_client import get_redis

logger = logging.getLogger(__name__)


class NotifierProtocol(Protocol):
    async def send(
        self, user_id: str, event: NotifyEvent, payload: dict[str, Any]
    ) -> None: ...


class RedisNotifier:
    def __init__(self, channel_prefix: str = settings.NOTIFY_CHANNEL_PREFIX) -> None:
        self._prefix = channel_prefix

    def channel_for(self, user_id: str) -> str:
        return f"{self._prefix}:{user_id}"

    async def send(self, user_id: str, event: NotifyEvent, payload: dict[str, Any]) -> None:
        message = json.dumps(
            {
                "event": event.value,
                "user_id": user_id,
                "payload": payload,
                "sent_at": datetime.now(timezone.utc).isoformat(),
            },
            default=str,
        )
        try:
            redis = await get_redis()
            await redis.publish(self.channel_for(user_id), message)
        except RedisError:
            logger.warning("notify %s to %s failed", event.value, user_id, exc_info=True)


_notifier: NotifierProtocol | None = None


def get_notifier() -> NotifierProtocol:
    global _notifier  # noqa: PLW0603
    if _notifier is None:
        _notifier = RedisNotifier()
    return _notifier
