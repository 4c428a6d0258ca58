# backend/carenow/integrations/push.py
"""
Push messaging gateway.

The NotificationService talks to a PushGateway; the console gateway ships
as the default provider and only logs what it would send.
"""

from __future__ import annotations

from collections import deque
import json
import logging
from typing import Any, Deque, Dict, Mapping, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class PushGateway(Protocol):
    """Provider-side push messaging operations."""

    def send_to_token(
        self, token: str, title: str, body: str, data: Optional[Mapping[str, Any]] = None
    ) -> bool:
        ...

    def send_to_topic(
        self, topic: str, title: str, body: str, data: Optional[Mapping[str, Any]] = None
    ) -> bool:
        ...

    def subscribe_to_topic(self, token: str, topic: str) -> bool:
        ...

    def unsubscribe_from_topic(self, token: str, topic: str) -> bool:
        ...


class ConsolePushGateway:
    """
    Push gateway used when no real provider is configured.

    Logs every send and keeps the most recent ``history`` of them in ``sent``.
    """

    def __init__(self, history: int = 100) -> None:
        self.sent: Deque[Dict[str, Any]] = deque(maxlen=history)
        self.topics: Dict[str, set[str]] = {}

    def _record(self, target: str, title: str, body: str, data: Optional[Mapping[str, Any]]) -> bool:
        payload = {"target": target, "title": title, "body": body, "data": dict(data or {})}
        self.sent.append(payload)
        logger.info(
            "[PUSH-CONSOLE] %s: %s | %s",
            target,
            title,
            json.dumps(payload["data"], sort_keys=True, default=str)[:500],
        )
        return True

    def send_to_token(
        self, token: str, title: str, body: str, data: Optional[Mapping[str, Any]] = None
    ) -> bool:
        return self._record(f"token:{token}", title, body, data)

    def send_to_topic(
        self, topic: str, title: str, body: str, data: Optional[Mapping[str, Any]] = None
    ) -> bool:
        return self._record(f"topic:{topic}", title, body, data)

    def subscribe_to_topic(self, token: str, topic: str) -> bool:
        self.topics.setdefault(topic, set()).add(token)
        logger.info("[PUSH-CONSOLE] subscribed %s to %s", token, topic)
        return True

    def unsubscribe_from_topic(self, token: str, topic: str) -> bool:
        self.topics.get(topic, set()).discard(token)
        logger.info("[PUSH-CONSOLE] unsubscribed %s from %s", token, topic)
        return True


def build_push_gateway(provider: str, history: int = 100) -> PushGateway:
    if provider == "console":
        return ConsolePushGateway(history)
    raise ValueError(f"Unsupported push provider: {provider}")
