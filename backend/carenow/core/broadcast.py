"""
Shared broadcast manager for the realtime booking change feed.

One Broadcast instance per process. With the default ``memory://`` backend
updates stay in-process; pointing ``broadcast_url`` at Redis or Postgres fans
them out across processes without changing any caller.

Channels are named ``booking:{booking_id}``; every published message is
delivered to every subscriber of that channel, in order, without
deduplication.
"""
import logging
from typing import Optional

from broadcaster import Broadcast

from .config import settings

logger = logging.getLogger(__name__)

_broadcast: Optional[Broadcast] = None


def get_broadcast() -> Broadcast:
    """
    Get the shared broadcast instance.

    Raises:
        RuntimeError: If broadcast is not initialized (call connect_broadcast first)
    """
    if _broadcast is None:
        raise RuntimeError("Broadcast not initialized. Call connect_broadcast() during startup.")
    return _broadcast


def is_broadcast_initialized() -> bool:
    """Check if the broadcast instance is initialized."""
    return _broadcast is not None


async def connect_broadcast(url: Optional[str] = None) -> Broadcast:
    """
    Connect the shared broadcast instance.

    Safe to call more than once; an existing connection is reused.
    """
    global _broadcast

    if _broadcast is not None:
        return _broadcast

    broadcast_url = url or settings.broadcast_url
    broadcast = Broadcast(broadcast_url)
    await broadcast.connect()
    _broadcast = broadcast
    logger.info("[BROADCAST] Connected change feed backend: %s", broadcast_url)
    return broadcast


async def disconnect_broadcast() -> None:
    """Disconnect the shared broadcast instance."""
    global _broadcast

    if _broadcast is not None:
        await _broadcast.disconnect()
        _broadcast = None
        logger.info("[BROADCAST] Disconnected change feed backend")
