"""
In-Process Event Bus

Fire-and-forget publish/subscribe used to tell other consumers in the same
process (open views, API workers, background refreshers) that shipments
changed. Each subscriber is invoked in its own task so a publish never waits
on, or fails because of, a subscriber.
"""

import asyncio
import copy
import inspect
import logging
import uuid
from typing import Any, Callable, Dict, Set

from .models import ShipmentChangeEvent, ShipmentStreamConfig

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], Any]


class InProcessEventBus:
    """Observer registry with at-most-once, unordered delivery"""

    def __init__(self):
        self._handlers: Dict[str, Handler] = {}
        self._pending: Set[asyncio.Task] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    def subscribe(self, handler: Handler) -> str:
        """Register a sync or async handler; returns a token for unsubscribe"""
        token = uuid.uuid4().hex
        self._handlers[token] = handler
        logger.debug(f"Subscriber {token} registered")
        return token

    def unsubscribe(self, token: str) -> bool:
        return self._handlers.pop(token, None) is not None

    def publish(self, event_type: str, data: Dict[str, Any]) -> None:
        """Schedule delivery of ``{type, data}`` to every current subscriber"""
        payload = ShipmentChangeEvent(type=event_type, data=data).to_dict()
        if not self._handlers:
            return
        logger.debug(
            f"[{ShipmentStreamConfig.CHANNEL_NAME}] {payload['type']} -> {len(self._handlers)} subscriber(s)"
        )

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        for token, handler in list(self._handlers.items()):
            message = copy.deepcopy(payload)
            if loop is None:
                # No loop to schedule on: only plain callables can be served
                if inspect.iscoroutinefunction(handler):
                    logger.warning(f"Dropping {payload['type']} for async subscriber {token}: no running loop")
                    continue
                self._invoke_sync(token, handler, message)
                continue
            task = loop.create_task(self._deliver(token, handler, message))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _deliver(self, token: str, handler: Handler, message: Dict[str, Any]) -> None:
        try:
            result = handler(message)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.warning(f"Subscriber {token} failed handling {message.get('type')}: {e}")

    def _invoke_sync(self, token: str, handler: Handler, message: Dict[str, Any]) -> None:
        try:
            handler(message)
        except Exception as e:
            logger.warning(f"Subscriber {token} failed handling {message.get('type')}: {e}")

    async def drain(self) -> None:
        """Wait until every scheduled delivery has finished"""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        await self.drain()
        self._handlers.clear()


__all__ = ["InProcessEventBus"]
