import asyncio
from collections import deque
from typing import Any, Deque, Dict, Optional, Set

from bus.channel import Channel, Registration, TRANSPORT_FAILURE_CODE, deliver, outcome_result, timeout_failure
from bus.message import Handler, Message, Outcome, ReplyFailure, ReplyFailureType
from core.logger import logging


class LocalChannel(Channel):
    """In-process channel, every delivery runs as its own task"""

    def __init__(self, default_timeout: float = 30):
        self.default_timeout = default_timeout
        self._handlers: Dict[str, Deque[Handler]] = {}
        self._tasks: Set[asyncio.Task] = set()

    async def consumer(self, address: str, handler: Handler) -> Registration:
        self._handlers.setdefault(address, deque()).append(handler)
        logging.debug(f"Consumer registered on {address}")

        async def remove():
            handlers = self._handlers.get(address)
            if handlers is not None and handler in handlers:
                handlers.remove(handler)
                if not handlers:
                    del self._handlers[address]
            logging.debug(f"Consumer unregistered from {address}")

        return Registration(address, remove)

    def consumer_count(self, address: str) -> int:
        return len(self._handlers.get(address, ()))

    async def request(
        self,
        address: str,
        body: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        timeout = self.resolve_timeout(timeout)
        handlers = self._handlers.get(address)
        if not handlers:
            raise ReplyFailure(
                ReplyFailureType.NO_HANDLERS,
                TRANSPORT_FAILURE_CODE,
                f"No handlers for address {address}",
            )

        # Round-robin between consumers bound to the same address
        handler = handlers[0]
        handlers.rotate(-1)

        future = asyncio.get_running_loop().create_future()

        async def respond(outcome: Outcome):
            if not future.done():
                future.set_result(outcome)

        message = Message(address, dict(body or {}), dict(headers or {}), respond)
        task = asyncio.create_task(deliver(handler, message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        try:
            outcome = await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            raise timeout_failure(address, timeout)
        return outcome_result(outcome)

    async def close(self):
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
        self._handlers.clear()
