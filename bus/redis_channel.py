import asyncio
import json
import uuid
from typing import Any, Dict, List, Optional, Set

from bus.channel import Channel, Registration, deliver, outcome_result, timeout_failure
from bus.message import Failure, Handler, Message, Outcome, Reply
from core.exceptions import handle_exception
from core.logger import logging

# Seconds an unread reply list is kept around
REPLY_TTL = 60


def encode_outcome(outcome: Outcome) -> str:
    if isinstance(outcome, Failure):
        return json.dumps({"ok": False, "code": outcome.code, "message": outcome.message})
    return json.dumps({"ok": True, "body": outcome.body})


def decode_outcome(raw) -> Outcome:
    data = json.loads(raw)
    if data.get("ok"):
        return Reply(data.get("body"))
    return Failure(int(data.get("code", -1)), data.get("message", ""))


class RedisChannel(Channel):
    """Channel over Redis lists, one list per address plus one per reply

    Messages are JSON envelopes of headers, body and the name of the list
    the answer must be pushed to.
    """

    def __init__(self, client, default_timeout: float = 30, poll_interval: float = 1):
        self.client = client
        self.default_timeout = default_timeout
        self.poll_interval = poll_interval
        self._consumers: List[asyncio.Task] = []
        self._tasks: Set[asyncio.Task] = set()

    async def consumer(self, address: str, handler: Handler) -> Registration:
        task = asyncio.create_task(self._consume(address, handler))
        self._consumers.append(task)
        logging.debug(f"Consumer registered on redis list {address}")

        async def stop_consuming():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            if task in self._consumers:
                self._consumers.remove(task)
            logging.debug(f"Consumer unregistered from redis list {address}")

        return Registration(address, stop_consuming)

    async def _consume(self, address: str, handler: Handler):
        while True:
            try:
                item = await self.client.blpop([address], timeout=self.poll_interval)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                handle_exception(e, f"Failed to read from {address}", source="channel")
                await asyncio.sleep(self.poll_interval)
                continue

            if not item:
                continue

            try:
                message = self._decode_message(address, item[1])
            except (ValueError, TypeError, AttributeError) as e:
                handle_exception(e, f"Dropped malformed message on {address}", source="channel")
                continue

            task = asyncio.create_task(deliver(handler, message))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    def _decode_message(self, address: str, raw) -> Message:
        envelope = json.loads(raw)
        reply_to = envelope.get("reply_to")

        async def respond(outcome: Outcome):
            if not reply_to:
                return
            await self.client.rpush(reply_to, encode_outcome(outcome))
            await self.client.expire(reply_to, REPLY_TTL)

        return Message(
            address,
            envelope.get("body") or {},
            envelope.get("headers") or {},
            respond,
        )

    async def request(
        self,
        address: str,
        body: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        timeout = self.resolve_timeout(timeout)
        reply_to = f"{address}.reply.{uuid.uuid4().hex}"
        envelope = {"headers": headers or {}, "body": body or {}, "reply_to": reply_to}
        await self.client.rpush(address, json.dumps(envelope))

        item = await self.client.blpop([reply_to], timeout=timeout)
        if not item:
            raise timeout_failure(address, timeout)
        return outcome_result(decode_outcome(item[1]))

    async def close(self):
        tasks = self._consumers + list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._consumers.clear()
        self._tasks.clear()
