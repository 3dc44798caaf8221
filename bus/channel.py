from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional

from bus.message import Failure, Handler, Message, Outcome, ReplyFailure, ReplyFailureType
from core.exceptions import handle_exception

# Code used when the consumer itself breaks or the transport gives up
TRANSPORT_FAILURE_CODE = -1


class Channel(ABC):
    """Point-to-point request/reply transport addressed by name"""

    default_timeout: float = 30

    @abstractmethod
    async def consumer(self, address: str, handler: Handler) -> "Registration":
        """Bind ``handler`` to receive every message sent to ``address``

        The returned registration unbinds it again.
        """

    @abstractmethod
    async def request(
        self,
        address: str,
        body: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Send a message and wait for its reply body

        Raises ReplyFailure when the message is failed, nobody listens
        on ``address`` or no answer arrives within ``timeout`` seconds.
        """

    async def close(self):
        pass

    def resolve_timeout(self, timeout: Optional[float]) -> float:
        timeout = self.default_timeout if timeout is None else timeout
        if timeout <= 0:
            raise ValueError(f"Request timeout must be positive, got {timeout}")
        return timeout


class Registration:
    """A consumer bound to an address"""

    def __init__(self, address: str, on_unregister: Callable[[], Awaitable[None]]):
        self.address = address
        self.active = True
        self._on_unregister = on_unregister

    async def unregister(self):
        if not self.active:
            return
        self.active = False
        await self._on_unregister()


def outcome_result(outcome: Outcome) -> Any:
    """Reply body of ``outcome``, or raise for a failure"""
    if isinstance(outcome, Failure):
        raise ReplyFailure(ReplyFailureType.RECIPIENT_FAILURE, outcome.code, outcome.message)
    return outcome.body


def timeout_failure(address: str, timeout: float) -> ReplyFailure:
    return ReplyFailure(
        ReplyFailureType.TIMEOUT,
        TRANSPORT_FAILURE_CODE,
        f"Timed out after waiting {timeout}s for a reply from {address}",
    )


async def deliver(handler: Handler, message: Message):
    """Run ``handler`` and make sure the message ends up answered"""
    try:
        await handler(message)
    except Exception as e:
        handle_exception(e, f"Consumer on {message.address} failed", source="channel")
        if not message.answered:
            await message.fail(TRANSPORT_FAILURE_CODE, str(e))
