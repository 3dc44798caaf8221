from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Union


class ReplyFailureType(str, Enum):
    RECIPIENT_FAILURE = "RECIPIENT_FAILURE"
    NO_HANDLERS = "NO_HANDLERS"
    TIMEOUT = "TIMEOUT"


class ReplyFailure(Exception):
    """A request ended without a reply"""

    def __init__(self, failure_type: ReplyFailureType, code: int, message: str):
        super().__init__(message)
        self.failure_type = failure_type
        self.code = code
        self.message = message

    def __repr__(self):
        return f"ReplyFailure({self.failure_type.value}, code={self.code}, message={self.message!r})"


@dataclass(frozen=True)
class Reply:
    body: Any = None


@dataclass(frozen=True)
class Failure:
    code: int
    message: str


Outcome = Union[Reply, Failure]


@dataclass
class Message:
    """A request travelling on a channel, answered exactly once"""

    address: str
    body: Dict[str, Any] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    responder: Optional[Callable[[Outcome], Awaitable[None]]] = field(default=None, repr=False)
    answered: bool = field(default=False, init=False)

    async def reply(self, body: Any = None):
        await self.respond(Reply(body))

    async def fail(self, code: int, message: str):
        await self.respond(Failure(code, message))

    async def respond(self, outcome: Outcome):
        if self.answered:
            raise RuntimeError(f"Message to {self.address} was already answered")
        self.answered = True
        if self.responder is not None:
            await self.responder(outcome)


Handler = Callable[[Message], Awaitable[None]]
