from bus.channel import Channel
from bus.local import LocalChannel
from bus.message import Failure, Message, Reply, ReplyFailure, ReplyFailureType
from bus.redis_channel import RedisChannel


__all__ = [
    "Channel",
    "Failure",
    "LocalChannel",
    "Message",
    "RedisChannel",
    "Reply",
    "ReplyFailure",
    "ReplyFailureType",
]
