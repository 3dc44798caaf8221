import asyncio

import pytest

from bus import LocalChannel, Message, ReplyFailure, ReplyFailureType


@pytest.mark.asyncio
async def test_request_without_consumer_fails_fast() -> None:
    channel = LocalChannel()

    with pytest.raises(ReplyFailure) as exc:
        await channel.request("nobody.home", {})

    assert exc.value.failure_type is ReplyFailureType.NO_HANDLERS


@pytest.mark.asyncio
async def test_reply_carries_headers_and_body() -> None:
    channel = LocalChannel()

    async def echo(message: Message) -> None:
        await message.reply({"headers": message.headers, "body": message.body})

    await channel.consumer("echo", echo)

    reply = await channel.request("echo", {"page": "Home"}, {"action": "get-page"})

    assert reply == {"headers": {"action": "get-page"}, "body": {"page": "Home"}}
    await channel.close()


@pytest.mark.asyncio
async def test_fail_reaches_the_sender() -> None:
    channel = LocalChannel()

    async def refuse(message: Message) -> None:
        await message.fail(3, "nope")

    await channel.consumer("refuse", refuse)

    with pytest.raises(ReplyFailure) as exc:
        await channel.request("refuse", {})

    assert exc.value.failure_type is ReplyFailureType.RECIPIENT_FAILURE
    assert (exc.value.code, exc.value.message) == (3, "nope")
    await channel.close()


@pytest.mark.asyncio
async def test_silent_consumer_times_out() -> None:
    channel = LocalChannel()

    async def silent(message: Message) -> None:
        await asyncio.sleep(10)

    await channel.consumer("silent", silent)

    with pytest.raises(ReplyFailure) as exc:
        await channel.request("silent", {}, timeout=0.05)

    assert exc.value.failure_type is ReplyFailureType.TIMEOUT
    await channel.close()


@pytest.mark.asyncio
async def test_crashing_consumer_still_answers() -> None:
    channel = LocalChannel()

    async def crash(message: Message) -> None:
        raise KeyError("boom")

    await channel.consumer("crash", crash)

    with pytest.raises(ReplyFailure) as exc:
        await channel.request("crash", {})

    assert exc.value.code == -1
    assert "boom" in exc.value.message
    await channel.close()


@pytest.mark.asyncio
async def test_message_is_answered_only_once() -> None:
    channel = LocalChannel()
    errors = []

    async def twice(message: Message) -> None:
        await message.reply("first")
        try:
            await message.fail(1, "second")
        except RuntimeError as e:
            errors.append(e)

    await channel.consumer("twice", twice)

    assert await channel.request("twice", {}) == "first"
    await asyncio.sleep(0)
    assert len(errors) == 1
    await channel.close()


@pytest.mark.asyncio
async def test_consumers_on_one_address_take_turns() -> None:
    channel = LocalChannel()

    def named(name):
        async def handler(message: Message) -> None:
            await message.reply(name)

        return handler

    await channel.consumer("pool", named("a"))
    await channel.consumer("pool", named("b"))

    replies = [await channel.request("pool", {}) for _ in range(4)]

    assert replies == ["a", "b", "a", "b"]
    await channel.close()


@pytest.mark.asyncio
async def test_unregistered_consumer_gets_nothing() -> None:
    channel = LocalChannel()

    async def echo(message: Message) -> None:
        await message.reply("here")

    registration = await channel.consumer("echo", echo)
    await registration.unregister()
    await registration.unregister()

    assert not registration.active
    assert channel.consumer_count("echo") == 0
    with pytest.raises(ReplyFailure) as exc:
        await channel.request("echo", {})
    assert exc.value.failure_type is ReplyFailureType.NO_HANDLERS


@pytest.mark.asyncio
async def test_unregister_leaves_other_consumers_bound() -> None:
    channel = LocalChannel()

    async def first(message: Message) -> None:
        await message.reply("first")

    async def second(message: Message) -> None:
        await message.reply("second")

    registration = await channel.consumer("pool", first)
    await channel.consumer("pool", second)
    await registration.unregister()

    assert [await channel.request("pool", {}) for _ in range(2)] == ["second", "second"]
    await channel.close()


@pytest.mark.asyncio
@pytest.mark.parametrize("timeout", [0, -1])
async def test_timeout_must_be_positive(timeout: float) -> None:
    channel = LocalChannel()

    async def echo(message: Message) -> None:
        await message.reply("here")

    await channel.consumer("echo", echo)

    with pytest.raises(ValueError):
        await channel.request("echo", {}, timeout=timeout)
    await channel.close()
