from pathlib import Path

import pytest

from bus import LocalChannel, ReplyFailure, ReplyFailureType
from core.exceptions import StartupError
from dispatcher import WikiDatabaseService
from storage.queries import DEFAULT_QUERIES_FILE
from tests.conftest import ADDRESS, sqlite_url


def make_service(tmp_path: Path, channel: LocalChannel, **kwargs) -> WikiDatabaseService:
    return WikiDatabaseService(
        channel, db_url=sqlite_url(tmp_path / "wiki.db"), pool_size=2, address=ADDRESS, **kwargs
    )


@pytest.mark.asyncio
async def test_started_service_answers_requests(tmp_path: Path) -> None:
    channel = LocalChannel(default_timeout=5)
    service = make_service(tmp_path, channel)

    await service.start()
    try:
        assert service.is_running
        reply = await channel.request(ADDRESS, {}, {"action": "all-pages"})
    finally:
        await channel.close()
        await service.stop()

    assert reply == {"pages": []}
    assert not service.is_running


@pytest.mark.asyncio
async def test_restart_keeps_existing_pages(tmp_path: Path) -> None:
    first = LocalChannel(default_timeout=5)
    service = make_service(tmp_path, first)
    await service.start()
    await first.request(ADDRESS, {"title": "Home", "markdown": "# Hi"}, {"action": "create-page"})
    await first.close()
    await service.stop()

    second = LocalChannel(default_timeout=5)
    service = make_service(tmp_path, second)
    await service.start()
    try:
        reply = await second.request(ADDRESS, {}, {"action": "all-pages"})
    finally:
        await second.close()
        await service.stop()

    assert reply == {"pages": ["Home"]}


@pytest.mark.asyncio
async def test_bad_queries_file_aborts_startup(tmp_path: Path) -> None:
    channel = LocalChannel(default_timeout=5)
    service = make_service(tmp_path, channel, queries_file=str(tmp_path / "missing.ini"))

    with pytest.raises(StartupError):
        await service.start()

    assert not service.is_running
    with pytest.raises(ReplyFailure) as exc:
        await channel.request(ADDRESS, {}, {"action": "all-pages"})
    assert exc.value.failure_type is ReplyFailureType.NO_HANDLERS


@pytest.mark.asyncio
async def test_schema_failure_aborts_startup(tmp_path: Path) -> None:
    broken = DEFAULT_QUERIES_FILE.read_text(encoding="utf-8").replace(
        "create table if not exists", "create tabel"
    )
    queries_file = tmp_path / "broken.ini"
    queries_file.write_text(broken, encoding="utf-8")
    channel = LocalChannel(default_timeout=5)
    service = make_service(tmp_path, channel, queries_file=str(queries_file))

    with pytest.raises(StartupError):
        await service.start()

    with pytest.raises(ReplyFailure) as exc:
        await channel.request(ADDRESS, {}, {"action": "all-pages"})
    assert exc.value.failure_type is ReplyFailureType.NO_HANDLERS


@pytest.mark.asyncio
async def test_stopped_service_no_longer_consumes(tmp_path: Path) -> None:
    channel = LocalChannel(default_timeout=5)
    service = make_service(tmp_path, channel)
    await service.start()

    await service.stop()

    with pytest.raises(ReplyFailure) as exc:
        await channel.request(ADDRESS, {}, {"action": "all-pages"})
    assert exc.value.failure_type is ReplyFailureType.NO_HANDLERS
    assert channel.consumer_count(ADDRESS) == 0


@pytest.mark.asyncio
async def test_restart_binds_a_single_consumer(tmp_path: Path) -> None:
    channel = LocalChannel(default_timeout=5)
    service = make_service(tmp_path, channel)

    await service.start()
    await service.stop()
    await service.start()
    try:
        assert channel.consumer_count(ADDRESS) == 1
        reply = await channel.request(ADDRESS, {}, {"action": "all-pages"})
    finally:
        await service.stop()
        await channel.close()

    assert reply == {"pages": []}
