from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Dict, Optional
from urllib.parse import quote

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from bus.channel import Channel
from bus.message import ReplyFailure, ReplyFailureType
from core.exceptions import handle_exception
from core.logger import logging
from dispatcher import WikiDatabaseService
from dispatcher.actions import ACTION_HEADER, Action, ErrorCode
from model.page import PageCreate, PageUpdate

EMPTY_PAGE_MARKDOWN = "# A new page\n\nFeel-free to write in Markdown!\n"


def failure_status(failure: ReplyFailure) -> int:
    """HTTP status matching a failed request"""
    if failure.failure_type is ReplyFailureType.NO_HANDLERS:
        return 503
    if failure.failure_type is ReplyFailureType.TIMEOUT:
        return 504
    if failure.code in (ErrorCode.NO_ACTION_SPECIFIED, ErrorCode.BAD_ACTION):
        return 400
    return 500


def create_app(
    channel: Channel,
    address: str = "wikidb.queue",
    service: Optional[WikiDatabaseService] = None,
    timeout: Optional[float] = None,
    on_shutdown: Optional[Callable[[], Awaitable[None]]] = None,
) -> FastAPI:
    """HTTP gateway turning page requests into channel messages"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Storage tier must be listening before the first request
        if service is not None:
            await service.start()

        yield  # Application runs here until shutdown

        if service is not None:
            await service.stop()
        await channel.close()
        if on_shutdown is not None:
            await on_shutdown()

    app = FastAPI(lifespan=lifespan, openapi_url=None)

    async def send(action: Action, body: Optional[Dict[str, Any]] = None) -> Any:
        logging.debug(f"Sending {action.value} to {address} with body {body}")
        try:
            return await channel.request(address, body or {}, {ACTION_HEADER: action.value}, timeout)
        except ReplyFailure as e:
            handle_exception(e, f"Request {action.value} failed", source="web")
            raise HTTPException(status_code=failure_status(e), detail=e.message)

    @app.get("/pages")
    async def index():
        """List page names"""
        reply = await send(Action.ALL_PAGES)
        return JSONResponse({"title": "Wiki home", "pages": reply["pages"]})

    @app.get("/pages/{name}")
    async def get_page(name: str):
        """Get page by name, or a blank page ready to be created"""
        reply = await send(Action.GET_PAGE, {"page": name})
        found = bool(reply.get("found"))
        return JSONResponse(
            {
                "title": name,
                "id": reply.get("id", -1),
                "newPage": not found,
                "rawContent": reply.get("rawContent") if found else EMPTY_PAGE_MARKDOWN,
            }
        )

    @app.post("/pages", status_code=201)
    async def create_page(page: PageCreate):
        await send(Action.CREATE_PAGE, {"title": page.title, "markdown": page.markdown})
        return JSONResponse(
            {"status": "ok", "location": f"/pages/{quote(page.title, safe='')}"}, status_code=201
        )

    @app.put("/pages/{page_id}")
    async def save_page(page_id: int, page: PageUpdate):
        await send(Action.SAVE_PAGE, {"id": str(page_id), "markdown": page.markdown})
        return JSONResponse({"status": "ok"})

    @app.delete("/pages/{page_id}")
    async def delete_page(page_id: int):
        await send(Action.DELETE_PAGE, {"id": str(page_id)})
        return JSONResponse({"status": "ok", "location": "/pages"})

    return app
