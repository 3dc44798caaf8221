import asyncio
from typing import Any, Dict

from bus.message import Failure, Message, Outcome, Reply
from core.exceptions import StoreError, handle_exception
from core.logger import logging
from dispatcher.actions import ACTION_HEADER, Action, ErrorCode
from storage.store import PageStore

OK = "ok"


class ActionDispatcher:
    """Route channel messages to page store operations by their action header

    Every message gets exactly one outcome: a reply with the action's
    payload, or a failure carrying an ErrorCode. Nothing is kept between
    messages, so any number of them can be in flight at once.
    """

    def __init__(self, store: PageStore):
        self.store = store

    async def on_message(self, message: Message):
        logging.debug(f"Got message with headers {message.headers} and body {message.body}")
        outcome = await self.handle(message.headers, message.body)
        await message.respond(outcome)

    async def handle(self, headers: Dict[str, str], body: Dict[str, Any]) -> Outcome:
        action_name = headers.get(ACTION_HEADER)
        if action_name is None:
            logging.error(f"No action header specified for message with headers {headers} and body {body}")
            return Failure(ErrorCode.NO_ACTION_SPECIFIED, "No action header specified.")

        try:
            action = Action(action_name)
        except ValueError:
            logging.error(f"Bad action {action_name!r}")
            return Failure(ErrorCode.BAD_ACTION, f"Bad action {action_name}")

        try:
            # Store calls block, keep them off the event loop
            payload = await asyncio.to_thread(self.run, action, body or {})
        except StoreError as e:
            handle_exception(e, f"Database error on {action.value}", source="dispatcher")
            return Failure(ErrorCode.DB_ERROR, str(e))
        return Reply(payload)

    def run(self, action: Action, body: Dict[str, Any]) -> Any:
        if action is Action.ALL_PAGES:
            return {"pages": self.store.list_page_names()}

        elif action is Action.GET_PAGE:
            page = self.store.get_page(body.get("page"))
            if page is None:
                return {"found": False}
            return {"found": True, "id": page.id, "rawContent": page.content}

        elif action is Action.CREATE_PAGE:
            self.store.create_page(body.get("title"), body.get("markdown"))
            return OK

        elif action is Action.SAVE_PAGE:
            self.store.save_page(body.get("id"), body.get("markdown"))
            return OK

        elif action is Action.DELETE_PAGE:
            self.store.delete_page(body.get("id"))
            return OK

        raise ValueError(f"Unhandled action {action}")
