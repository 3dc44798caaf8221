from enum import Enum, IntEnum


class Action(str, Enum):
    """Persistence operations a message can ask for"""

    ALL_PAGES = "all-pages"
    GET_PAGE = "get-page"
    CREATE_PAGE = "create-page"
    SAVE_PAGE = "save-page"
    DELETE_PAGE = "delete-page"


class ErrorCode(IntEnum):
    """Failure codes sent back to the requester"""

    NO_ACTION_SPECIFIED = 0
    BAD_ACTION = 1
    DB_ERROR = 2


ACTION_HEADER = "action"
