from core.config import *
from core.logger import logging
from core.exceptions import handle_exception


__all__ = [
    "logging",
    "handle_exception",
]
