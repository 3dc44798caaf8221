import os
import pathlib

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = pathlib.Path(__file__).parent.parent

# Debug mode
DEBUG = os.environ.get("DEBUG", False)

# Database configuration
WIKI_DB_URL = os.getenv("WIKI_DB_URL", "sqlite:///db/wiki.db")
WIKI_DB_DRIVER = os.getenv("WIKI_DB_DRIVER", "")
WIKI_DB_MAX_POOL_SIZE = int(os.getenv("WIKI_DB_MAX_POOL_SIZE", 30))
WIKI_SQL_QUERIES_FILE = os.getenv("WIKI_SQL_QUERIES_FILE", "")

# Channel configuration
WIKI_DB_QUEUE = os.getenv("WIKI_DB_QUEUE", "wikidb.queue")
WIKI_CHANNEL = os.getenv("WIKI_CHANNEL", "local")
WIKI_REQUEST_TIMEOUT = float(os.getenv("WIKI_REQUEST_TIMEOUT", 30))

# Redis configuration
REDIS_HOST = os.getenv("REDIS_HOST", "redis")
REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
REDIS_PROTOCOL = int(os.getenv("REDIS_PROTOCOL", 3))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", "")

# Web service configuration
WEB_HOST = os.getenv("WEB_HOST", "0.0.0.0")
WEB_PORT = int(os.getenv("WEB_PORT", 8080))

# Logging configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
