import logging
import os
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

DATABASE_URL = os.getenv("SCHOOLLIB_DB", "sqlite:///./schoollib.db")
LOG_LEVEL = os.getenv("SCHOOLLIB_LOG", "INFO")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
# Zone whose calendar decides loan days, e.g. "Asia/Kolkata".
LOCAL_TZ = os.getenv("SCHOOLLIB_TZ", "UTC")


def configure_logging(level=LOG_LEVEL):
    logging.basicConfig(level=level, format=LOG_FORMAT)


def local_now():
    """Current wall-clock time at the desk, stored naive."""
    tz = timezone.utc if LOCAL_TZ == "UTC" else ZoneInfo(LOCAL_TZ)
    return datetime.now(tz).replace(tzinfo=None)
