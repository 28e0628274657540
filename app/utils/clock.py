from datetime import datetime
from zoneinfo import ZoneInfo

from app.config import get_settings


def local_now() -> datetime:
    """Naive wall-clock "now" in the configured timezone (the engine works in naive local time)."""
    tz = ZoneInfo(get_settings().TIMEZONE)
    return datetime.now(tz=tz).replace(tzinfo=None, microsecond=0)
