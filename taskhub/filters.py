# taskhub/filters.py
import logging
from datetime import datetime

log = logging.getLogger(__name__)


def format_time(value) -> str:
    """ISO timestamp -> 24h 'HH:MM'. Strings that already look like a time pass through."""
    if not value:
        return "Unknown time"
    try:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        if isinstance(value, str) and ":" in value:
            return value
        return "Unknown time"
    return dt.strftime("%H:%M")


def initials(username) -> str:
    if not username or not isinstance(username, str):
        return "U"
    parts = [p for p in username.split(" ") if p]
    return "".join(p[0].upper() for p in parts)[:2] or "U"


def register_filters(app):
    app.add_template_filter(format_time, "format_time")
    app.add_template_filter(initials, "initials")
