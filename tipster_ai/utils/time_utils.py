from datetime import date, datetime
from pytz import timezone, utc

from tipster_ai.config import APP_TIMEZONE

# Timezone used for "today" and log timestamps
APP_TZ = timezone(APP_TIMEZONE)

def get_current_time() -> datetime:
    """Get current time in the application timezone."""
    return datetime.now(APP_TZ)

def get_today() -> date:
    """Get today's calendar date in the application timezone."""
    return get_current_time().date()

def get_utc_now() -> datetime:
    """Get the current UTC time as an aware datetime."""
    return datetime.now(utc)
