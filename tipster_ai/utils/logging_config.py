import logging

from tipster_ai.config import LOG_FORMAT, LOG_LEVEL
from tipster_ai.utils.time_utils import get_current_time


# Log timestamps in the application timezone
class AppTimeFormatter(logging.Formatter):
    def formatTime(self, record, datefmt=None):
        ct = get_current_time()
        if datefmt:
            s = ct.strftime(datefmt)
        else:
            t = ct.strftime("%Y-%m-%d %H:%M:%S")
            s = "%s,%03d" % (t, record.msecs)
        return s


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Install a single root handler with the application formatter."""
    handler = logging.StreamHandler()
    handler.setFormatter(AppTimeFormatter(LOG_FORMAT))
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers = [handler]
