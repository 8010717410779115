"""Formatting of stackwrapper log records."""
import logging
from functools import lru_cache

MAX_NAME_LEN = 26

LOG_FORMAT = f"%(asctime)s.%(msecs)03d %(sw_level)5s --- %(sw_name)-{MAX_NAME_LEN}s : %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# level names that do not fit the five characters LOG_FORMAT reserves
SHORT_LEVEL_NAMES = {"WARNING": "WARN", "CRITICAL": "FATAL"}


class DefaultFormatter(logging.Formatter):
    def __init__(self, fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT):
        super().__init__(fmt=fmt, datefmt=datefmt)


class AddFormattedAttributes(logging.Filter):
    """Adds ``sw_level`` and ``sw_name``, the short forms of level and logger name ``LOG_FORMAT`` expects."""

    def __init__(self, max_name_len: int = MAX_NAME_LEN):
        super().__init__()
        self.max_name_len = max_name_len

    def filter(self, record):
        record.sw_level = SHORT_LEVEL_NAMES.get(record.levelname, record.levelname)
        record.sw_name = shorten_logger_name(record.name, self.max_name_len)
        return True


@lru_cache(maxsize=256)
def shorten_logger_name(name: str, length: int) -> str:
    """
    Abbreviates the package parts of a logger name to their initials, starting from the left, until the name fits.
    The module part is kept and only cut from the left if it is too long on its own. For example
    ``stackwrapper.cloudformation.controller`` with length=14 turns into ``s.c.controller``.
    """
    parts = name.split(".")
    for i in range(len(parts) - 1):
        if len(".".join(parts)) <= length:
            break
        parts[i] = parts[i][:1]
    shortened = ".".join(parts)
    return shortened if len(shortened) <= length else shortened[-length:]
