# aptsearch/utils.py
"""Shared utilities such as logging, retry decorators and rounding helpers."""
import math
import logging
import time
from functools import wraps


def get_logger(name=__name__, level="INFO"):
    logging.basicConfig(
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        level=getattr(logging, str(level).upper(), logging.INFO)
    )
    return logging.getLogger(name)

logger = get_logger("aptsearch")


def configure_logging(level: str):
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))


def retry(exceptions, tries=3, delay=1, backoff=2, logger=logger):
    def deco_retry(f):
        @wraps(f)
        def f_retry(*args, **kwargs):
            mtries, mdelay = tries, delay
            while mtries > 1:
                try:
                    return f(*args, **kwargs)
                except exceptions as e:
                    logger.warning("Retryable error: %s, retrying in %s sec", e, mdelay)
                    time.sleep(mdelay)
                    mtries -= 1
                    mdelay *= backoff
            return f(*args, **kwargs)
        return f_retry
    return deco_retry


def round_half_up(value: float) -> int:
    # 2.5 -> 3, unlike the builtin round()
    return int(math.floor(value + 0.5))


def clamp(value: int, low: int = 0, high: int = 10) -> int:
    return max(low, min(high, value))
