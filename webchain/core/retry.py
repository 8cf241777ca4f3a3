from __future__ import annotations

import logging
from typing import Callable

from selenium.common.exceptions import TimeoutException
from selenium.webdriver.support.wait import WebDriverWait

logger = logging.getLogger(__name__)


def poll_until(driver, attempt: Callable[[], bool], timeout: float, interval: float) -> bool:
    """Calls ``attempt`` every ``interval`` seconds until it passes or ``timeout`` elapses.

    The first attempt runs immediately. Returns whether any attempt passed.
    """

    attempts = 0

    def predicate(_driver) -> bool:
        nonlocal attempts
        attempts += 1
        return attempt()

    waiter = WebDriverWait(driver, timeout, poll_frequency=interval)
    try:
        waiter.until(predicate)
    except TimeoutException:
        logger.warning("Retry gave up after %d attempts over %.2fs", attempts, timeout)
        return False
    logger.info("Retry succeeded after %d attempts", attempts)
    return True
