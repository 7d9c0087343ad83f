import asyncio
import inspect
import random
import re
from typing import Any, Awaitable, Callable

import structlog

from jobsift.scraper.browser import BrowserTab

logger = structlog.get_logger(logger_name=__name__)

Action = Callable[[], Awaitable[Any] | Any]

_TAG_RE = re.compile(r"<[^>]*>")


class NotNavigatedError(Exception):
    """Raised when repeated actions never made the page navigate."""


def remove_tags(text: str) -> str:
    """Strip HTML tags from a string."""
    return _TAG_RE.sub("", text)


async def delay(seconds: float) -> None:
    await asyncio.sleep(seconds)


async def random_delay(min_seconds: float, max_seconds: float) -> float:
    """Sleep for a random duration within the band and return it."""
    seconds = random.uniform(min_seconds, max_seconds)
    await asyncio.sleep(seconds)
    return seconds


async def repeat_action_until_navigated(
    tab: BrowserTab,
    action: Action,
    tries: int = 10,
    interval: float = 1.0,
) -> int:
    """Call ``action`` until ``tab`` navigates.

    The action runs right away, then once per ``interval`` seconds. Stops
    as soon as a navigation is seen and returns the attempt that caused it.

    Args:
        tab: Tab expected to navigate
        action: Sync or async callable, e.g. clicking a link
        tries: Maximum number of times the action is called
        interval: Seconds between two calls

    Returns:
        The 1-based attempt after which the tab navigated

    Raises:
        NotNavigatedError: If ``tries`` attempts did not navigate the tab
    """
    if tries < 1:
        raise ValueError(f"tries must be at least 1, got {tries}")

    navigated = tab.expect_navigation()
    try:
        for attempt in range(1, tries + 1):
            result = action()
            if inspect.isawaitable(result):
                await result

            done, _ = await asyncio.wait({navigated}, timeout=interval)
            if done:
                logger.debug("Page navigated", attempt=attempt)
                return attempt

        raise NotNavigatedError(
            f"The page has not been navigated after {tries} attempts."
        )
    finally:
        navigated.cancel()


def run_periodically(
    callback: Callable[[], Awaitable[Any]], interval: float, name: str
) -> "asyncio.Task[None]":
    """Run ``callback`` every ``interval`` seconds in a background task.

    A failing call is logged and does not stop the loop. Cancel the
    returned task to stop it.
    """

    async def _loop() -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await callback()
            except Exception as e:
                logger.error("Periodic task failed", task=name, error=str(e))

    return asyncio.create_task(_loop(), name=name)
