"""Browser scraping for the job site:
- browser: Tab capabilities, Playwright adapter and shared browser.
- common: Retry until navigated, delays and tag stripping.
- indeed: The search session walking result pages.
"""

from .browser import (
    BrowserManager,
    BrowserTab,
    PlaywrightTab,
    ScraperConfig,
    TabElement,
    Tabs,
)
from .common import (
    NotNavigatedError,
    random_delay,
    remove_tags,
    repeat_action_until_navigated,
)
from .indeed import IndeedSession, get_job_id_from_job_title

__all__ = [
    # Session
    "IndeedSession",
    "get_job_id_from_job_title",
    # Browser
    "BrowserManager",
    "BrowserTab",
    "PlaywrightTab",
    "ScraperConfig",
    "TabElement",
    "Tabs",
    # Helpers
    "NotNavigatedError",
    "random_delay",
    "remove_tags",
    "repeat_action_until_navigated",
]
