"""Playwright-based browser automation for the job site.

Provides:
- The tab capabilities the scraper relies on (``BrowserTab``, ``TabElement``)
- A Playwright adapter implementing them (``PlaywrightTab``)
- Shared browser instance with resource blocking (``BrowserManager``)
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncGenerator, NamedTuple, Protocol

import structlog
from playwright.async_api import (
    Browser,
    BrowserContext,
    ElementHandle,
    Frame,
    Page,
    Playwright,
    Route,
    async_playwright,
)

from jobsift.config import Config

logger = structlog.get_logger(logger_name=__name__)


# =============================================================================
# Capabilities
# =============================================================================


class TabElement(Protocol):
    """The subset of an element handle the scraper uses."""

    async def get_attribute(self, name: str) -> str | None: ...

    async def text_content(self) -> str | None: ...

    async def inner_text(self) -> str: ...

    async def inner_html(self) -> str: ...

    async def click(self) -> None: ...

    async def query_selector(self, selector: str) -> "TabElement | None": ...


class BrowserTab(Protocol):
    """The subset of a browser tab the scraper uses."""

    @property
    def url(self) -> str: ...

    async def goto(self, url: str) -> None: ...

    def expect_navigation(self) -> "asyncio.Future[None]": ...

    async def wait_for_selector(
        self, selector: str, timeout: int | None = None
    ) -> TabElement | None: ...

    async def query_selector(self, selector: str) -> TabElement | None: ...

    async def query_selector_all(self, selector: str) -> list[TabElement]: ...

    async def content(self) -> str: ...

    async def screenshot(self, path: str) -> None: ...


# =============================================================================
# Configuration
# =============================================================================


@dataclass
class ScraperConfig:
    """Configuration for the Playwright browser."""

    headless: bool = False
    timeout: int = 30000  # ms
    viewport_width: int = 1440
    viewport_height: int = 900
    block_resources: bool = True
    blocked_resource_types: tuple[str, ...] = (
        "image",
        "media",
        "font",
    )
    blocked_domains: tuple[str, ...] = (
        "google-analytics.com",
        "googletagmanager.com",
        "facebook.com",
        "doubleclick.net",
        "ads.",
        "tracking.",
        "analytics.",
    )
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    @classmethod
    def from_config(cls, config: Config) -> "ScraperConfig":
        return cls(headless=config.headless, timeout=config.navigation_timeout)


DEFAULT_CONFIG = ScraperConfig()


# =============================================================================
# Playwright adapter
# =============================================================================


class PlaywrightTab:
    """Wraps a Playwright page as a ``BrowserTab``.

    Navigation of the main frame is tracked from the moment the tab is
    wrapped, so an expectation registered before an action cannot miss
    a navigation the action triggers.
    """

    def __init__(self, page: Page, timeout: int = 30000):
        self._page = page
        self._timeout = timeout
        self._waiters: list[asyncio.Future[None]] = []
        page.on("framenavigated", self._on_frame_navigated)

    @property
    def page(self) -> Page:
        return self._page

    @property
    def url(self) -> str:
        return self._page.url

    def _on_frame_navigated(self, frame: Frame) -> None:
        if frame != self._page.main_frame:
            return
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)

    def expect_navigation(self) -> "asyncio.Future[None]":
        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        return waiter

    async def goto(self, url: str) -> None:
        await self._page.goto(url, wait_until="domcontentloaded", timeout=self._timeout)

    async def wait_for_selector(
        self, selector: str, timeout: int | None = None
    ) -> ElementHandle | None:
        return await self._page.wait_for_selector(
            selector, timeout=self._timeout if timeout is None else timeout
        )

    async def query_selector(self, selector: str) -> ElementHandle | None:
        return await self._page.query_selector(selector)

    async def query_selector_all(self, selector: str) -> list[ElementHandle]:
        return await self._page.query_selector_all(selector)

    async def content(self) -> str:
        return await self._page.content()

    async def screenshot(self, path: str) -> None:
        await self._page.screenshot(path=path)


class Tabs(NamedTuple):
    """The two tabs of a session: navigation and detail fetching."""

    main: PlaywrightTab
    api: PlaywrightTab


# =============================================================================
# Browser Manager
# =============================================================================


class BrowserManager:
    """Manages a shared browser instance.

    Usage:
        async with BrowserManager.open_tabs(config) as tabs:
            await tabs.main.goto(url)
    """

    _playwright: Playwright | None = None
    _browser: Browser | None = None
    _lock: asyncio.Lock = asyncio.Lock()
    _config: ScraperConfig = DEFAULT_CONFIG

    @classmethod
    async def initialize(cls, config: ScraperConfig | None = None) -> None:
        """Initialize the browser manager with configuration."""
        async with cls._lock:
            if config:
                cls._config = config
            if cls._browser is None:
                cls._playwright = await async_playwright().start()
                cls._browser = await cls._playwright.chromium.launch(
                    headless=cls._config.headless,
                    args=[
                        "--no-sandbox",
                        "--disable-dev-shm-usage",
                        "--disable-blink-features=AutomationControlled",
                    ],
                )
                logger.info("Browser initialized", headless=cls._config.headless)

    @classmethod
    async def close(cls) -> None:
        """Close the browser and cleanup resources."""
        async with cls._lock:
            if cls._browser:
                await cls._browser.close()
                cls._browser = None
            if cls._playwright:
                await cls._playwright.stop()
                cls._playwright = None
            logger.info("Browser closed")

    @classmethod
    @asynccontextmanager
    async def get_context(
        cls, config: ScraperConfig | None = None
    ) -> AsyncGenerator[BrowserContext, None]:
        """Get a browser context, closed when done.

        Both tabs of a session share it, so cookies set while browsing
        the results are sent along with the detail requests.
        """
        cfg = config or cls._config

        # Ensure browser is initialized
        if cls._browser is None:
            await cls.initialize(config)

        assert cls._browser is not None

        context = await cls._browser.new_context(
            user_agent=cfg.user_agent,
            viewport={"width": cfg.viewport_width, "height": cfg.viewport_height},
            java_script_enabled=True,
        )

        # Set up resource blocking if enabled
        if cfg.block_resources:
            await context.route("**/*", lambda route: _handle_route(route, cfg))

        try:
            yield context
        finally:
            await context.close()

    @classmethod
    @asynccontextmanager
    async def open_tabs(
        cls, config: ScraperConfig | None = None
    ) -> AsyncGenerator[Tabs, None]:
        """Open the main and api tabs in one context."""
        cfg = config or cls._config
        async with cls.get_context(config) as context:
            main = PlaywrightTab(await context.new_page(), timeout=cfg.timeout)
            api = PlaywrightTab(await context.new_page(), timeout=cfg.timeout)
            yield Tabs(main=main, api=api)


async def _handle_route(route: Route, config: ScraperConfig) -> None:
    """Handle route interception for resource blocking."""
    request = route.request

    # Block by resource type
    if request.resource_type in config.blocked_resource_types:
        await route.abort()
        return

    # Block by domain
    url = request.url
    for blocked in config.blocked_domains:
        if blocked in url:
            await route.abort()
            return

    await route.continue_()
