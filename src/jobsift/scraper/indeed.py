"""Indeed session: search, walk the result pages and fetch job details.

Two tabs are used. The main tab shows the results and is paginated like a
user would do it. The api tab loads the ``viewjob`` endpoint for each
listing, which returns the job details as JSON.
"""

import asyncio
from pathlib import Path
from typing import AsyncGenerator, Callable
from urllib.parse import parse_qs, urlencode, urlsplit

import structlog
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout
from pydantic import ValidationError

from jobsift.config import Config, cfg
from jobsift.models import DetailSource, JobRecord, SearchQuery, ViewJobResponse
from jobsift.scraper.browser import BrowserTab, TabElement
from jobsift.scraper.common import (
    NotNavigatedError,
    delay,
    repeat_action_until_navigated,
    run_periodically,
)

logger = structlog.get_logger(logger_name=__name__)

# =============================================================================
# Selectors
# =============================================================================

JOB_TITLE_SELECTOR = "span[id^=jobTitle-]"
JOB_TITLE_ID_PREFIX = "jobTitle-"
JOB_CARD_SELECTOR = (
    "xpath=ancestor::*[contains(concat(' ', normalize-space(@class), ' '),"
    " ' cardOutline ')][1]"
)
COMPANY_SELECTOR = "[data-testid='company-name']"
DESCRIPTION_SELECTOR = "#jobDescriptionText"
JOB_COUNT_SELECTOR = ".jobsearch-JobCountAndSortPane-jobCount > span"
MODAL_CLOSE_SELECTOR = '[aria-label="schließen"]'
API_CONTENT_SELECTOR = "pre"


def pagination_selector(page_number: int) -> str:
    """Selector of the pagination link leading to ``page_number``."""
    return f'nav[aria-label=pagination] a[aria-label="{page_number}"]'


def parse_job_count(text: str) -> int:
    """Return the first integer in a results label like "1.234 Jobs", else 0."""
    for token in text.split():
        token = token.replace(",", "").replace(".", "")
        if token.isdigit():
            return int(token)
    return 0


# =============================================================================
# Session
# =============================================================================


class IndeedSession:
    """Owns the main and api tabs of a scraping session."""

    def __init__(
        self,
        page: BrowserTab,
        api_page: BrowserTab,
        config: Config | None = None,
    ):
        self.page = page
        self.api_page = api_page
        self.config = config or cfg
        self.home_url = self.config.home_url
        self.jobs_url = f"{self.home_url}jobs"
        self.view_job_api_url = f"{self.home_url}viewjob"
        self._modal_task: asyncio.Task[None] | None = None
        self._security_task: asyncio.Task[None] | None = None
        self._seen_job_ids: set[str] = set()

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    async def navigate_home(self) -> None:
        """Navigate to the home page."""
        try:
            await self.page.goto(self.home_url)
        except PlaywrightError as e:
            logger.error("navigate_home failed", url=self.home_url, error=str(e))
            raise

    async def search(self, query: SearchQuery) -> None:
        """Navigate to the results of ``query``."""
        params = {"q": query.keyword, "l": query.location}
        if query.distance is not None:
            params["radius"] = query.distance.value
        search_url = f"{self.jobs_url}?{urlencode(params)}"

        logger.info("Searching", url=search_url)
        try:
            await self.page.goto(search_url)
        except PlaywrightError as e:
            logger.error("search failed", url=search_url, error=str(e))
            raise

    def current_url(self) -> str:
        return self.page.url

    def current_search_params(self) -> dict[str, str]:
        """Query string of the current page, one value per key."""
        query = urlsplit(self.page.url).query
        return {key: values[-1] for key, values in parse_qs(query).items()}

    async def reload(self) -> None:
        await self.page.goto(self.page.url)

    async def navigate_page(self, page_number: int) -> bool:
        """Navigate to a page of the results.

        Args:
            page_number: The page to show

        Returns:
            True once the page is shown, False when there is no such page
            or the pagination kept failing.
        """
        selector = pagination_selector(page_number)
        try:
            await self.page.wait_for_selector(
                selector, timeout=self.config.pagination_probe_timeout
            )
        except PlaywrightTimeout:
            logger.info("No more pages", page_number=page_number)
            return False

        async def click_page_button() -> None:
            try:
                button = await self.page.query_selector(selector)
                if button:
                    await button.click()
            except PlaywrightError as e:
                logger.warning(
                    "navigate_page click failed", page_number=page_number, error=str(e)
                )

        for attempt in range(self.config.page_advance_retries + 1):
            try:
                await repeat_action_until_navigated(
                    self.page,
                    click_page_button,
                    tries=self.config.page_advance_tries,
                    interval=self.config.page_advance_interval,
                )
                return True
            except NotNavigatedError as e:
                logger.warning(
                    "navigate_page failed, reloading",
                    page_number=page_number,
                    attempt=attempt + 1,
                    error=str(e),
                )
            if attempt == self.config.page_advance_retries:
                break
            try:
                await self.reload()
            except PlaywrightError as e:
                logger.error("navigate_page reload failed", error=str(e))
            await delay(self.config.page_advance_backoff)

        logger.error("Giving up on pagination", page_number=page_number)
        await self.capture(f"pagination-{page_number}")
        return False

    # -------------------------------------------------------------------------
    # Page chrome
    # -------------------------------------------------------------------------

    async def get_job_count(self) -> int:
        """Number of jobs found by the search, 0 if it cannot be read."""
        try:
            span = await self.page.wait_for_selector(
                JOB_COUNT_SELECTOR, timeout=self.config.selector_timeout
            )
            if span is None:
                return 0
            return parse_job_count(await span.inner_text())
        except PlaywrightError as e:
            logger.warning("get_job_count failed", error=str(e))
            return 0

    async def close_modal_if_there_is(self) -> bool:
        """Close the subscription modal if it is open.

        Returns:
            Whether a modal was closed
        """
        try:
            button = await self.page.wait_for_selector(
                MODAL_CLOSE_SELECTOR, timeout=self.config.modal_timeout
            )
        except PlaywrightTimeout:
            return False
        if button is None:
            return False
        try:
            await button.click()
        except PlaywrightError as e:
            logger.debug("Modal went away before closing", error=str(e))
            return False
        logger.debug("Closed subscription modal")
        return True

    def start_modal_watcher(self, interval: float | None = None) -> None:
        """Close the subscription modal periodically until stopped."""
        self.stop_modal_watcher()
        self._modal_task = run_periodically(
            self.close_modal_if_there_is,
            interval or self.config.modal_check_interval,
            name="modal-watcher",
        )

    def stop_modal_watcher(self) -> None:
        if self._modal_task is not None:
            self._modal_task.cancel()
            self._modal_task = None

    def add_security_check_handler(
        self, callback: Callable[[], None], interval: float | None = None
    ) -> None:
        """Call ``callback`` when the security check page shows up.

        Checks run every ``interval`` seconds, only after one of the tabs
        changed URL. The callback fires once per appearance.
        """
        self.remove_security_check_handler()

        state = {
            "url": self.page.url,
            "api_url": self.api_page.url,
            "detected": False,
        }

        async def check() -> None:
            url, api_url = self.page.url, self.api_page.url
            if url != state["url"] or api_url != state["api_url"]:
                source = await self.page.content()
                api_source = await self.api_page.content()
                marker = self.config.security_check_string
                if marker in source or marker in api_source:
                    if not state["detected"]:
                        callback()
                    state["detected"] = True
                else:
                    state["detected"] = False
            state["url"], state["api_url"] = url, api_url

        self._security_task = run_periodically(
            check,
            interval or self.config.security_check_interval,
            name="security-check",
        )

    def remove_security_check_handler(self) -> None:
        if self._security_task is not None:
            self._security_task.cancel()
            self._security_task = None

    async def capture(self, name: str = "tmp") -> Path | None:
        """Save a screenshot of the main tab."""
        path = self.config.screenshot_dir / f"{name}.jpg"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            await self.page.screenshot(path=str(path))
        except (PlaywrightError, OSError) as e:
            logger.warning("capture failed", path=str(path), error=str(e))
            return None
        logger.info("Saved screenshot", path=str(path))
        return path

    # -------------------------------------------------------------------------
    # Job extraction
    # -------------------------------------------------------------------------

    async def get_job_titles(self) -> list[TabElement]:
        """Return the job title elements of the current page."""
        try:
            await self.page.wait_for_selector(
                JOB_TITLE_SELECTOR, timeout=self.config.selector_timeout
            )
            return await self.page.query_selector_all(JOB_TITLE_SELECTOR)
        except PlaywrightError as e:
            logger.error("get_job_titles failed", url=self.page.url, error=str(e))
            raise

    async def get_job_card_from_job_title(
        self, element: TabElement
    ) -> TabElement | None:
        """Return the card wrapping a job title element."""
        return await element.query_selector(JOB_CARD_SELECTOR)

    def _job_url(self, job_id: str) -> str:
        params = self.current_search_params()
        params["vjk"] = job_id
        return f"{self.jobs_url}?{urlencode(params)}"

    async def get_job_info(self, job_id: str) -> JobRecord | None:
        """Fetch a job through the viewjob endpoint on the api tab.

        Returns:
            The job, or None if the request failed or was not successful
        """
        query_string = urlencode(
            {
                "jk": job_id,
                "from": "hp",
                "viewType": "embedded",
                "spa": "1",
                "hidecmpheader": "0",
                "hostrendertype": "federated",
                "hostId": "homepage",
            }
        )
        url = f"{self.view_job_api_url}?{query_string}"

        try:
            await self.api_page.goto(url)
            pre = await self.api_page.wait_for_selector(
                API_CONTENT_SELECTOR, timeout=self.config.selector_timeout
            )
            raw = await pre.text_content() if pre else None
            if not raw:
                logger.warning("get_job_info empty response", job_id=job_id)
                return None
            response = ViewJobResponse.model_validate_json(raw)
        except (PlaywrightError, ValidationError) as e:
            logger.error("get_job_info failed", job_id=job_id, error=str(e))
            return None

        if response.status != "success" or response.body is None:
            logger.warning("get_job_info unsuccessful", job_id=job_id, status=response.status)
            return None

        job_info = response.body.job_info_wrapper_model.job_info_model
        return JobRecord(
            title=job_info.job_info_header_model.job_title,
            company_name=job_info.job_info_header_model.company_name,
            description=job_info.sanitized_job_description,
            url=self._job_url(job_id),
        )

    async def get_job_info_from_card(
        self, title: TabElement, card: TabElement, job_id: str
    ) -> JobRecord | None:
        """Read a job from its card and the description pane of the main tab."""
        try:
            job_title = (await title.inner_text()).strip()
            company = await card.query_selector(COMPANY_SELECTOR)
            company_name = (await company.inner_text()).strip() if company else ""

            await card.click()
            pane = await self.page.wait_for_selector(
                DESCRIPTION_SELECTOR, timeout=self.config.selector_timeout
            )
            description = await pane.inner_html() if pane else ""
        except PlaywrightError as e:
            logger.error("get_job_info_from_card failed", job_id=job_id, error=str(e))
            return None

        return JobRecord(
            title=job_title,
            company_name=company_name,
            description=description,
            url=self._job_url(job_id),
        )

    async def generator_job_list(self) -> AsyncGenerator[JobRecord, None]:
        """Iterate through the jobs of the current page."""
        try:
            job_titles = await self.get_job_titles()
        except PlaywrightTimeout:
            logger.warning("No listings on page", url=self.page.url)
            return

        # The first job card is selected by default, skip it
        for title in job_titles[1:]:
            try:
                job_id = await get_job_id_from_job_title(title)
            except PlaywrightError as e:
                logger.error("Failed to read job id", error=str(e))
                continue
            if not job_id:
                logger.warning("Job title without id, skipping")
                continue

            if job_id in self._seen_job_ids:
                logger.info("Duplicate listing", job_id=job_id)
            self._seen_job_ids.add(job_id)

            try:
                if self.config.detail_source == DetailSource.DOM:
                    card = await self.get_job_card_from_job_title(title)
                    if card is None:
                        logger.warning("Job card not found", job_id=job_id)
                        continue
                    job_info = await self.get_job_info_from_card(title, card, job_id)
                else:
                    job_info = await self.get_job_info(job_id)
            except PlaywrightError as e:
                logger.error("Failed to fetch job", job_id=job_id, error=str(e))
                continue

            if job_info is None:
                logger.warning("Failed to fetch job", job_id=job_id)
                continue
            yield job_info

    async def generator_all_jobs(self) -> AsyncGenerator[JobRecord, None]:
        """Iterate through the jobs of every page, starting at the current one."""
        page_number = 1
        idx = 0
        has_next_page = True

        while has_next_page:
            async for job_info in self.generator_job_list():
                yield job_info.model_copy(
                    update={"idx": idx, "page_number": page_number}
                )
                idx += 1

            page_number += 1
            has_next_page = await self.navigate_page(page_number)


async def get_job_id_from_job_title(element: TabElement) -> str | None:
    """Job id from the id attribute of a job title element."""
    element_id = await element.get_attribute("id")
    if not element_id or not element_id.startswith(JOB_TITLE_ID_PREFIX):
        return None
    return element_id[len(JOB_TITLE_ID_PREFIX) :]
