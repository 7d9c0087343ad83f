"""Shared fixtures: in-memory tabs standing in for a real browser."""

import asyncio
import json
from urllib.parse import parse_qs, urlencode, urlsplit

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout

from jobsift.config import Config
from jobsift.scraper.indeed import (
    API_CONTENT_SELECTOR,
    COMPANY_SELECTOR,
    DESCRIPTION_SELECTOR,
    IndeedSession,
    JOB_CARD_SELECTOR,
    JOB_COUNT_SELECTOR,
    JOB_TITLE_SELECTOR,
    pagination_selector,
)

HOME_URL = "https://de.indeed.com/"


# =============================================================================
# Fake browser
# =============================================================================


class FakeElement:
    """Element with fixed text, attributes and children."""

    def __init__(self, id=None, text="", html="", children=None, on_click=None):
        self.attributes = {"id": id} if id is not None else {}
        self.text = text
        self.html = html
        self.children = children or {}
        self.on_click = on_click
        self.clicks = 0

    async def get_attribute(self, name):
        return self.attributes.get(name)

    async def text_content(self):
        return self.text

    async def inner_text(self):
        return self.text

    async def inner_html(self):
        return self.html

    async def click(self):
        self.clicks += 1
        if self.on_click:
            self.on_click()

    async def query_selector(self, selector):
        return self.children.get(selector)


class FakeTab:
    """Tab whose DOM is a dict of selector -> elements."""

    def __init__(self, url="about:blank", elements=None, html=""):
        self._url = url
        self.elements = elements or {}
        self.html = html
        self.visited = []
        self.screenshots = []
        self.fail_goto = False
        self._waiters = []

    @property
    def url(self):
        return self._url

    def navigate(self, url):
        self._url = url
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)

    def load(self, url):
        """Update the DOM for ``url``."""

    def expect_navigation(self):
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        return waiter

    async def goto(self, url):
        if self.fail_goto:
            raise PlaywrightError("net::ERR_CONNECTION_REFUSED")
        self.visited.append(url)
        self.load(url)
        self.navigate(url)

    async def wait_for_selector(self, selector, timeout=None):
        found = self.elements.get(selector)
        if not found:
            raise PlaywrightTimeout(
                f"Timeout {timeout}ms exceeded waiting for {selector}"
            )
        return found[0]

    async def query_selector(self, selector):
        found = self.elements.get(selector)
        return found[0] if found else None

    async def query_selector_all(self, selector):
        return list(self.elements.get(selector, []))

    async def content(self):
        return self.html

    async def screenshot(self, path):
        self.screenshots.append(path)


class FakeResultsTab(FakeTab):
    """Results pages; ``pages`` holds the job ids of each page."""

    def __init__(self, pages, job_count_text="", companies=None, descriptions=None):
        super().__init__(url="about:blank")
        self.pages = pages
        self.job_count_text = job_count_text
        self.companies = companies or {}
        self.descriptions = descriptions or {}
        self.current_page = 0
        self.pagination_enabled = True

    def load(self, url):
        parts = urlsplit(url)
        if not parts.path.startswith("/jobs"):
            self.current_page = 0
            self.elements = {}
            return
        start = int(parse_qs(parts.query).get("start", ["0"])[0])
        self.show_page(start // 10 + 1)

    def page_url(self, page_number):
        params = parse_qs(urlsplit(self.url).query)
        params = {key: values[-1] for key, values in params.items()}
        params["start"] = str((page_number - 1) * 10)
        return f"{HOME_URL}jobs?{urlencode(params)}"

    def click_page(self, page_number):
        if not self.pagination_enabled:
            return
        url = self.page_url(page_number)
        self.show_page(page_number)
        self.navigate(url)

    def show_description(self, job_id):
        self.elements[DESCRIPTION_SELECTOR] = [
            FakeElement(html=self.descriptions.get(job_id, ""))
        ]

    def show_page(self, page_number):
        self.current_page = page_number
        titles = []
        for job_id in self.pages[page_number - 1]:
            card = FakeElement(
                children={
                    COMPANY_SELECTOR: FakeElement(
                        text=self.companies.get(job_id, "ACME GmbH")
                    )
                },
                on_click=lambda job_id=job_id: self.show_description(job_id),
            )
            titles.append(
                FakeElement(
                    id=f"jobTitle-{job_id}",
                    text=f"Job {job_id}",
                    children={JOB_CARD_SELECTOR: card},
                )
            )

        self.elements = {JOB_TITLE_SELECTOR: titles}
        if self.job_count_text:
            self.elements[JOB_COUNT_SELECTOR] = [FakeElement(text=self.job_count_text)]
        for other in range(1, len(self.pages) + 1):
            if other != page_number:
                self.elements[pagination_selector(other)] = [
                    FakeElement(on_click=lambda other=other: self.click_page(other))
                ]


class FakeApiTab(FakeTab):
    """viewjob endpoint answering from ``payloads`` keyed by job id."""

    def __init__(self, payloads=None):
        super().__init__(url="about:blank")
        self.payloads = payloads or {}

    def load(self, url):
        job_id = parse_qs(urlsplit(url).query).get("jk", [""])[0]
        payload = self.payloads.get(job_id)
        if payload is None:
            self.elements = {}
            return
        raw = payload if isinstance(payload, str) else json.dumps(payload)
        self.elements = {API_CONTENT_SELECTOR: [FakeElement(text=raw)]}


def view_job_payload(title, company="ACME GmbH", description="", status="success"):
    """Body of a viewjob response."""
    return {
        "status": status,
        "body": {
            "jobInfoWrapperModel": {
                "jobInfoModel": {
                    "jobInfoHeaderModel": {"jobTitle": title, "companyName": company},
                    "sanitizedJobDescription": description,
                }
            }
        },
    }


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def test_config(tmp_path):
    """Config without delays, writing under a temporary directory."""
    return Config(
        home_url=HOME_URL,
        startup_delay=0,
        min_delay=0,
        max_delay=0,
        modal_check_interval=0.01,
        security_check_interval=0.01,
        page_advance_tries=3,
        page_advance_interval=0.01,
        page_advance_retries=2,
        page_advance_backoff=0,
        output_dir=tmp_path / "output",
        screenshot_dir=tmp_path / "screenshots",
    )


@pytest.fixture
def fake_element():
    return FakeElement


@pytest.fixture
def fake_tab():
    return FakeTab


@pytest.fixture
def make_session(test_config):
    """Build a session on fake tabs.

    ``pages`` lists the job ids of each results page. Jobs without a
    payload get a generic one.
    """

    def _make(pages, payloads=None, config=None, **results_kwargs):
        all_ids = [job_id for page in pages for job_id in page]
        payloads = dict(payloads or {})
        for job_id in all_ids:
            payloads.setdefault(job_id, view_job_payload(f"Job {job_id}"))
        main = FakeResultsTab(pages, **results_kwargs)
        api = FakeApiTab(payloads)
        session = IndeedSession(main, api, config or test_config)
        return session, main, api

    return _make


@pytest.fixture
def payload():
    return view_job_payload
