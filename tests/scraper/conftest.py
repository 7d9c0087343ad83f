"""Shared test fixtures for browser tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def mock_page():
    """Create a mock Playwright page."""
    page = MagicMock()
    page.url = "https://de.indeed.com/"
    page.main_frame = MagicMock(name="main_frame")
    page.goto = AsyncMock(return_value=MagicMock(status=200))
    page.wait_for_selector = AsyncMock()
    page.query_selector = AsyncMock()
    page.query_selector_all = AsyncMock(return_value=[])
    page.content = AsyncMock(return_value="<html></html>")
    page.screenshot = AsyncMock()
    return page


@pytest.fixture
def mock_context(mock_page):
    """Create a mock browser context."""
    context = AsyncMock()
    context.new_page = AsyncMock(return_value=mock_page)
    context.route = AsyncMock()
    context.close = AsyncMock()
    return context


@pytest.fixture
def mock_browser(mock_context):
    """Create a mock browser."""
    browser = AsyncMock()
    browser.new_context = AsyncMock(return_value=mock_context)
    browser.close = AsyncMock()
    return browser
