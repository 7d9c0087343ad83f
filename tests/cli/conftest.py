"""Shared test fixtures for CLI tests."""

from unittest.mock import AsyncMock, patch

import pytest

from jobsift.runner import RunSummary


@pytest.fixture
def summary(tmp_path):
    """Outcome returned by the mocked run."""
    return RunSummary(
        job_count=120, processed=3, matched=1, output_path=tmp_path / "react_x.json"
    )


@pytest.fixture
def mock_run(summary):
    """Replace the browser run and the logging setup."""
    with patch("jobsift.cli.main.run", new=AsyncMock(return_value=summary)) as run, patch(
        "jobsift.cli.main._initialize_instrumentation"
    ):
        yield run
