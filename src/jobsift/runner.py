"""Search, walk every result page and keep the jobs a classifier accepts."""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import structlog

from jobsift.classifier import classify
from jobsift.config import Config, cfg
from jobsift.models import JobType, SearchQuery
from jobsift.scraper.browser import BrowserManager, ScraperConfig
from jobsift.scraper.common import delay, random_delay
from jobsift.scraper.indeed import IndeedSession
from jobsift.sink import MatchSet, output_path_for

logger = structlog.get_logger(logger_name=__name__)


@dataclass
class RunSummary:
    """Outcome of a run."""

    job_count: int
    processed: int
    matched: int
    output_path: Path


async def hunt(
    session: IndeedSession,
    query: SearchQuery,
    mode: JobType,
    matches: MatchSet,
    config: Config | None = None,
) -> RunSummary:
    """Run a search on an open session and save the accepted jobs.

    Args:
        session: Session with both tabs open
        query: What to search for
        mode: Classifier to apply
        matches: Where accepted jobs go
        config: Timing settings, defaults to the global config

    Returns:
        Counts of the run
    """
    config = config or cfg

    await session.navigate_home()
    await delay(config.startup_delay)
    await session.search(query)

    job_count = await session.get_job_count()
    logger.info("Search results", keyword=query.keyword, count=job_count)

    processed = 0
    async for job in session.generator_all_jobs():
        processed += 1
        try:
            verdict = classify(job, mode)
        except Exception as e:
            logger.error("Failed to classify job", url=job.url, error=str(e))
            continue

        if verdict:
            matches.append(job)
            logger.info(
                "Match",
                idx=job.idx,
                page=job.page_number,
                title=job.title,
                company=job.company_name,
                total=len(matches),
            )
        else:
            logger.info(
                "Skipped", idx=job.idx, page=job.page_number, reason=verdict.reason
            )

        await random_delay(config.min_delay, config.max_delay)

    logger.info("Done", processed=processed, matched=len(matches))
    return RunSummary(
        job_count=job_count,
        processed=processed,
        matched=len(matches),
        output_path=matches.path,
    )


def _warn_security_check() -> None:
    logger.warning("Security check page showed up, solve it in the browser window")


async def run(
    query: SearchQuery,
    mode: JobType,
    config: Config | None = None,
) -> RunSummary:
    """Open a browser, run the search and close everything afterwards."""
    config = config or cfg
    matches = MatchSet(output_path_for(query.keyword, datetime.now(), config.output_dir))

    try:
        async with BrowserManager.open_tabs(ScraperConfig.from_config(config)) as tabs:
            session = IndeedSession(tabs.main, tabs.api, config)
            session.start_modal_watcher()
            session.add_security_check_handler(_warn_security_check)
            try:
                return await hunt(session, query, mode, matches, config)
            finally:
                session.stop_modal_watcher()
                session.remove_security_check_handler()
    finally:
        await BrowserManager.close()
