"""Keyword rules deciding whether a job listing is worth keeping.

Each classifier runs ordered checks on the lower-cased title and the
tag-stripped description and stops at the first one that fails.
"""

import re
from typing import Callable

import structlog

from jobsift.models import JobRecord, JobType, Verdict
from jobsift.scraper.common import remove_tags

logger = structlog.get_logger(logger_name=__name__)

SENIORITY_MARKERS = ("senior", "lead", "principal", "head of")
FRONTEND_TITLE_KEYWORDS = ("front", "react")
FRONTEND_DESCRIPTION_KEYWORDS = ("react",)
EXCLUDED_VARIANTS = ("react native",)
INTERNSHIP_PATTERN = re.compile(r"\bintern(ship)?s?\b|\bpraktik")

# (word, minimum count) pairs, any of which marks a German text
GERMAN_FUNCTION_WORDS = (("wir ", 2), ("du ", 5))
GERMAN_OPT_OUTS = ("international", "german is a plus")

Classifier = Callable[[JobRecord], Verdict]


def count_word(text: str, word: str) -> int:
    """Count occurrences of ``word`` in ``text``, overlaps included."""
    count = 0
    idx = text.find(word)
    while idx != -1:
        count += 1
        idx = text.find(word, idx + 1)
    return count


def is_german_text(text: str) -> bool:
    """Guess whether a lower-cased text is written in German."""
    looks_german = any(
        count_word(text, word) >= minimum for word, minimum in GERMAN_FUNCTION_WORDS
    )
    return looks_german and not any(phrase in text for phrase in GERMAN_OPT_OUTS)


def _normalize(job: JobRecord) -> tuple[str, str]:
    return job.title.lower(), remove_tags(job.description).lower()


def _seniority(title: str) -> Verdict | None:
    for marker in SENIORITY_MARKERS:
        if marker in title:
            return Verdict(False, f"senior or lead position ({marker!r} in title)")
    return None


def is_junior_react_position(job: JobRecord) -> Verdict:
    title, description = _normalize(job)

    rejected = _seniority(title)
    if rejected is not None:
        return rejected

    in_title = any(keyword in title for keyword in FRONTEND_TITLE_KEYWORDS)
    in_description = any(
        keyword in description for keyword in FRONTEND_DESCRIPTION_KEYWORDS
    )
    if not in_title and not in_description:
        return Verdict(False, "not a front position")

    # Without a front keyword in the title, the description decides the topic
    for variant in EXCLUDED_VARIANTS:
        if variant in title or (not in_title and variant in description):
            return Verdict(False, f"{variant} position")

    if is_german_text(description):
        return Verdict(False, "is a German position")

    return Verdict(True, "junior front position")


def is_internship_position(job: JobRecord) -> Verdict:
    title, description = _normalize(job)

    rejected = _seniority(title)
    if rejected is not None:
        return rejected

    if not (INTERNSHIP_PATTERN.search(title) or INTERNSHIP_PATTERN.search(description)):
        return Verdict(False, "not an internship position")

    if is_german_text(description):
        return Verdict(False, "is a German position")

    return Verdict(True, "internship position")


CLASSIFIERS: dict[JobType, Classifier] = {
    JobType.INTERN: is_internship_position,
    JobType.JUNIOR_REACT: is_junior_react_position,
}


def classify(job: JobRecord, mode: JobType) -> Verdict:
    """Run the classifier of ``mode`` on a job and log the outcome."""
    verdict = CLASSIFIERS[mode](job)
    logger.debug(
        "Classified job",
        title=job.title,
        mode=mode.value,
        accepted=verdict.accepted,
        reason=verdict.reason,
    )
    return verdict
