"""
linkedin.py — Parser for LinkedIn job search results.
Handles both the logged-in and the public (logged-out) search layouts.
"""

import re
from typing import Any, Optional

from bs4 import Tag

from models import NormalizedPosting
from normalize import build_posting, canonicalize_url, extract_salary
from scrapers.base import (
    SourceAdapter, first_href, first_text, node_text, parse_containers, selector_chain,
)

SOURCE = "LinkedIn"
BASE_URL = "https://www.linkedin.com"

CARD_SELECTORS = [
    # Logged-in search results
    ".job-card-container",
    ".jobs-search-results__list-item",
    "[data-job-id]",
    # Public search
    ".base-card",
    ".job-search-card",
    # Generic
    'li[class*="job"]',
]

JOB_LINK_SELECTORS = ['a[href*="/jobs/view/"]', 'a[href*="/jobs/collections/"]']

TITLE_STRATEGIES = selector_chain(
    ".job-card-list__title",
    ".base-search-card__title",
    "h3",
    "h4",
    '[class*="title"]',
    'a[href*="/jobs/"]',
)
COMPANY_STRATEGIES = selector_chain(
    ".job-card-container__company-name",
    ".base-search-card__subtitle",
    '[class*="company"]',
    "h4",
    ".artdeco-entity-lockup__subtitle",
)
LOCATION_STRATEGIES = selector_chain(
    ".job-card-container__metadata-item",
    ".job-search-card__location",
    '[class*="location"]',
    ".artdeco-entity-lockup__caption",
)
DESCRIPTION_STRATEGIES = selector_chain(
    ".job-card-list__insight",
    '[class*="description"]',
    '[class*="snippet"]',
)

_JOB_VIEW_RE = re.compile(r"^https://(?:[a-z]{2,3}\.|www\.)?linkedin\.com/jobs/view/(?:[^/?#]*-)?(\d+)(?=[/?#]|$)")


def canonical_job_url(href: Optional[str]) -> str:
    """Reduce a LinkedIn job link to https://www.linkedin.com/jobs/view/<id> when it has an id."""
    url = canonicalize_url(href, BASE_URL)
    match = _JOB_VIEW_RE.match(url)
    if match:
        return f"{BASE_URL}/jobs/view/{match.group(1)}"
    return url


def _extract(card: Tag) -> Optional[NormalizedPosting]:
    job_url = canonical_job_url(first_href(card, JOB_LINK_SELECTORS))
    title = first_text(card, TITLE_STRATEGIES, min_len=3, max_len=200)
    company = first_text(
        card, COMPANY_STRATEGIES, min_len=2, max_len=100, accept=lambda text: text != title,
    )
    location = first_text(card, LOCATION_STRATEGIES, min_len=3, max_len=100)
    description = first_text(card, DESCRIPTION_STRATEGIES, min_len=11)

    return build_posting(
        source=SOURCE,
        title=title,
        job_url=job_url,
        company_name=company,
        location=location,
        description=description,
        salary=extract_salary(node_text(card)),
    )


def parse_html(html: Any) -> list[NormalizedPosting]:
    return parse_containers(
        html,
        SOURCE,
        CARD_SELECTORS,
        _extract,
        link_selectors=JOB_LINK_SELECTORS,
        link_url=canonical_job_url,
    )


ADAPTER = SourceAdapter(name=SOURCE, domain="linkedin.com", parse_html=parse_html)
