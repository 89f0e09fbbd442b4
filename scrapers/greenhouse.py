"""
greenhouse.py — Parser for Greenhouse job boards.

HTML boards list `.opening` divs (classic) or `tr.job-post` rows (new
boards); the public JSON API is
GET https://boards-api.greenhouse.io/v1/boards/{org}/jobs
"""

from typing import Any, Optional

from bs4 import Tag

from models import NormalizedPosting
from normalize import build_posting, canonicalize_url, deduplicate, extract_salary, strip_tags
from scrapers.base import (
    SourceAdapter, api_entries, first_href, first_text, load_json, node_text, own_text,
    parse_containers, selector_chain, text_field,
)
from monitoring import get_logger

logger = get_logger("scrapers.greenhouse")

SOURCE = "Greenhouse"
BASE_URL = "https://boards.greenhouse.io"

CARD_SELECTORS = [
    ".opening",
    'div[class*="opening"]',
    "tr.job-post",
]

TITLE_STRATEGIES = selector_chain("a", '[class*="title"]', "p") + [own_text()]
LOCATION_STRATEGIES = selector_chain(".location", 'span[class*="location"]', '[class*="location"]')


def canonical_job_url(href: Optional[str]) -> str:
    # gh_jid identifies the job on boards embedded in a company careers page
    return canonicalize_url(href, BASE_URL, keep_params=("gh_jid",))


def _extract(card: Tag) -> Optional[NormalizedPosting]:
    return build_posting(
        source=SOURCE,
        title=first_text(card, TITLE_STRATEGIES, min_len=1, max_len=200),
        job_url=canonical_job_url(first_href(card, ["a[href]"])),
        location=first_text(card, LOCATION_STRATEGIES),
        salary=extract_salary(node_text(card)),
    )


def parse_html(html: Any) -> list[NormalizedPosting]:
    return parse_containers(
        html,
        SOURCE,
        CARD_SELECTORS,
        _extract,
        link_selectors=['a[href*="/jobs/"]'],
        link_url=canonical_job_url,
    )


def parse_api(payload: Any, org: str) -> list[NormalizedPosting]:
    """Parse the public board API response; org becomes the company name."""
    data = load_json(payload)
    org = org if isinstance(org, str) else ""
    postings = []

    for entry in api_entries(data, "jobs"):
        job_url = canonical_job_url(entry.get("absolute_url"))
        if not job_url and entry.get("id") is not None and org:
            job_url = canonical_job_url(f"{BASE_URL}/{org}/jobs/{entry['id']}")

        posting = build_posting(
            source=SOURCE,
            title=text_field(entry, "title"),
            job_url=job_url,
            company_name=org,
            location=text_field(entry, "location"),
            description=strip_tags(entry.get("content")),
        )
        if posting is not None:
            postings.append(posting)

    logger.debug(f"Greenhouse API ({org or 'unknown org'}): {len(postings)} postings")
    return deduplicate(postings)


ADAPTER = SourceAdapter(name=SOURCE, domain="greenhouse.io", parse_html=parse_html, parse_api=parse_api)
