"""
lever.py — Parser for Lever job boards.

HTML boards use `.posting` blocks with `.posting-title h5`, `.sort-by-location`
and `.sort-by-team`; the public JSON API is
GET https://api.lever.co/v0/postings/{org}
"""

from typing import Any, Optional

from bs4 import Tag

from models import NormalizedPosting
from normalize import build_posting, canonicalize_url, clean_text, deduplicate, extract_salary
from scrapers.base import (
    SourceAdapter, api_entries, first_href, first_text, load_json, node_text, parse_containers,
    selector_chain, text_field,
)

SOURCE = "Lever"
BASE_URL = "https://jobs.lever.co"

CARD_SELECTORS = [
    ".posting",
    'div[class*="posting"]',
]

TITLE_STRATEGIES = selector_chain(".posting-title h5", "h5", '[data-qa="posting-name"]')
LOCATION_STRATEGIES = selector_chain(".sort-by-location", ".posting-categories .location", '[class*="location"]')
TEAM_STRATEGIES = selector_chain(".sort-by-team", ".posting-categories .team", '[class*="team"]')


def canonical_job_url(href: Optional[str]) -> str:
    return canonicalize_url(href, BASE_URL)


def _extract(card: Tag) -> Optional[NormalizedPosting]:
    team = first_text(card, TEAM_STRATEGIES)
    return build_posting(
        source=SOURCE,
        title=first_text(card, TITLE_STRATEGIES),
        job_url=canonical_job_url(first_href(card, ["a.posting-title", 'a[href*="lever.co"]', "a[href]"])),
        location=first_text(card, LOCATION_STRATEGIES),
        description=f"Team: {team}" if team else "",
        salary=extract_salary(node_text(card)),
    )


def parse_html(html: Any) -> list[NormalizedPosting]:
    return parse_containers(
        html,
        SOURCE,
        CARD_SELECTORS,
        _extract,
        link_selectors=['a[href*="jobs.lever.co"]'],
        link_url=canonical_job_url,
    )


def parse_api(payload: Any, org: str) -> list[NormalizedPosting]:
    """Parse the postings API (a JSON array); org becomes the company name."""
    data = load_json(payload)
    org = org if isinstance(org, str) else ""
    postings = []

    # The API answers with a bare array; an object here is an error body
    for entry in api_entries(data if isinstance(data, list) else []):
        categories = entry.get("categories") if isinstance(entry.get("categories"), dict) else {}
        team = text_field(categories, "team")
        commitment = text_field(categories, "commitment")
        desc_parts = []
        if team:
            desc_parts.append(f"Team: {team}")
        if commitment:
            desc_parts.append(commitment)

        job_url = canonical_job_url(entry.get("hostedUrl")) or canonical_job_url(entry.get("applyUrl"))
        if not job_url and entry.get("id") and org:
            job_url = canonical_job_url(f"{BASE_URL}/{org}/{entry['id']}")

        posting = build_posting(
            source=SOURCE,
            title=text_field(entry, "text", "title"),
            job_url=job_url,
            company_name=org,
            location=text_field(categories, "location"),
            description=clean_text(" | ".join(desc_parts)),
        )
        if posting is not None:
            postings.append(posting)

    return deduplicate(postings)


ADAPTER = SourceAdapter(name=SOURCE, domain="lever.co", parse_html=parse_html, parse_api=parse_api)
