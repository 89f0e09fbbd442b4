"""
ashby.py — Parser for Ashby job boards.

Ashby boards are a React SPA with little server-rendered markup, so the HTML
parser leans on job links; the public JSON API is
GET https://api.ashbyhq.com/posting-api/job-board/{org}
"""

from typing import Any, Optional

from bs4 import Tag

from models import NormalizedPosting
from normalize import build_posting, canonicalize_url, clean_text, deduplicate, extract_salary
from scrapers.base import (
    SourceAdapter, api_entries, first_href, first_text, load_json, node_text, own_text,
    parse_containers, selector_chain, text_field,
)

SOURCE = "Ashby"
BASE_URL = "https://jobs.ashbyhq.com"

CARD_SELECTORS = [
    '[data-testid="job-posting"]',
    'a[href*="/jobs/"]',
    '[class*="posting"]',
    '[class*="job-listing"]',
]

TITLE_STRATEGIES = selector_chain("h3", "h4", '[class*="title"]') + [own_text()]
LOCATION_STRATEGIES = selector_chain('[class*="location"]', '[class*="Location"]')
TEAM_STRATEGIES = selector_chain('[class*="team"]', '[class*="department"]')


def canonical_job_url(href: Optional[str]) -> str:
    return canonicalize_url(href, BASE_URL)


def _extract(card: Tag) -> Optional[NormalizedPosting]:
    team = first_text(card, TEAM_STRATEGIES)
    return build_posting(
        source=SOURCE,
        title=first_text(card, TITLE_STRATEGIES, max_len=200),
        job_url=canonical_job_url(first_href(card, ["a[href]"])),
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
        link_selectors=['a[href*="/jobs/"]', 'a[href*="/posting/"]'],
        link_url=canonical_job_url,
    )


def parse_api(payload: Any, org: str) -> list[NormalizedPosting]:
    """Parse the posting API response; org becomes the company name."""
    data = load_json(payload)
    org = org if isinstance(org, str) else ""
    postings = []

    for entry in api_entries(data, "jobs", "postings"):
        team = text_field(entry, "departmentName", "team", "department")
        employment_type = text_field(entry, "employmentType")
        desc_parts = []
        if team:
            desc_parts.append(f"Team: {team}")
        if employment_type:
            desc_parts.append(employment_type)

        job_url = canonical_job_url(entry.get("jobUrl")) or canonical_job_url(entry.get("applyUrl"))
        if not job_url and entry.get("id") and org:
            job_url = canonical_job_url(f"{BASE_URL}/{org}/{entry['id']}")

        posting = build_posting(
            source=SOURCE,
            title=text_field(entry, "title"),
            job_url=job_url,
            company_name=org,
            location=text_field(entry, "location", "locationName"),
            description=clean_text(" | ".join(desc_parts)),
        )
        if posting is not None:
            postings.append(posting)

    return deduplicate(postings)


ADAPTER = SourceAdapter(name=SOURCE, domain="ashbyhq.com", parse_html=parse_html, parse_api=parse_api)
