"""
otta.py — Parser for Otta job search results.
Otta renders cards with the company shown prominently and skill tags instead of a summary.
"""

from typing import Any, Optional

from bs4 import Tag

from models import NormalizedPosting
from normalize import build_posting, canonicalize_url, extract_salary
from scrapers.base import (
    SourceAdapter, first_href, first_text, node_text, parse_containers, safe_select,
    selector_chain,
)

SOURCE = "Otta"
BASE_URL = "https://otta.com"

CARD_SELECTORS = [
    '[data-testid="job-card"]',
    ".job-card",
    "article",
    '[class*="JobCard"]',
]

TITLE_STRATEGIES = selector_chain("h2", "h3", '[class*="title"]', 'a[href*="/jobs/"]')
COMPANY_STRATEGIES = selector_chain('[class*="company"]', '[class*="Company"]', 'a[href*="/companies/"]')
LOCATION_STRATEGIES = selector_chain('[class*="location"]', '[class*="Location"]')
TAG_SELECTOR = '[class*="tag"], [class*="Tag"], [class*="skill"], [class*="Skill"]'


def canonical_job_url(href: Optional[str]) -> str:
    return canonicalize_url(href, BASE_URL)


def _is_job_link(href: str) -> bool:
    return "/jobs/" in href and "/jobs/search" not in href


def _skills(card: Tag) -> str:
    tags = []
    for el in safe_select(card, TAG_SELECTOR):
        text = node_text(el)
        if text and len(text) < 50 and text not in tags:
            tags.append(text)
    return "Skills: " + ", ".join(tags) if tags else ""


def _extract(card: Tag) -> Optional[NormalizedPosting]:
    title = first_text(card, TITLE_STRATEGIES, min_len=3, max_len=200)
    return build_posting(
        source=SOURCE,
        title=title,
        job_url=canonical_job_url(first_href(card, ['a[href*="/jobs/"]'])),
        company_name=first_text(
            card, COMPANY_STRATEGIES, min_len=2, max_len=100, accept=lambda text: text != title,
        ),
        location=first_text(card, LOCATION_STRATEGIES, min_len=3, max_len=100),
        description=_skills(card),
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
        link_filter=_is_job_link,
    )


ADAPTER = SourceAdapter(name=SOURCE, domain="otta.com", parse_html=parse_html)
