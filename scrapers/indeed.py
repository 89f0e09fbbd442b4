"""
indeed.py — Parser for Indeed (UK) search results.
Jobs are keyed by their "jk" id; every link is reduced to /viewjob?jk=<id>.
"""

import re
from typing import Any, Optional
from urllib.parse import parse_qs, urlencode, urlsplit

from bs4 import Tag

from models import NormalizedPosting
from normalize import build_posting, canonicalize_url, extract_salary
from scrapers.base import (
    SourceAdapter, first_href, first_text, node_text, parse_containers, safe_select_one,
    selector_chain,
)

SOURCE = "Indeed"
BASE_URL = "https://uk.indeed.com"

CARD_SELECTORS = [
    ".job_seen_beacon",
    ".jobsearch-ResultsList > li",
    "[data-jk]",
    ".result",
    ".tapItem",
]

JOB_LINK_SELECTORS = ['a[href*="/rc/clk"]', 'a[href*="/viewjob"]', "a.jcs-JobTitle"]
FALLBACK_LINK_SELECTORS = ['a[href*="/viewjob"]', 'a[href*="/rc/clk"]']

TITLE_STRATEGIES = selector_chain(
    ".jobTitle span",
    ".jobTitle",
    "h2.jobTitle",
    '[class*="jobTitle"]',
    "a[data-jk]",
)
COMPANY_STRATEGIES = selector_chain(
    '[data-testid="company-name"]',
    ".companyName",
    ".company",
    '[class*="company"]',
)
LOCATION_STRATEGIES = selector_chain(
    '[data-testid="text-location"]',
    ".companyLocation",
    ".location",
    '[class*="location"]',
)
SALARY_STRATEGIES = selector_chain(
    '[data-testid="attribute_snippet_testid"]',
    ".salary-snippet-container",
    ".salaryText",
    '[class*="salary"]',
)
DESCRIPTION_STRATEGIES = selector_chain(
    ".job-snippet",
    '[class*="snippet"]',
    ".summary",
)

_SALARY_HINT_RE = re.compile(r"[£$€\d]")


def canonical_job_url(href: Optional[str], job_id: str = "") -> str:
    """Indeed job links carry tracking noise; only the jk id identifies the job."""
    url = canonicalize_url(href, BASE_URL, keep_params=("jk",))
    jk = (parse_qs(urlsplit(url).query).get("jk") or [""])[0] or job_id
    if jk:
        return f"{BASE_URL}/viewjob?{urlencode({'jk': jk})}"
    return url


def _job_id(card: Tag) -> str:
    job_id = card.get("data-jk") or ""
    if not job_id:
        link = safe_select_one(card, "a[data-jk]")
        if link is not None:
            job_id = link.get("data-jk") or ""
    return job_id.strip()


def _work_arrangement(card: Tag) -> str:
    metadata = " ".join(
        node_text(el) for el in card.select('[class*="metadata"], [class*="attribute"]')
    ).lower()
    if "remote" in metadata:
        return "Remote"
    if "hybrid" in metadata:
        return "Hybrid"
    return ""


def _extract(card: Tag) -> Optional[NormalizedPosting]:
    job_id = _job_id(card)
    job_url = canonical_job_url(first_href(card, JOB_LINK_SELECTORS), job_id)

    title = first_text(card, TITLE_STRATEGIES, min_len=3, max_len=200)
    company = first_text(card, COMPANY_STRATEGIES, min_len=2, max_len=100)
    location = first_text(card, LOCATION_STRATEGIES, min_len=3, max_len=100)
    arrangement = _work_arrangement(card)
    if arrangement:
        location = f"{location} ({arrangement})" if location else arrangement

    salary = first_text(card, SALARY_STRATEGIES, accept=lambda text: bool(_SALARY_HINT_RE.search(text)))
    if not salary:
        salary = extract_salary(node_text(card))

    return build_posting(
        source=SOURCE,
        title=title,
        job_url=job_url,
        company_name=company,
        location=location,
        description=first_text(card, DESCRIPTION_STRATEGIES, min_len=11),
        salary=salary,
    )


def parse_html(html: Any) -> list[NormalizedPosting]:
    return parse_containers(
        html,
        SOURCE,
        CARD_SELECTORS,
        _extract,
        link_selectors=FALLBACK_LINK_SELECTORS,
        link_url=canonical_job_url,
    )


ADAPTER = SourceAdapter(name=SOURCE, domain="indeed.com", parse_html=parse_html)
