"""
normalize.py — Text cleanup, URL canonicalization and URL-keyed deduplication.
Every scraper routes its output through here.
"""

import re
from html import unescape
from typing import Iterable, Optional
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

from models import NormalizedPosting

MAX_DESCRIPTION_LENGTH = 500

_WHITESPACE_RE = re.compile(r"\s+")
_TAG_RE = re.compile(r"<[^>]*>")

# Currency-anchored salary: "£45,000 - £55,000 per year", "$120k–$150k", "€60k"
SALARY_RE = re.compile(
    r"[£$€]\s*\d[\d,]*(?:\.\d+)?k?"
    r"(?:\s*[-–]\s*[£$€]?\s*\d[\d,]*(?:\.\d+)?k?)?"
    r"(?:\s*(?:per|/)\s*(?:year|annum|month|hour|hr|pa))?",
    re.IGNORECASE,
)


def clean_text(text: Optional[str]) -> str:
    """Collapse every whitespace run (newlines and tabs included) to one space and trim."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", str(text)).strip()


def strip_tags(html: Optional[str]) -> str:
    """Remove markup from a free-text API field, leaving space-separated text."""
    if not isinstance(html, str):
        return ""
    # Some APIs (Greenhouse) ship entity-escaped markup
    return clean_text(unescape(_TAG_RE.sub(" ", unescape(html))))


def truncate(text: str, limit: int = MAX_DESCRIPTION_LENGTH) -> str:
    if len(text) <= limit:
        return text
    return text[:limit].rstrip()


def extract_salary(text: Optional[str]) -> str:
    """Best-effort salary lookup over a block of text. Empty when nothing currency-like is present."""
    if not text:
        return ""
    match = SALARY_RE.search(text)
    return clean_text(match.group(0)) if match else ""


def canonicalize_url(href: Optional[str], base: str = "", keep_params: Iterable[str] = ()) -> str:
    """
    Make a job URL absolute and stable.

    Relative paths are resolved against the source's base URL, the fragment is
    dropped, the host is lower-cased and only query parameters named in
    keep_params survive (in their original order). Anything that does not end
    up as http(s) becomes "". Applying this twice gives the same result as once.
    """
    if not href or not isinstance(href, str):
        return ""
    href = href.strip()
    if not href:
        return ""

    absolute = urljoin(base, href) if base else href
    try:
        parts = urlsplit(absolute)
    except ValueError:
        return ""
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return ""

    keep = set(keep_params)
    query = ""
    if keep and parts.query:
        kept = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=False) if k in keep]
        query = urlencode(kept)

    return urlunsplit((parts.scheme, parts.netloc.lower(), parts.path, query, ""))


def build_posting(
    source: str,
    title: Optional[str],
    job_url: str,
    company_name: Optional[str] = "",
    location: Optional[str] = "",
    description: Optional[str] = "",
    salary: Optional[str] = None,
) -> Optional[NormalizedPosting]:
    """Apply the NormalizedPosting invariants. Returns None when there is no usable title."""
    title = clean_text(title)
    if not title:
        return None
    return NormalizedPosting(
        title=title,
        company_name=clean_text(company_name),
        location=clean_text(location),
        job_url=job_url or "",
        description=truncate(clean_text(description)),
        source=source,
        salary=clean_text(salary) or None,
    )


def deduplicate(postings: Iterable[NormalizedPosting]) -> list[NormalizedPosting]:
    """
    Keep the first posting for each job_url, in original order.
    Postings without a job_url are always dropped.
    """
    seen = set()
    unique = []
    for posting in postings:
        if not posting.job_url or posting.job_url in seen:
            continue
        seen.add(posting.job_url)
        unique.append(posting)
    return unique
