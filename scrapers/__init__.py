"""
scrapers — Source registry and dispatcher.

Maps a source name (or "auto") to the right SourceAdapter. Auto mode sniffs
the document for a source fingerprint and, when that fails, trials every
adapter in a fixed order and keeps the first non-empty result.
"""

from typing import Any, Optional

from models import NormalizedPosting
from monitoring import get_logger
from scrapers import ashby, greenhouse, indeed, lever, linkedin, otta, rippling
from scrapers.base import SourceAdapter

logger = get_logger("scrapers")

AUTO = "auto"

# Trial order when the source cannot be detected
ADAPTER_ORDER: list[SourceAdapter] = [
    linkedin.ADAPTER,
    indeed.ADAPTER,
    otta.ADAPTER,
    greenhouse.ADAPTER,
    lever.ADAPTER,
    ashby.ADAPTER,
    rippling.ADAPTER,
]

ADAPTERS: dict[str, SourceAdapter] = {adapter.name.lower(): adapter for adapter in ADAPTER_ORDER}

# Detection precedence: the first source with a fingerprint in the document wins.
# Otta goes last because ATS pages often link to it.
DETECTION_ORDER: list[SourceAdapter] = [
    linkedin.ADAPTER,
    indeed.ADAPTER,
    greenhouse.ADAPTER,
    lever.ADAPTER,
    ashby.ADAPTER,
    rippling.ADAPTER,
    otta.ADAPTER,
]

# Markup fingerprints beyond the source's domain, for pages saved without links
MARKUP_FINGERPRINTS: dict[str, tuple[str, ...]] = {
    linkedin.SOURCE: ("job-card-container",),
    indeed.SOURCE: ("jobsearch-resultslist",),
}

# Matched against the lower-cased document
SOURCE_FINGERPRINTS: list[tuple[str, tuple[str, ...]]] = [
    (adapter.name, (adapter.domain.lower(), *MARKUP_FINGERPRINTS.get(adapter.name, ())))
    for adapter in DETECTION_ORDER
]


def get_adapter(source: Optional[str]) -> Optional[SourceAdapter]:
    """Look up an adapter by source name, case-insensitively."""
    if not isinstance(source, str):
        return None
    return ADAPTERS.get(source.strip().lower())


def known_sources() -> list[str]:
    return [adapter.name for adapter in ADAPTER_ORDER]


def detect_source(html: Any) -> str:
    """Return the name of the first source whose fingerprint appears in html, else "auto"."""
    if not isinstance(html, str):
        return AUTO
    lower_html = html.lower()
    for source, fingerprints in SOURCE_FINGERPRINTS:
        if any(fp in lower_html for fp in fingerprints):
            return source
    return AUTO


def _trial_all(html: str) -> list[NormalizedPosting]:
    for adapter in ADAPTER_ORDER:
        postings = adapter.parse_html(html)
        if postings:
            logger.info(f"Auto-trial matched {adapter.name} ({len(postings)} postings)")
            return postings
    return []


def dispatch(html: Any, source_hint: Optional[str] = AUTO) -> list[NormalizedPosting]:
    """
    Parse a job-board page.

    A known source_hint goes straight to that adapter. "auto" (or an unknown
    hint) sniffs the document first and falls back to trying every adapter.
    Non-string or empty html yields no postings.
    """
    if not isinstance(html, str) or not html.strip():
        return []

    adapter = get_adapter(source_hint)
    if adapter is not None:
        return adapter.parse_html(html)

    if source_hint and str(source_hint).lower() != AUTO:
        logger.warning(f"Unknown source {source_hint!r}, falling back to auto-detection")

    detected = detect_source(html)
    adapter = get_adapter(detected)
    if adapter is not None:
        logger.info(f"Detected source: {adapter.name}")
        return adapter.parse_html(html)

    logger.info("Source not detected, trialling all parsers")
    return _trial_all(html)


def dispatch_api(payload: Any, source: str, org: str) -> list[NormalizedPosting]:
    """Route a JSON board payload to the source's API parser. Sources without one yield nothing."""
    adapter = get_adapter(source)
    if adapter is None or not adapter.has_api:
        logger.warning(f"No API parser for source {source!r}")
        return []
    return adapter.parse_api(payload, org)
