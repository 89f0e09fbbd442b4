"""
base.py — Shared building blocks for source scrapers.

Each source is one SourceAdapter record (name, domain, parse_html, parse_api).
Extraction is tiered: container rules and per-field selector chains are tried
in order and the first one that yields something wins. Every strategy is
guarded, so a selector the parser rejects counts as a miss instead of
breaking the chain.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from bs4 import BeautifulSoup, Tag

from models import NormalizedPosting
from normalize import build_posting, clean_text, deduplicate
from monitoring import get_logger

logger = get_logger("scrapers.base")

HtmlParser = Callable[[str], list[NormalizedPosting]]
ApiParser = Callable[[Any, str], list[NormalizedPosting]]
Strategy = Callable[[Tag], str]


@dataclass(frozen=True)
class SourceAdapter:
    """One job source: how to read its markup and, if it has one, its JSON board API."""
    name: str
    domain: str
    parse_html: HtmlParser
    parse_api: Optional[ApiParser] = None

    @property
    def has_api(self) -> bool:
        return self.parse_api is not None


# --- Document handling ---

def make_soup(html: Any) -> Optional[BeautifulSoup]:
    """Parse markup leniently. Returns None for anything that is not a non-empty string."""
    if not isinstance(html, str) or not html.strip():
        return None
    try:
        return BeautifulSoup(html, "html.parser")
    except Exception as e:  # html.parser can still choke on pathological input
        logger.debug(f"Could not parse document: {e}")
        return None


def load_json(payload: Any) -> Any:
    """Accept an already-decoded payload or a JSON string. Undecodable input becomes None."""
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8", errors="replace")
    if isinstance(payload, str):
        try:
            return json.loads(payload)
        except ValueError:
            return None
    return payload


def safe_select(root: Tag, selector: str) -> list[Tag]:
    try:
        return root.select(selector)
    except Exception as e:
        logger.debug(f"Selector {selector!r} failed: {e}")
        return []


def safe_select_one(root: Tag, selector: str) -> Optional[Tag]:
    try:
        return root.select_one(selector)
    except Exception as e:
        logger.debug(f"Selector {selector!r} failed: {e}")
        return None


def find_containers(soup: BeautifulSoup, selectors: Iterable[str]) -> list[Tag]:
    """Return the matches of the first selector that finds at least one container."""
    for selector in selectors:
        containers = safe_select(soup, selector)
        if containers:
            return containers
    return []


def node_text(node: Optional[Tag]) -> str:
    if node is None:
        return ""
    return clean_text(node.get_text(" "))


# --- Field strategies ---

def by_selector(selector: str) -> Strategy:
    """Strategy: text of the first element matching selector."""
    def strategy(card: Tag) -> str:
        return node_text(safe_select_one(card, selector))
    return strategy


def own_text() -> Strategy:
    """Strategy: the container's own text (used when the container is the link itself)."""
    def strategy(card: Tag) -> str:
        return node_text(card)
    return strategy


def first_text(
    card: Tag,
    strategies: Iterable[Strategy],
    min_len: int = 1,
    max_len: Optional[int] = None,
    accept: Optional[Callable[[str], bool]] = None,
) -> str:
    """
    Run strategies in order and return the first text that passes the length
    bounds (exclusive) and the optional accept check. Empty string if none do.
    """
    for strategy in strategies:
        try:
            text = strategy(card)
        except Exception as e:
            logger.debug(f"Extraction strategy failed: {e}")
            continue
        if not text or len(text) < min_len:
            continue
        if max_len is not None and len(text) >= max_len:
            continue
        if accept is not None and not accept(text):
            continue
        return text
    return ""


def selector_chain(*selectors: str) -> list[Strategy]:
    return [by_selector(s) for s in selectors]


def first_href(card: Tag, selectors: Iterable[str]) -> str:
    """href of the first link matched by the first selector that finds one. The card itself counts if it is a link."""
    for selector in selectors:
        link = safe_select_one(card, selector)
        if link is not None and link.get("href"):
            return link.get("href")
    if card.name == "a" and card.get("href"):
        return card.get("href")
    return ""


# --- Postings from containers / links ---

def parse_containers(
    html: Any,
    source: str,
    container_selectors: Iterable[str],
    extract: Callable[[Tag], Optional[NormalizedPosting]],
    link_selectors: Iterable[str] = (),
    link_url: Callable[[str], str] = lambda href: href,
    link_filter: Callable[[str], bool] = lambda href: True,
) -> list[NormalizedPosting]:
    """
    Tiered page parse shared by all scrapers.

    Container rules are tried in order; the first rule that matches anything
    decides the containers and each is handed to extract. When no rule
    matches, every anchor matched by link_selectors becomes a minimal posting
    (link text as title, other fields empty). Output is deduplicated by URL.
    """
    soup = make_soup(html)
    if soup is None:
        return []

    postings = []
    containers = find_containers(soup, container_selectors)
    if containers:
        for card in containers:
            try:
                posting = extract(card)
            except Exception as e:
                logger.debug(f"[{source}] Skipping container: {type(e).__name__}: {e}")
                continue
            if posting is not None:
                postings.append(posting)
        return deduplicate(postings)

    for selector in link_selectors:
        for link in safe_select(soup, selector):
            href = link.get("href") or ""
            if not link_filter(href):
                continue
            title = node_text(link)
            if len(title) <= 2 or len(title) >= 200:
                continue
            posting = build_posting(source=source, title=title, job_url=link_url(href))
            if posting is not None:
                postings.append(posting)
    return deduplicate(postings)


def api_entries(data: Any, *keys: str) -> list[dict]:
    """
    Pull the list of job entries out of an API payload: the payload itself if
    it is a list, else the first of keys that holds a list. Non-dict entries
    are dropped.
    """
    if isinstance(data, list):
        entries = data
    elif isinstance(data, dict):
        entries = []
        for key in keys:
            value = data.get(key)
            if isinstance(value, list):
                entries = value
                break
    else:
        entries = []
    return [entry for entry in entries if isinstance(entry, dict)]


def text_field(entry: dict, *keys: str) -> str:
    """First non-empty text among keys. A dict value contributes its "name"."""
    for key in keys:
        value = entry.get(key)
        if isinstance(value, dict):
            value = value.get("name")
        if isinstance(value, (str, int, float)) and not isinstance(value, bool):
            text = clean_text(str(value))
            if text:
                return text
    return ""
