"""
fetcher.py — Page rendering and board API fetching for discovery sweeps.

Search pages are JS-heavy, so they are rendered in headless Chromium through
Playwright. ATS boards expose public JSON APIs, fetched with httpx.
Both return None on failure instead of raising.
"""

import random
import time
from typing import Any, Optional

import httpx
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from config import BOARD_API_TIMEOUT, RENDER
from monitoring import get_logger

logger = get_logger("fetcher")


def _close_browser(browser):
    """Close the browser; a failed close is logged and never propagates."""
    try:
        browser.close()
    except Exception as e:
        logger.warning(f"Failed to close browser cleanly: {type(e).__name__}: {e}")


def fetch_rendered_html(url: str) -> Optional[str]:
    """
    Render a page in a fresh headless browser and return its HTML.
    The browser is closed on every exit path. Returns None on timeout or navigation error.
    """
    try:
        with sync_playwright() as p:
            browser = p.chromium.launch(headless=True)
            try:
                context = browser.new_context(
                    user_agent=random.choice(RENDER["user_agents"]),
                    viewport={"width": 1920, "height": 1080},
                )
                page = context.new_page()
                page.goto(url, timeout=RENDER["navigation_timeout_ms"], wait_until=RENDER["wait_until"])
                time.sleep(RENDER["settle_seconds"])

                # Lazy-loaded result lists only fill in after a scroll
                if RENDER["scroll"]:
                    page.evaluate("window.scrollTo(0, document.body.scrollHeight)")
                    time.sleep(RENDER["settle_seconds"])

                html = page.content()
            finally:
                _close_browser(browser)
    except PlaywrightTimeoutError as e:
        logger.warning(f"Render timed out for {url}: {e}")
        return None
    except PlaywrightError as e:
        logger.error(f"Render failed for {url}: {e}")
        return None

    logger.debug(f"Rendered {url} ({len(html)} chars)")
    return html


def _get_json(client: httpx.Client, url: str) -> Optional[Any]:
    try:
        response = client.get(url, headers={"Accept": "application/json"})
        response.raise_for_status()
        return response.json()
    except httpx.TimeoutException:
        logger.warning(f"Timeout fetching board API {url}")
        return None
    except httpx.HTTPError as e:
        logger.error(f"Board API request failed for {url}: {e}")
        return None
    except ValueError as e:
        logger.error(f"Board API returned invalid JSON for {url}: {e}")
        return None


def fetch_board_json(url: str, client: Optional[httpx.Client] = None) -> Optional[Any]:
    """GET a public ATS board API and decode its JSON body. Returns None on failure."""
    if client is not None:
        return _get_json(client, url)
    with httpx.Client(timeout=BOARD_API_TIMEOUT, follow_redirects=True) as owned_client:
        return _get_json(owned_client, url)
