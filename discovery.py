"""
discovery.py — Discovery sweep orchestrator.

For every active radar zone, builds one search task per enabled source (and
one per tracked ATS board), fetches it, parses it with the known source's
scraper, scores the postings and stores the unseen ones. Each zone × source
unit is fault-isolated: a failing unit is logged and counted, never fatal.
"""

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional
from urllib.parse import quote, quote_plus

import database
import scrapers
from config import BOARD_API_URLS, SEARCH_URL_TEMPLATES
from errors import PipelineError
from fetcher import fetch_board_json, fetch_rendered_html
from models import JobLead, RadarZone, RunLog, SweepStats
from monitoring import get_logger, log_sweep_summary, log_unit_failure, log_unit_success
from scorer import score_many

logger = get_logger("discovery")

KIND_PAGE = "page"
KIND_API = "api"


@dataclass(frozen=True)
class SearchTask:
    """One zone × source unit of work."""
    source: str
    url: str
    kind: str = KIND_PAGE
    org: str = ""


def _lookup(mapping: dict, source: str) -> Optional[str]:
    for key, value in mapping.items():
        if key.lower() == source.lower():
            return value
    return None


def build_search_tasks(zone: RadarZone) -> list[SearchTask]:
    """
    Search tasks for a zone, in generation order: one search page per enabled
    source with a search URL template, then one board API call per tracked
    board of an enabled ATS source.
    """
    tasks = []
    title = quote_plus(zone.search_title or "")
    location = quote_plus(zone.search_location or "")

    for source in zone.enabled_sources:
        template = _lookup(SEARCH_URL_TEMPLATES, source)
        if template:
            tasks.append(SearchTask(
                source=source,
                url=template.format(title=title, location=location),
            ))
        elif not _lookup(BOARD_API_URLS, source):
            logger.warning(f"[{zone.name}] No search URL or board API for source {source!r}, skipping")

    for source in zone.enabled_sources:
        api_template = _lookup(BOARD_API_URLS, source)
        if not api_template:
            continue
        orgs = None
        for key, value in (zone.tracked_boards or {}).items():
            if key.lower() == source.lower():
                orgs = value
        for org in orgs or []:
            if not isinstance(org, str) or not org.strip():
                continue
            org = org.strip()
            tasks.append(SearchTask(
                source=source,
                url=api_template.format(org=quote(org, safe="")),
                kind=KIND_API,
                org=org,
            ))

    enabled = {source.lower() for source in zone.enabled_sources}
    for source in zone.tracked_boards or {}:
        if source.lower() not in enabled:
            logger.warning(f"[{zone.name}] Tracked boards for {source!r} ignored, source not enabled")

    return tasks


def _fetch_and_parse(
    task: SearchTask,
    render: Callable[[str], Optional[str]],
    fetch_json: Callable[[str], Optional[Any]],
):
    """Fetch one task's content and parse it with the task's source. None means the fetch failed."""
    adapter = scrapers.get_adapter(task.source)
    if adapter is None:
        raise ValueError(f"No scraper registered for source {task.source!r}")

    if task.kind == KIND_API:
        content = fetch_json(task.url)
        if content is None:
            return None
        return adapter.parse_api(content, task.org) if adapter.has_api else []

    content = render(task.url)
    if content is None:
        return None
    return adapter.parse_html(content)


def run_sweep(
    render: Optional[Callable[[str], Optional[str]]] = None,
    fetch_json: Optional[Callable[[str], Optional[Any]]] = None,
    zones: Optional[list[RadarZone]] = None,
    trigger: str = "manual",
) -> SweepStats:
    """
    Run one discovery sweep over the active radar zones.

    render/fetch_json default to the Playwright and httpx fetchers; zones
    defaults to the stored active zones, read once as the scoring snapshot.
    Raises PipelineError (carrying the counters so far) only for a failure
    outside the per-unit boundary.
    """
    render = render or fetch_rendered_html
    fetch_json = fetch_json or fetch_board_json

    run_start = time.time()
    stats = SweepStats()

    logger.info("=" * 60)
    logger.info("DISCOVERY SWEEP — Starting")
    logger.info(f"Timestamp: {datetime.now().isoformat()}")
    logger.info("=" * 60)

    try:
        # ===== 1. SNAPSHOT ZONES =====
        snapshot = list(zones) if zones is not None else database.get_active_zones()
        snapshot = [zone for zone in snapshot if zone.active]
        logger.info(f"Sweeping {len(snapshot)} active zones")

        # ===== 2. SWEEP ZONE × SOURCE UNITS =====
        for zone in snapshot:
            try:
                if not (zone.search_title or "").strip() or not (zone.search_location or "").strip():
                    logger.info(f"[{zone.name}] Missing search title or location, skipping zone")
                    stats.zones_skipped += 1
                    continue
                tasks = build_search_tasks(zone)
            except Exception as e:
                # A misconfigured zone loses its own units, never the rest of the sweep
                stats.units_failed += 1
                stats.errors.append(f"{zone.name}: invalid zone configuration: {type(e).__name__}: {e}")
                logger.error(f"[{zone.name}] Could not build search tasks, skipping zone: {type(e).__name__}: {e}")
                continue

            for task in tasks:
                try:
                    postings = _fetch_and_parse(task, render, fetch_json)
                    if postings is None:
                        message = f"{zone.name} / {task.source}: fetch failed for {task.url}"
                        logger.warning(f"[{zone.name} / {task.source}] Fetch failed, skipping unit")
                        stats.units_failed += 1
                        stats.errors.append(message)
                        continue

                    log_unit_success(logger, zone.name, task.source, len(postings))

                    # ===== 3. SCORE + STORE =====
                    for scored in score_many(postings, snapshot):
                        stats.processed += 1
                        lead = JobLead.from_posting(scored.posting, scored.score)
                        if database.insert_lead_if_absent(lead):
                            stats.new += 1
                        else:
                            stats.duplicates += 1
                except Exception as e:
                    stats.units_failed += 1
                    stats.errors.append(f"{zone.name} / {task.source}: {type(e).__name__}: {e}")
                    log_unit_failure(logger, zone.name, task.source, e)
                    continue
    except Exception as e:
        logger.exception(f"Sweep aborted: {e}")
        raise PipelineError(f"Sweep aborted: {e}", stats=stats.to_dict()) from e

    # ===== 4. LOG RUN =====
    duration = time.time() - run_start
    log_sweep_summary(
        logger,
        processed=stats.processed,
        new=stats.new,
        duplicates=stats.duplicates,
        zones_skipped=stats.zones_skipped,
        units_failed=stats.units_failed,
        errors=stats.errors,
        duration=duration,
    )

    try:
        database.log_run(RunLog(
            run_date=datetime.now().isoformat(),
            trigger=trigger,
            processed=stats.processed,
            new=stats.new,
            duplicates=stats.duplicates,
            errors=stats.errors,
            duration_seconds=duration,
        ))
    except Exception as e:
        logger.error(f"Failed to store run log: {e}")

    return stats
