"""
main.py — Entrypoints and command-line interface for the Job Radar pipeline.
Coordinates ingestion, discovery sweeps, rescoring and reporting.
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import database
import scrapers
from companies_house import enrich_lead
from config import DEFAULT_ENABLED_SOURCES, STALE_DAYS, validate_config
from discovery import run_sweep
from errors import MalformedRequestError, PipelineError, RadarError
from models import LEAD_STATUSES, JobLead, RadarZone
from monitoring import get_logger, log_pipeline_step, setup_logging
from scorer import rescore_all_leads, score_many
from summary import check_stale_applications, get_stats, run_daily_summary

logger = get_logger("main")

HTML_KEYS = ("raw_html", "rawHtml")


def ingest(payload: Any) -> dict:
    """
    Parse pasted job-board HTML, score it and store the unseen postings.

    payload: {"raw_html": str, "source": str = "auto"} ("rawHtml" also accepted).
    A payload without the html key is a client error; empty or non-string
    html simply parses to nothing.
    """
    if not isinstance(payload, dict) or not any(key in payload for key in HTML_KEYS):
        raise MalformedRequestError("raw_html is required")

    raw_html = payload["raw_html"] if "raw_html" in payload else payload["rawHtml"]
    source = payload.get("source") or scrapers.AUTO

    try:
        # ===== 1. PARSE =====
        postings = scrapers.dispatch(raw_html, source)
        log_pipeline_step(logger, "Parse", len(postings), len(postings))

        if not postings:
            return {
                "success": True,
                "message": "No jobs found in the provided HTML",
                "stats": {"parsed": 0, "new": 0, "duplicates": 0},
                "leads": [],
            }

        # ===== 2. SCORE =====
        scored = score_many(postings, database.get_active_zones())

        # ===== 3. STORE =====
        saved_leads = []
        duplicates = 0
        for item in scored:
            lead = database.insert_lead_if_absent(JobLead.from_posting(item.posting, item.score))
            if lead is None:
                duplicates += 1
                continue
            saved_leads.append(lead)

        log_pipeline_step(logger, "Store", len(scored), len(saved_leads))
    except Exception as e:
        logger.exception(f"Ingestion failed: {e}")
        raise PipelineError("Failed to ingest jobs") from e

    return {
        "success": True,
        "stats": {"parsed": len(postings), "new": len(saved_leads), "duplicates": duplicates},
        "leads": [lead.to_dict() for lead in saved_leads],
    }


def sweep(trigger: str = "manual") -> dict:
    """Run a discovery sweep across all active radar zones and return its counters."""
    try:
        stats = run_sweep(trigger=trigger)
    except PipelineError:
        raise
    except Exception as e:
        logger.exception(f"Discovery sweep failed: {e}")
        raise PipelineError("Failed to run discovery sweep") from e
    return stats.to_dict()


def rescore() -> int:
    """Recompute match scores for every stored lead. Returns the number rescored."""
    try:
        return rescore_all_leads()
    except Exception as e:
        logger.exception(f"Rescoring failed: {e}")
        raise PipelineError("Failed to rescore leads") from e


def add_zone(
    name: str,
    search_title: str = "",
    search_location: str = "",
    green_flags: Optional[list[str]] = None,
    red_flags: Optional[list[str]] = None,
    enabled_sources: Optional[list[str]] = None,
    tracked_boards: Optional[dict[str, list[str]]] = None,
) -> RadarZone:
    """
    Create a radar zone. Unknown source names are rejected.
    A tracked board enables its source, since boards are only swept for enabled sources.
    """
    if not name or not name.strip():
        raise MalformedRequestError("Zone name is required")

    sources = enabled_sources or list(DEFAULT_ENABLED_SOURCES)
    unknown = [s for s in sources if scrapers.get_adapter(s) is None]
    if unknown:
        raise MalformedRequestError(f"Unknown sources: {', '.join(unknown)}")
    enabled = []
    for source in sources:
        adapter_name = scrapers.get_adapter(source).name
        if adapter_name not in enabled:
            enabled.append(adapter_name)

    boards: dict[str, list[str]] = {}
    for source, orgs in (tracked_boards or {}).items():
        adapter = scrapers.get_adapter(source)
        if adapter is None or not adapter.has_api:
            raise MalformedRequestError(f"Source {source!r} has no board API to track")
        boards.setdefault(adapter.name, []).extend(orgs)
        if adapter.name not in enabled:
            enabled.append(adapter.name)

    zone = database.create_zone(RadarZone(
        name=name.strip(),
        search_title=search_title.strip(),
        search_location=search_location.strip(),
        green_flags=green_flags or [],
        red_flags=red_flags or [],
        enabled_sources=enabled,
        tracked_boards=boards,
    ))
    logger.info(f"Created radar zone {zone.id}: {zone.name}")
    return zone


# --- CLI ---

def _parse_boards(values: Optional[list[str]]) -> dict[str, list[str]]:
    """Turn ["Greenhouse:acme", "Lever:initech"] into {"Greenhouse": ["acme"], "Lever": ["initech"]}."""
    boards: dict[str, list[str]] = {}
    for value in values or []:
        source, sep, org = value.partition(":")
        adapter = scrapers.get_adapter(source)
        if not sep or not org.strip() or adapter is None or not adapter.has_api:
            raise MalformedRequestError(f"Invalid tracked board {value!r}; expected SOURCE:ORG for an ATS source")
        boards.setdefault(adapter.name, []).append(org.strip())
    return boards


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="job-radar", description="Job Radar acquisition pipeline")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="create the database and seed builtin sources")

    ingest_cmd = commands.add_parser("ingest", help="ingest a saved job-board HTML page")
    ingest_cmd.add_argument("file", type=Path)
    ingest_cmd.add_argument("--source", default=scrapers.AUTO,
                            help=f"one of {', '.join(scrapers.known_sources())} or auto")

    commands.add_parser("sweep", help="run a discovery sweep over active radar zones")
    commands.add_parser("rescore", help="rescore every stored lead against current zones")
    commands.add_parser("stats", help="print pipeline statistics")
    commands.add_parser("summary", help="log the daily summary")

    stale_cmd = commands.add_parser("stale", help="list applications with no recent update")
    stale_cmd.add_argument("--days", type=int, default=STALE_DAYS)

    enrich_cmd = commands.add_parser("enrich", help="enrich a lead's company from Companies House")
    enrich_cmd.add_argument("lead_id", type=int)

    leads_cmd = commands.add_parser("leads", help="list stored leads")
    leads_cmd.add_argument("--status", choices=LEAD_STATUSES)

    commands.add_parser("zones", help="list radar zones")

    zone_cmd = commands.add_parser("add-zone", help="create a radar zone")
    zone_cmd.add_argument("name")
    zone_cmd.add_argument("--title", default="", help="search title")
    zone_cmd.add_argument("--location", default="", help="search location")
    zone_cmd.add_argument("--green", action="append", default=[], help="green flag (repeatable)")
    zone_cmd.add_argument("--red", action="append", default=[], help="red flag (repeatable)")
    zone_cmd.add_argument("--source", action="append", dest="sources", default=[], help="enabled source (repeatable)")
    zone_cmd.add_argument("--board", action="append", default=[], help="tracked ATS board as SOURCE:ORG (repeatable)")

    return parser


def run_command(args: argparse.Namespace) -> Any:
    if args.command == "init-db":
        return {"success": True, "database": str(database.DB_PATH)}

    if args.command == "ingest":
        try:
            raw_html = args.file.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise MalformedRequestError(f"Cannot read {args.file}: {e}") from e
        return ingest({"raw_html": raw_html, "source": args.source})

    if args.command == "sweep":
        return {"success": True, "stats": sweep(trigger="cli")}

    if args.command == "rescore":
        return {"success": True, "rescored": rescore()}

    if args.command == "stats":
        return get_stats()

    if args.command == "summary":
        return run_daily_summary()

    if args.command == "stale":
        report = check_stale_applications(args.days)
        return {status: [lead.to_dict() for lead in leads] for status, leads in report.items()}

    if args.command == "enrich":
        return enrich_lead(args.lead_id)

    if args.command == "leads":
        return [lead.to_dict() for lead in database.list_leads(args.status)]

    if args.command == "zones":
        return [vars(zone) for zone in database.list_zones()]

    if args.command == "add-zone":
        zone = add_zone(
            args.name,
            search_title=args.title,
            search_location=args.location,
            green_flags=args.green,
            red_flags=args.red,
            enabled_sources=args.sources,
            tracked_boards=_parse_boards(args.board),
        )
        return vars(zone)

    raise MalformedRequestError(f"Unknown command {args.command!r}")


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else None)

    for warning in validate_config():
        logger.warning(f"Config: {warning}")

    logger.info(f"JOB RADAR — {args.command} ({datetime.now().isoformat()})")

    try:
        database.init_db()
        result = run_command(args)
    except RadarError as e:
        logger.error(f"{type(e).__name__}: {e}")
        print(json.dumps({"success": False, "error": str(e), "status": e.status_code}, indent=2))
        return 2 if e.status_code < 500 else 1
    except Exception as e:
        logger.exception(f"Unhandled error: {e}")
        print(json.dumps({"success": False, "error": "Internal error", "status": 500}, indent=2))
        return 1

    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
