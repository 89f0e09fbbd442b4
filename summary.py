"""
summary.py — Pipeline statistics, daily summary and stale-application report.
"""

from datetime import datetime, timedelta

import database
from config import STALE_DAYS
from models import (
    LEAD_STATUSES, STATUS_APPLIED, STATUS_INTERVIEWING, JobLead,
)
from monitoring import get_logger

logger = get_logger("summary")

ACTIVE_APPLICATION_STATUSES = (STATUS_APPLIED, STATUS_INTERVIEWING)


def get_stats() -> dict:
    """Totals, per-status and per-source counts, score range and recent activity."""
    now = datetime.now()
    week_ago = (now - timedelta(days=7)).isoformat()

    by_status = {status: 0 for status in LEAD_STATUSES}
    by_status.update(database.count_leads_by("status"))

    scores = database.score_aggregates()

    return {
        "total": database.count_leads(),
        "by_status": by_status,
        "by_source": database.count_leads_by("source"),
        "score_stats": {
            "avg": round(scores["avg"] or 0),
            "max": scores["max"] or 0,
            "min": scores["min"] or 0,
        },
        "recent_activity": {
            "new_leads": database.count_leads_created_since(week_ago),
            "applications": database.count_leads_in_status_updated_since(ACTIVE_APPLICATION_STATUSES, week_ago),
        },
        "daily_counts": database.daily_lead_counts(30),
        "generated_at": now.isoformat(),
    }


def run_daily_summary() -> dict:
    """Log the daily pipeline summary and return the stats it was built from."""
    stats = get_stats()

    logger.info("=" * 50)
    logger.info("JOB RADAR DAILY SUMMARY")
    logger.info(f"Date: {datetime.now().strftime('%A %d %B %Y')}")
    logger.info("Pipeline status:")
    for status, count in stats["by_status"].items():
        logger.info(f"  {status:<14} {count}")
    logger.info("Activity (last 7 days):")
    logger.info(f"  New leads added:    {stats['recent_activity']['new_leads']}")
    logger.info(f"  Applications sent:  {stats['recent_activity']['applications']}")
    if stats["by_source"]:
        logger.info("By source:")
        for source, count in stats["by_source"].items():
            logger.info(f"  {source}: {count} leads")
    logger.info("=" * 50)

    return stats


def check_stale_applications(days: int = STALE_DAYS) -> dict[str, list[JobLead]]:
    """Applied/interviewing leads with no update for the given number of days."""
    cutoff = (datetime.now() - timedelta(days=days)).isoformat()
    stale = database.get_leads_not_updated_since(ACTIVE_APPLICATION_STATUSES, cutoff)

    report = {status: [lead for lead in stale if lead.status == status] for status in ACTIVE_APPLICATION_STATUSES}

    for status, leads in report.items():
        if leads:
            logger.warning(f"{status.title()} with no update in {days}+ days: {len(leads)}")
            for lead in leads:
                logger.warning(f"  - {lead.title} at {lead.company_name}")

    return report
