from datetime import datetime, timedelta

import database
from models import STATUS_APPLIED, STATUS_ARCHIVED, STATUS_INTERVIEWING, STATUS_NEW, JobLead
from summary import check_stale_applications, get_stats, run_daily_summary


def _lead(url, status=STATUS_NEW, score=0, source="LinkedIn", age_days=0):
    stamp = (datetime.now() - timedelta(days=age_days)).isoformat()
    return JobLead(
        title="Backend Engineer", company_name="Acme", job_url=url, source=source,
        match_score=score, status=status, created_at=stamp, updated_at=stamp,
    )


def test_stats_on_empty_database(db):
    stats = get_stats()
    assert stats["total"] == 0
    assert stats["by_status"] == {
        "RADAR_NEW": 0, "SHORTLISTED": 0, "APPLIED": 0, "INTERVIEWING": 0, "ARCHIVED": 0,
    }
    assert stats["score_stats"] == {"avg": 0, "max": 0, "min": 0}
    assert stats["daily_counts"] == []


def test_stats_counts(db):
    database.insert_lead_if_absent(_lead("https://a/1", score=40))
    database.insert_lead_if_absent(_lead("https://a/2", status=STATUS_APPLIED, score=10, source="Indeed"))
    database.insert_lead_if_absent(_lead("https://a/3", status=STATUS_ARCHIVED, score=-20, age_days=40))

    stats = get_stats()

    assert stats["total"] == 3
    assert stats["by_status"]["RADAR_NEW"] == 1
    assert stats["by_status"]["APPLIED"] == 1
    assert stats["by_status"]["ARCHIVED"] == 1
    assert stats["by_source"] == {"Indeed": 1, "LinkedIn": 2}
    assert stats["score_stats"] == {"avg": 10, "max": 40, "min": -20}
    assert stats["recent_activity"] == {"new_leads": 2, "applications": 1}
    assert stats["daily_counts"] == [{"date": datetime.now().date().isoformat(), "count": 2}]


def test_daily_summary_returns_stats(db):
    database.insert_lead_if_absent(_lead("https://a/1"))
    assert run_daily_summary()["total"] == 1


def test_stale_applications(db):
    database.insert_lead_if_absent(_lead("https://a/1", status=STATUS_APPLIED, age_days=10))
    database.insert_lead_if_absent(_lead("https://a/2", status=STATUS_APPLIED, age_days=2))
    database.insert_lead_if_absent(_lead("https://a/3", status=STATUS_INTERVIEWING, age_days=8))
    database.insert_lead_if_absent(_lead("https://a/4", status=STATUS_NEW, age_days=30))

    report = check_stale_applications(days=7)

    assert [lead.job_url for lead in report[STATUS_APPLIED]] == ["https://a/1"]
    assert [lead.job_url for lead in report[STATUS_INTERVIEWING]] == ["https://a/3"]
    assert [lead.job_url for lead in check_stale_applications(days=1)[STATUS_APPLIED]] == ["https://a/1", "https://a/2"]
