import pytest

import config
from errors import BuiltinSourceError
from models import (
    STATUS_APPLIED, STATUS_NEW, STATUS_SHORTLISTED, CompanyProfile, JobLead, RadarZone, RunLog,
)


def _lead(url, **overrides):
    fields = {"title": "Backend Engineer", "company_name": "Acme", "job_url": url, "source": "Lever"}
    fields.update(overrides)
    return JobLead(**fields)


def test_init_db_seeds_builtin_sources_once(db):
    db.init_db()
    sources = db.list_sources()
    assert {s.name for s in sources} == {s["name"] for s in config.BUILTIN_SOURCES}
    assert all(s.builtin and s.enabled for s in sources)


def test_insert_lead_if_absent_is_keyed_by_url(db):
    stored = db.insert_lead_if_absent(_lead("https://jobs.lever.co/acme/1"))
    assert stored.id is not None
    assert stored.status == STATUS_NEW
    assert stored.priority == 3

    again = db.insert_lead_if_absent(_lead("https://jobs.lever.co/acme/1", title="Renamed"))
    assert again is None
    assert db.count_leads() == 1
    assert db.get_lead(stored.id).title == "Backend Engineer"
    assert db.lead_exists("https://jobs.lever.co/acme/1")
    assert not db.lead_exists("https://jobs.lever.co/acme/2")


def test_list_leads_orders_by_score_and_filters_status(db):
    low = db.insert_lead_if_absent(_lead("https://a/1", match_score=5))
    high = db.insert_lead_if_absent(_lead("https://a/2", match_score=40))
    db.insert_lead_if_absent(_lead("https://a/3", match_score=-10))
    db.update_lead_status(low.id, STATUS_SHORTLISTED)

    assert [l.job_url for l in db.list_leads()] == ["https://a/2", "https://a/1", "https://a/3"]
    assert [l.id for l in db.list_leads(STATUS_SHORTLISTED)] == [low.id]
    assert high.id in [l.id for l in db.list_leads(STATUS_NEW)]


def test_status_priority_and_score_updates(db):
    lead = db.insert_lead_if_absent(_lead("https://a/1"))

    assert db.update_lead_status(lead.id, STATUS_APPLIED)
    assert db.update_lead_priority(lead.id, 1)
    assert db.update_lead_score(lead.id, 35)

    stored = db.get_lead(lead.id)
    assert (stored.status, stored.priority, stored.match_score) == (STATUS_APPLIED, 1, 35)
    assert not db.update_lead_status(9999, STATUS_APPLIED)


def test_unknown_status_is_rejected(db):
    lead = db.insert_lead_if_absent(_lead("https://a/1"))
    with pytest.raises(ValueError):
        db.update_lead_status(lead.id, "HIRED")


def test_zone_round_trip(db):
    zone = db.create_zone(RadarZone(
        name="Backend",
        search_title="Python Developer",
        search_location="London",
        green_flags=["python", "django"],
        red_flags=["on-site"],
        tracked_boards={"Greenhouse": ["acme"]},
    ))

    stored = db.get_zone(zone.id)
    assert stored.green_flags == ["python", "django"]
    assert stored.red_flags == ["on-site"]
    assert stored.enabled_sources == ["LinkedIn", "Indeed"]
    assert stored.tracked_boards == {"Greenhouse": ["acme"]}
    assert stored.active is True


def test_zone_with_no_sources_gets_defaults(db):
    zone = db.create_zone(RadarZone(name="Empty", enabled_sources=[]))
    assert db.get_zone(zone.id).enabled_sources == list(config.DEFAULT_ENABLED_SOURCES)


def test_update_and_delete_zone(db):
    first = db.create_zone(RadarZone(name="First"))
    second = db.create_zone(RadarZone(name="Second"))

    updated = db.update_zone(first.id, active=False, green_flags=["go"])
    assert updated.active is False
    assert updated.green_flags == ["go"]
    assert [z.id for z in db.get_active_zones()] == [second.id]
    assert [z.id for z in db.list_zones()] == [first.id, second.id]

    with pytest.raises(ValueError):
        db.update_zone(first.id, colour="green")

    assert db.delete_zone(first.id)
    assert db.get_zone(first.id) is None
    assert not db.delete_zone(first.id)


def test_builtin_sources_cannot_be_deleted(db):
    builtin = next(s for s in db.list_sources() if s.name == "LinkedIn")
    with pytest.raises(BuiltinSourceError):
        db.delete_source(builtin.id)
    assert db.get_source(builtin.id) is not None


def test_custom_source_lifecycle(db):
    source = db.create_source("Workable", "https://apply.workable.com")
    assert source.builtin is False
    assert db.create_source("Workable") is None

    assert db.set_source_enabled(source.id, False)
    assert db.get_source(source.id).enabled is False

    assert db.delete_source(source.id)
    assert db.get_source(source.id) is None
    assert not db.delete_source(source.id)


def test_company_profile_upsert_and_link(db):
    first = db.upsert_company_profile(CompanyProfile(company_name="Acme", industry="Unknown"))
    second = db.upsert_company_profile(CompanyProfile(
        company_name="Acme", companies_house_id="12345678", industry="Technology / Software",
    ))
    assert first.id == second.id
    assert second.industry == "Technology / Software"

    lead = db.insert_lead_if_absent(_lead("https://a/1"))
    assert db.link_lead_company(lead.id, second.id)
    assert db.get_lead(lead.id).company_id == second.id


def test_run_log(db):
    assert db.get_last_run() is None
    db.log_run(RunLog(run_date="2026-01-01T09:00:00", trigger="cron", processed=4, new=3, duplicates=1,
                      errors=["Backend / LinkedIn: fetch failed"], duration_seconds=12.5))
    db.log_run(RunLog(run_date="2026-01-02T09:00:00", trigger="manual", processed=0))

    last = db.get_last_run()
    assert last["trigger"] == "manual"
    assert last["errors"] == []
