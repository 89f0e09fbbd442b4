"""
database.py — SQLite persistence gateway: schema, queries and helpers.
SQLite is the single source of truth for leads, radar zones and job sources.
"""

import json
import sqlite3
from datetime import datetime, timedelta
from typing import Optional

from config import BUILTIN_SOURCES, DB_PATH, DEFAULT_ENABLED_SOURCES
from errors import BuiltinSourceError
from models import (
    LEAD_STATUSES, CompanyProfile, JobLead, JobSource, RadarZone, RunLog,
)


def get_connection() -> sqlite3.Connection:
    """Get a database connection, creating the DB file if needed."""
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(DB_PATH))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def _now() -> str:
    return datetime.now().isoformat()


def init_db():
    """Create all tables if they don't exist and seed the builtin job sources."""
    conn = get_connection()
    cursor = conn.cursor()

    cursor.executescript("""
        CREATE TABLE IF NOT EXISTS company_profiles (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            company_name TEXT NOT NULL UNIQUE,
            companies_house_id TEXT,
            industry TEXT,
            size TEXT,
            website TEXT,
            notes TEXT,
            created_at TEXT,
            updated_at TEXT
        );

        CREATE TABLE IF NOT EXISTS job_leads (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            company_name TEXT NOT NULL,
            location TEXT,
            job_url TEXT NOT NULL UNIQUE,
            description TEXT,
            salary TEXT,
            source TEXT NOT NULL,
            match_score INTEGER NOT NULL DEFAULT 0,
            status TEXT NOT NULL DEFAULT 'RADAR_NEW',
            priority INTEGER NOT NULL DEFAULT 3,
            company_id INTEGER REFERENCES company_profiles(id) ON DELETE SET NULL,
            created_at TEXT,
            updated_at TEXT
        );

        CREATE TABLE IF NOT EXISTS radar_zones (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            search_title TEXT NOT NULL DEFAULT '',
            search_location TEXT NOT NULL DEFAULT '',
            green_flags TEXT NOT NULL DEFAULT '[]',
            red_flags TEXT NOT NULL DEFAULT '[]',
            enabled_sources TEXT NOT NULL DEFAULT '["LinkedIn", "Indeed"]',
            tracked_boards TEXT NOT NULL DEFAULT '{}',
            active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT,
            updated_at TEXT
        );

        CREATE TABLE IF NOT EXISTS job_sources (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            url TEXT NOT NULL DEFAULT '',
            enabled INTEGER NOT NULL DEFAULT 1,
            builtin INTEGER NOT NULL DEFAULT 0,
            created_at TEXT,
            updated_at TEXT
        );

        CREATE TABLE IF NOT EXISTS run_log (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            run_date TEXT,
            trigger TEXT,
            processed INTEGER DEFAULT 0,
            new INTEGER DEFAULT 0,
            duplicates INTEGER DEFAULT 0,
            errors TEXT,
            duration_seconds REAL
        );

        CREATE INDEX IF NOT EXISTS idx_leads_status ON job_leads(status);
        CREATE INDEX IF NOT EXISTS idx_leads_source ON job_leads(source);
        CREATE INDEX IF NOT EXISTS idx_zones_active ON radar_zones(active);
    """)

    now = _now()
    for source in BUILTIN_SOURCES:
        cursor.execute(
            """INSERT OR IGNORE INTO job_sources (name, url, enabled, builtin, created_at, updated_at)
               VALUES (?, ?, 1, 1, ?, ?)""",
            (source["name"], source.get("url", ""), now, now)
        )

    conn.commit()
    conn.close()


# --- Job Leads ---

def _row_to_lead(row: sqlite3.Row) -> JobLead:
    return JobLead(
        id=row["id"],
        title=row["title"],
        company_name=row["company_name"],
        location=row["location"],
        job_url=row["job_url"],
        description=row["description"],
        salary=row["salary"],
        source=row["source"],
        match_score=row["match_score"],
        status=row["status"],
        priority=row["priority"],
        company_id=row["company_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def lead_exists(job_url: str) -> bool:
    """Check if a URL is already in the database."""
    conn = get_connection()
    result = conn.execute("SELECT 1 FROM job_leads WHERE job_url = ?", (job_url,)).fetchone()
    conn.close()
    return result is not None


def insert_lead_if_absent(lead: JobLead) -> Optional[JobLead]:
    """
    Store a lead unless one with the same job_url already exists.
    Returns the stored lead (with its id), or None for a duplicate.
    The UNIQUE constraint makes this safe when two ingestion paths race.
    """
    conn = get_connection()
    cursor = conn.execute(
        """INSERT OR IGNORE INTO job_leads
           (title, company_name, location, job_url, description, salary, source,
            match_score, status, priority, company_id, created_at, updated_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            lead.title, lead.company_name, lead.location, lead.job_url,
            lead.description, lead.salary, lead.source, lead.match_score,
            lead.status, lead.priority, lead.company_id, lead.created_at, lead.updated_at,
        )
    )
    conn.commit()
    inserted = cursor.rowcount == 1
    row_id = cursor.lastrowid
    conn.close()

    if not inserted:
        return None
    lead.id = row_id
    return lead


def get_lead(lead_id: int) -> Optional[JobLead]:
    conn = get_connection()
    row = conn.execute("SELECT * FROM job_leads WHERE id = ?", (lead_id,)).fetchone()
    conn.close()
    return _row_to_lead(row) if row else None


def get_lead_by_url(job_url: str) -> Optional[JobLead]:
    conn = get_connection()
    row = conn.execute("SELECT * FROM job_leads WHERE job_url = ?", (job_url,)).fetchone()
    conn.close()
    return _row_to_lead(row) if row else None


def list_leads(status: Optional[str] = None) -> list[JobLead]:
    """All leads, best match first, optionally filtered to one pipeline stage."""
    conn = get_connection()
    if status:
        rows = conn.execute(
            "SELECT * FROM job_leads WHERE status = ? ORDER BY match_score DESC, id ASC", (status,)
        ).fetchall()
    else:
        rows = conn.execute("SELECT * FROM job_leads ORDER BY match_score DESC, id ASC").fetchall()
    conn.close()
    return [_row_to_lead(row) for row in rows]


def count_leads() -> int:
    conn = get_connection()
    count = conn.execute("SELECT COUNT(*) FROM job_leads").fetchone()[0]
    conn.close()
    return count


def update_lead_status(lead_id: int, status: str) -> bool:
    """Move a lead to another pipeline stage. Returns False if the lead does not exist."""
    if status not in LEAD_STATUSES:
        raise ValueError(f"Unknown lead status {status!r}; expected one of {', '.join(LEAD_STATUSES)}")
    conn = get_connection()
    cursor = conn.execute(
        "UPDATE job_leads SET status = ?, updated_at = ? WHERE id = ?",
        (status, _now(), lead_id)
    )
    conn.commit()
    conn.close()
    return cursor.rowcount == 1


def update_lead_priority(lead_id: int, priority: int) -> bool:
    conn = get_connection()
    cursor = conn.execute(
        "UPDATE job_leads SET priority = ?, updated_at = ? WHERE id = ?",
        (int(priority), _now(), lead_id)
    )
    conn.commit()
    conn.close()
    return cursor.rowcount == 1


def update_lead_score(lead_id: int, match_score: int) -> bool:
    conn = get_connection()
    cursor = conn.execute(
        "UPDATE job_leads SET match_score = ? WHERE id = ?", (int(match_score), lead_id)
    )
    conn.commit()
    conn.close()
    return cursor.rowcount == 1


def update_lead_scores(scores: dict[int, int]):
    """Persist recomputed match scores, keyed by lead id."""
    if not scores:
        return
    conn = get_connection()
    conn.executemany(
        "UPDATE job_leads SET match_score = ? WHERE id = ?",
        [(score, lead_id) for lead_id, score in scores.items()]
    )
    conn.commit()
    conn.close()


def link_lead_company(lead_id: int, company_id: int) -> bool:
    conn = get_connection()
    cursor = conn.execute(
        "UPDATE job_leads SET company_id = ?, updated_at = ? WHERE id = ?",
        (company_id, _now(), lead_id)
    )
    conn.commit()
    conn.close()
    return cursor.rowcount == 1


def get_leads_not_updated_since(statuses: tuple[str, ...], cutoff: str) -> list[JobLead]:
    placeholders = ",".join("?" * len(statuses))
    conn = get_connection()
    rows = conn.execute(
        f"SELECT * FROM job_leads WHERE status IN ({placeholders}) AND updated_at < ? ORDER BY updated_at ASC",
        (*statuses, cutoff)
    ).fetchall()
    conn.close()
    return [_row_to_lead(row) for row in rows]


# --- Radar Zones ---

def _row_to_zone(row: sqlite3.Row) -> RadarZone:
    return RadarZone(
        id=row["id"],
        name=row["name"],
        search_title=row["search_title"],
        search_location=row["search_location"],
        green_flags=json.loads(row["green_flags"] or "[]"),
        red_flags=json.loads(row["red_flags"] or "[]"),
        enabled_sources=json.loads(row["enabled_sources"] or "[]"),
        tracked_boards=json.loads(row["tracked_boards"] or "{}"),
        active=bool(row["active"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def create_zone(zone: RadarZone) -> RadarZone:
    """Store a new radar zone. Returns it with its id."""
    now = _now()
    enabled_sources = zone.enabled_sources if zone.enabled_sources else list(DEFAULT_ENABLED_SOURCES)
    conn = get_connection()
    cursor = conn.execute(
        """INSERT INTO radar_zones
           (name, search_title, search_location, green_flags, red_flags,
            enabled_sources, tracked_boards, active, created_at, updated_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            zone.name, zone.search_title or "", zone.search_location or "",
            json.dumps(zone.green_flags), json.dumps(zone.red_flags),
            json.dumps(enabled_sources), json.dumps(zone.tracked_boards),
            int(zone.active), now, now,
        )
    )
    conn.commit()
    zone.id = cursor.lastrowid
    conn.close()
    zone.enabled_sources = enabled_sources
    zone.created_at = zone.updated_at = now
    return zone


_ZONE_JSON_FIELDS = ("green_flags", "red_flags", "enabled_sources", "tracked_boards")
_ZONE_FIELDS = ("name", "search_title", "search_location", "active") + _ZONE_JSON_FIELDS


def update_zone(zone_id: int, **changes) -> Optional[RadarZone]:
    """Apply a partial update to a zone. Unknown fields are rejected."""
    unknown = set(changes) - set(_ZONE_FIELDS)
    if unknown:
        raise ValueError(f"Unknown radar zone fields: {', '.join(sorted(unknown))}")

    assignments = []
    values = []
    for key, value in changes.items():
        if key in _ZONE_JSON_FIELDS:
            value = json.dumps(value)
        elif key == "active":
            value = int(bool(value))
        assignments.append(f"{key} = ?")
        values.append(value)

    if assignments:
        assignments.append("updated_at = ?")
        values.append(_now())
        conn = get_connection()
        conn.execute(
            f"UPDATE radar_zones SET {', '.join(assignments)} WHERE id = ?",
            (*values, zone_id)
        )
        conn.commit()
        conn.close()
    return get_zone(zone_id)


def delete_zone(zone_id: int) -> bool:
    conn = get_connection()
    cursor = conn.execute("DELETE FROM radar_zones WHERE id = ?", (zone_id,))
    conn.commit()
    conn.close()
    return cursor.rowcount == 1


def get_zone(zone_id: int) -> Optional[RadarZone]:
    conn = get_connection()
    row = conn.execute("SELECT * FROM radar_zones WHERE id = ?", (zone_id,)).fetchone()
    conn.close()
    return _row_to_zone(row) if row else None


def list_zones() -> list[RadarZone]:
    conn = get_connection()
    rows = conn.execute("SELECT * FROM radar_zones ORDER BY id ASC").fetchall()
    conn.close()
    return [_row_to_zone(row) for row in rows]


def get_active_zones() -> list[RadarZone]:
    """Active zones in stored order."""
    conn = get_connection()
    rows = conn.execute("SELECT * FROM radar_zones WHERE active = 1 ORDER BY id ASC").fetchall()
    conn.close()
    return [_row_to_zone(row) for row in rows]


# --- Job Sources ---

def _row_to_source(row: sqlite3.Row) -> JobSource:
    return JobSource(
        id=row["id"],
        name=row["name"],
        url=row["url"],
        enabled=bool(row["enabled"]),
        builtin=bool(row["builtin"]),
    )


def list_sources() -> list[JobSource]:
    """Builtin sources first, then custom ones by name."""
    conn = get_connection()
    rows = conn.execute("SELECT * FROM job_sources ORDER BY builtin DESC, name ASC").fetchall()
    conn.close()
    return [_row_to_source(row) for row in rows]


def get_source(source_id: int) -> Optional[JobSource]:
    conn = get_connection()
    row = conn.execute("SELECT * FROM job_sources WHERE id = ?", (source_id,)).fetchone()
    conn.close()
    return _row_to_source(row) if row else None


def create_source(name: str, url: str = "", enabled: bool = True) -> Optional[JobSource]:
    """Add a custom source. Returns None if the name is already taken."""
    now = _now()
    conn = get_connection()
    cursor = conn.execute(
        """INSERT OR IGNORE INTO job_sources (name, url, enabled, builtin, created_at, updated_at)
           VALUES (?, ?, ?, 0, ?, ?)""",
        (name.strip(), url.strip(), int(enabled), now, now)
    )
    conn.commit()
    inserted = cursor.rowcount == 1
    row_id = cursor.lastrowid
    conn.close()
    return get_source(row_id) if inserted else None


def set_source_enabled(source_id: int, enabled: bool) -> bool:
    conn = get_connection()
    cursor = conn.execute(
        "UPDATE job_sources SET enabled = ?, updated_at = ? WHERE id = ?",
        (int(enabled), _now(), source_id)
    )
    conn.commit()
    conn.close()
    return cursor.rowcount == 1


def delete_source(source_id: int) -> bool:
    """Delete a custom source. Builtin sources cannot be deleted."""
    source = get_source(source_id)
    if source is None:
        return False
    if source.builtin:
        raise BuiltinSourceError(f"Cannot delete builtin source {source.name!r}")
    conn = get_connection()
    cursor = conn.execute("DELETE FROM job_sources WHERE id = ? AND builtin = 0", (source_id,))
    conn.commit()
    conn.close()
    return cursor.rowcount == 1


# --- Company Profiles ---

def _row_to_company(row: sqlite3.Row) -> CompanyProfile:
    return CompanyProfile(
        id=row["id"],
        company_name=row["company_name"],
        companies_house_id=row["companies_house_id"],
        industry=row["industry"],
        size=row["size"],
        website=row["website"],
        notes=row["notes"],
    )


def get_company_by_name(company_name: str) -> Optional[CompanyProfile]:
    conn = get_connection()
    row = conn.execute(
        "SELECT * FROM company_profiles WHERE company_name = ?", (company_name,)
    ).fetchone()
    conn.close()
    return _row_to_company(row) if row else None


def upsert_company_profile(profile: CompanyProfile) -> CompanyProfile:
    """Create the profile, or refresh the registry fields of the existing one with that name."""
    now = _now()
    conn = get_connection()
    conn.execute(
        """INSERT INTO company_profiles
           (company_name, companies_house_id, industry, size, website, notes, created_at, updated_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?)
           ON CONFLICT(company_name) DO UPDATE SET
               companies_house_id = excluded.companies_house_id,
               industry = excluded.industry,
               size = excluded.size,
               updated_at = excluded.updated_at""",
        (
            profile.company_name, profile.companies_house_id, profile.industry,
            profile.size, profile.website, profile.notes, now, now,
        )
    )
    conn.commit()
    conn.close()
    return get_company_by_name(profile.company_name)


# --- Run Log ---

def log_run(run_log: RunLog):
    """Store a run log entry."""
    conn = get_connection()
    conn.execute(
        """INSERT INTO run_log
           (run_date, trigger, processed, new, duplicates, errors, duration_seconds)
           VALUES (?, ?, ?, ?, ?, ?, ?)""",
        (
            run_log.run_date, run_log.trigger, run_log.processed, run_log.new,
            run_log.duplicates, json.dumps(run_log.errors), run_log.duration_seconds,
        )
    )
    conn.commit()
    conn.close()


def get_last_run() -> Optional[dict]:
    """Get the most recent run log entry."""
    conn = get_connection()
    row = conn.execute("SELECT * FROM run_log ORDER BY id DESC LIMIT 1").fetchone()
    conn.close()
    if not row:
        return None
    run = dict(row)
    run["errors"] = json.loads(run["errors"]) if run["errors"] else []
    return run


# --- Stats queries ---

def count_leads_by(column: str) -> dict[str, int]:
    """Lead counts grouped by status or source."""
    if column not in ("status", "source"):
        raise ValueError(f"Cannot group leads by {column!r}")
    conn = get_connection()
    rows = conn.execute(
        f"SELECT {column} AS key, COUNT(*) AS n FROM job_leads GROUP BY {column} ORDER BY {column}"
    ).fetchall()
    conn.close()
    return {row["key"]: row["n"] for row in rows}


def score_aggregates() -> dict:
    conn = get_connection()
    row = conn.execute(
        "SELECT AVG(match_score) AS avg, MAX(match_score) AS max, MIN(match_score) AS min FROM job_leads"
    ).fetchone()
    conn.close()
    return {"avg": row["avg"], "max": row["max"], "min": row["min"]}


def count_leads_created_since(cutoff: str) -> int:
    conn = get_connection()
    count = conn.execute("SELECT COUNT(*) FROM job_leads WHERE created_at >= ?", (cutoff,)).fetchone()[0]
    conn.close()
    return count


def count_leads_in_status_updated_since(statuses: tuple[str, ...], cutoff: str) -> int:
    placeholders = ",".join("?" * len(statuses))
    conn = get_connection()
    count = conn.execute(
        f"SELECT COUNT(*) FROM job_leads WHERE status IN ({placeholders}) AND updated_at >= ?",
        (*statuses, cutoff)
    ).fetchone()[0]
    conn.close()
    return count


def daily_lead_counts(days: int = 30) -> list[dict]:
    """Leads created per day over the last N days, oldest first."""
    cutoff = (datetime.now() - timedelta(days=days)).isoformat()
    conn = get_connection()
    rows = conn.execute(
        """SELECT substr(created_at, 1, 10) AS date, COUNT(*) AS count
           FROM job_leads WHERE created_at >= ?
           GROUP BY substr(created_at, 1, 10) ORDER BY date""",
        (cutoff,)
    ).fetchall()
    conn.close()
    return [dict(row) for row in rows]
