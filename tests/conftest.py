"""
conftest.py — Shared fixtures: a throwaway SQLite database, saved HTML pages and posting/zone builders.
"""

from pathlib import Path

import pytest

import database
from models import NormalizedPosting, RadarZone

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Point the persistence gateway at a fresh database for one test."""
    monkeypatch.setattr(database, "DB_PATH", tmp_path / "radar.db")
    database.init_db()
    return database


@pytest.fixture
def load_fixture():
    def _load(name: str) -> str:
        return (FIXTURES_DIR / name).read_text(encoding="utf-8")
    return _load


@pytest.fixture
def make_posting():
    def _make(**overrides) -> NormalizedPosting:
        fields = {
            "title": "Python Developer",
            "company_name": "Acme",
            "location": "London",
            "job_url": "https://www.linkedin.com/jobs/view/1",
            "description": "",
            "source": "LinkedIn",
        }
        fields.update(overrides)
        return NormalizedPosting(**fields)
    return _make


@pytest.fixture
def make_zone():
    def _make(name="Backend", **overrides) -> RadarZone:
        fields = {
            "search_title": "Python Developer",
            "search_location": "London",
        }
        fields.update(overrides)
        return RadarZone(name=name, **fields)
    return _make
