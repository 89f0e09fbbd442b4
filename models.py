"""
models.py — Data models for the Job Radar application.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Optional


# Pipeline stages a lead moves through
STATUS_NEW = "RADAR_NEW"
STATUS_SHORTLISTED = "SHORTLISTED"
STATUS_APPLIED = "APPLIED"
STATUS_INTERVIEWING = "INTERVIEWING"
STATUS_ARCHIVED = "ARCHIVED"

LEAD_STATUSES = (
    STATUS_NEW,
    STATUS_SHORTLISTED,
    STATUS_APPLIED,
    STATUS_INTERVIEWING,
    STATUS_ARCHIVED,
)

DEFAULT_PRIORITY = 3


@dataclass(frozen=True)
class NormalizedPosting:
    """A job posting reduced to the shape shared by every source.

    Built only through normalize.build_posting, which guarantees a non-empty
    title, a canonical absolute job_url, collapsed whitespace and a
    description of at most 500 characters.
    """
    title: str
    company_name: str
    location: str
    job_url: str
    description: str
    source: str
    salary: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RadarZone:
    """A user-authored rule set: search parameters, keyword flags and sources."""
    name: str
    search_title: str = ""
    search_location: str = ""
    green_flags: list[str] = field(default_factory=list)
    red_flags: list[str] = field(default_factory=list)
    enabled_sources: list[str] = field(default_factory=lambda: ["LinkedIn", "Indeed"])
    tracked_boards: dict[str, list[str]] = field(default_factory=dict)  # ATS source -> org slugs
    active: bool = True
    id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(frozen=True)
class FlagMatch:
    """One audit entry: which flag matched which field for how many points."""
    flag: str
    field: str
    points: int


@dataclass
class ScoreResult:
    score: int = 0
    green_flags: list[FlagMatch] = field(default_factory=list)
    red_flags: list[FlagMatch] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "matches": {
                "green_flags": [asdict(m) for m in self.green_flags],
                "red_flags": [asdict(m) for m in self.red_flags],
            },
        }


@dataclass
class ScoredPosting:
    posting: NormalizedPosting
    result: ScoreResult

    @property
    def score(self) -> int:
        return self.result.score


@dataclass
class JobLead:
    """Persisted form of a posting. job_url is unique across all leads."""
    title: str
    company_name: str
    job_url: str
    source: str
    location: Optional[str] = None
    description: Optional[str] = None
    salary: Optional[str] = None
    match_score: int = 0
    status: str = STATUS_NEW
    priority: int = DEFAULT_PRIORITY
    company_id: Optional[int] = None
    id: Optional[int] = None
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())
    updated_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @classmethod
    def from_posting(cls, posting: NormalizedPosting, match_score: int) -> "JobLead":
        return cls(
            title=posting.title,
            company_name=posting.company_name,
            job_url=posting.job_url,
            source=posting.source,
            location=posting.location or None,
            description=posting.description or None,
            salary=posting.salary or None,
            match_score=match_score,
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class JobSource:
    """Registry entry describing a source that takes part in detection and dispatch."""
    name: str
    url: str = ""
    enabled: bool = True
    builtin: bool = False
    id: Optional[int] = None


@dataclass
class CompanyProfile:
    """Company enrichment target, linked from leads by company_id."""
    company_name: str
    companies_house_id: Optional[str] = None
    industry: Optional[str] = None
    size: Optional[str] = None
    website: Optional[str] = None
    notes: Optional[str] = None
    id: Optional[int] = None


@dataclass
class SweepStats:
    """Counters accumulated across one discovery sweep."""
    processed: int = 0
    new: int = 0
    duplicates: int = 0
    zones_skipped: int = 0
    units_failed: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RunLog:
    """Log entry for a single sweep."""
    run_date: str
    trigger: str
    processed: int = 0
    new: int = 0
    duplicates: int = 0
    errors: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0
