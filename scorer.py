"""
scorer.py — Keyword scoring engine.
Scores postings against the green/red flags of every active radar zone.
"""

from typing import Iterable, Optional

import database
from config import SCORING_WEIGHTS
from models import FlagMatch, NormalizedPosting, RadarZone, ScoredPosting, ScoreResult
from monitoring import get_logger

logger = get_logger("scorer")

# Audit field name -> posting attribute
SCORED_FIELDS = (
    ("title", "title"),
    ("company", "company_name"),
    ("location", "location"),
    ("description", "description"),
)


def _field_values(posting) -> list[tuple[str, str]]:
    return [(field, (getattr(posting, attr, None) or "").casefold()) for field, attr in SCORED_FIELDS]


def _match_flags(
    flags: Iterable[str],
    fields: list[tuple[str, str]],
    weights: dict[str, int],
) -> list[FlagMatch]:
    matches = []
    for flag in flags:
        if not isinstance(flag, str) or not flag.strip():
            continue
        needle = flag.casefold()
        for field, value in fields:
            if needle in value:
                matches.append(FlagMatch(flag=flag, field=field, points=weights.get(field, 0)))
    return matches


def score_posting(
    posting,
    active_zones: list[RadarZone],
    weights: Optional[dict[str, dict[str, int]]] = None,
) -> ScoreResult:
    """
    Score a posting against a snapshot of radar zones.

    Every flag of every active zone is tested against title, company, location
    and description independently; each hit adds that field's weight. Hits in
    several zones all count, so overlapping zones accumulate points.
    Accepts anything with the posting attributes, including a stored JobLead.
    """
    weights = weights or SCORING_WEIGHTS
    green_weights = weights.get("green_flags", {})
    red_weights = weights.get("red_flags", {})

    fields = _field_values(posting)
    result = ScoreResult()

    for zone in active_zones:
        if not zone.active:
            continue
        result.green_flags.extend(_match_flags(zone.green_flags, fields, green_weights))
        result.red_flags.extend(_match_flags(zone.red_flags, fields, red_weights))

    result.score = sum(m.points for m in result.green_flags) + sum(m.points for m in result.red_flags)
    return result


def score_many(
    postings: list[NormalizedPosting],
    active_zones: list[RadarZone],
    weights: Optional[dict[str, dict[str, int]]] = None,
) -> list[ScoredPosting]:
    """Score a batch and sort best first. Equal scores keep their input order."""
    scored = [
        ScoredPosting(posting=posting, result=score_posting(posting, active_zones, weights))
        for posting in postings
    ]
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored


def rescore_all_leads(zones: Optional[list[RadarZone]] = None) -> int:
    """Recompute match_score for every stored lead against the current zones."""
    if zones is None:
        zones = database.get_active_zones()

    leads = database.list_leads()
    scores = {lead.id: score_posting(lead, zones).score for lead in leads}
    database.update_lead_scores(scores)

    logger.info(f"Rescored {len(scores)} leads against {len(zones)} active zones")
    return len(scores)
