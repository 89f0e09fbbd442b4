"""
errors.py — Error types surfaced by the pipeline entrypoints.

Extraction misses, fetch failures and duplicate URLs are not errors and never
appear here; they are absorbed where they happen.
"""

from typing import Optional


class RadarError(Exception):
    """Base class for errors a caller of the pipeline can see."""
    status_code = 500


class MalformedRequestError(RadarError):
    """The caller sent a request missing a required field."""
    status_code = 400


class BuiltinSourceError(RadarError):
    """Attempt to delete a builtin job source."""
    status_code = 400


class PipelineError(RadarError):
    """Unclassified internal failure. Carries whatever counters were accumulated before it."""
    status_code = 500

    def __init__(self, message: str, stats: Optional[dict] = None):
        super().__init__(message)
        self.stats = stats or {}


class NotFoundError(RadarError):
    """A lead, zone or source id that does not exist."""
    status_code = 404
