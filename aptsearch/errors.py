# aptsearch/errors.py
"""Error classes surfaced by the search backend.

Each class carries a stable ``code`` and the HTTP status the API answers with.
"""


class AptSearchError(Exception):
    code = "internal_error"
    status_code = 500


class NotFoundError(AptSearchError):
    code = "not_found"
    status_code = 404


class CollaboratorError(AptSearchError):
    """A third-party API was unreachable, rate-limited or answered garbage."""
    code = "collaborator_error"
    status_code = 502


class AnalysisError(CollaboratorError):
    code = "analysis_error"


class DatabaseError(AptSearchError):
    code = "database_error"
    status_code = 500


class EnrichmentError(AptSearchError):
    """No detail could be produced from either the cache or the listings API."""
    code = "enrichment_error"
    status_code = 502
