"""Domain error hierarchy for clean exception handling."""
from __future__ import annotations


class DomainError(Exception):
    """Base for all domain errors."""


class NotFoundError(DomainError):
    """Resource not found."""


class ValidationError(DomainError):
    """Invalid input or state."""


class ConflictError(DomainError):
    """Resource conflict (e.g., duplicate endpoint or link)."""


class AllocationError(DomainError):
    """Code allocation failed after exhausting retries."""


class AnalysisError(DomainError):
    """The project graph could not be read for a consistency check."""


class CounterConflict(Exception):
    """Transient write conflict on a sequence counter; safe to retry."""
