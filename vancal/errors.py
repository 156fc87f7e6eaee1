"""Exception types shared across the scrape pipeline."""

from __future__ import annotations


class DateParseError(ValueError):
    """A date/time string matched none of the known formats."""

    def __init__(self, raw: str, normalized: str | None = None):
        self.raw = raw
        self.normalized = normalized
        super().__init__(f"Could not parse date {raw!r} (normalized: {normalized!r})")


class ExtractionError(Exception):
    """A venue plugin could not extract events from the fetched page."""


class ConfigurationError(RuntimeError):
    """Programmer error: the pipeline was wired up incorrectly.

    Never retried; aborts the whole run.
    """


class SessionNotInitializedError(ConfigurationError):
    """A FetchSession was used before init() or after close()."""
