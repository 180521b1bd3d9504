"""Error hierarchy for schedule collection and normalization.

Nothing in the pipeline retries. The error type decides how far a failure
reaches instead:

    FetchFailure / ParseFailure   -> skip the item (date, page, location)
    NormalizationError            -> drop the single record
    ChallengeTimeout              -> abort the whole Optisport run

Anything that escapes an adapter is caught by the orchestrator, which logs
it and continues with the remaining sources.
"""


class ScrapingError(Exception):
    """Base exception for all collection errors."""

    pass


class FetchFailure(ScrapingError):
    """Upstream returned a non-2xx status or the request never completed.

    Examples: connection reset, DNS failure, 403 from a bot gate, timeout.
    """

    def __init__(self, message: str, *, url: str | None = None, status: int | None = None):
        super().__init__(message)
        self.url = url
        self.status = status


class ParseFailure(ScrapingError):
    """The expected JSON/HTML shape was not found in an upstream response.

    Carries the path that was tried so a broken upstream deployment shows up
    in the logs with enough context to fix the adapter.
    """

    def __init__(self, message: str, *, path: str | None = None):
        super().__init__(message)
        self.path = path


class NormalizationError(ScrapingError, ValueError):
    """A time or weekday token could not be mapped to the canonical form.

    The record carrying the token is dropped. Tokens are never coerced to a
    default value.
    """

    pass


class ChallengeTimeout(FetchFailure):
    """Bot challenge did not clear within the wait budget.

    Fatal for the whole browser session: no location can be fetched without
    a cleared challenge.
    """

    pass
