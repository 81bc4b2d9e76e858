"""Exceptions raised by the audit engine."""


class AuditError(Exception):
    """Base class for audit failures that should be shown to the operator."""


class RelayUnavailable(AuditError):
    """Both the primary and the fallback relay failed."""


class FetchFailed(AuditError):
    """The target returned an error status or an empty body."""


class ParseFailure(AuditError):
    """Sitemap XML is malformed or has an unrecognised shape."""


class SitemapUnavailable(AuditError):
    """Every sitemap attempt failed."""

    def __init__(self, attempts: int, last_error: BaseException | None):
        reason = str(last_error) if last_error else "Unknown error"
        super().__init__(
            f"Failed to fetch and parse sitemap after {attempts} attempts. "
            f"Last error: {reason}"
        )
        self.attempts = attempts
        self.last_error = last_error


class InvalidRequest(AuditError):
    """The audit request is missing its URL(s)."""


class AuditCancelled(Exception):
    """The operator cancelled the audit.

    Not an AuditError, so ``except AuditError`` lets it through.
    """

    def __init__(self, message: str = "Analysis was terminated by the user."):
        super().__init__(message)
