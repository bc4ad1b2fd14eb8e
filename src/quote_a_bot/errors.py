"""
Exception types for quote-a-bot.

Most failures in the quoting path are not raised: malformed tokens are
collected as InvalidEntry values and a failed rate refresh falls back to the
cached snapshot. These classes cover the paths that do raise.
"""


class QuoteBotError(Exception):
    """Base class for quote-a-bot errors."""


class CatalogLoadError(QuoteBotError):
    """The product spreadsheet could not be read."""


class RateFetchError(QuoteBotError):
    """A single currency could not be fetched or parsed from the rate source."""

    def __init__(self, currency: str, reason: str):
        super().__init__(f"{currency}: {reason}")
        self.currency = currency
        self.reason = reason


class PersistenceWriteError(QuoteBotError):
    """A state document could not be written to disk."""


class UnauthorizedError(QuoteBotError):
    """The actor is not a registered agent."""


class NoPendingApprovalRequestError(QuoteBotError):
    """There is no pending tier-change request for the client."""
