class DailyBriefingError(Exception):
    """Base class for errors raised by daily_briefing."""


class FeedFetchError(DailyBriefingError):
    """Raised when a single feed cannot be fetched. Never escapes the aggregator."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"Failed to fetch {source}: {reason}")
        self.source = source
        self.reason = reason


class InvalidCategoryError(DailyBriefingError, ValueError):
    """Raised when a caller asks for a category that is not configured."""


class NewsUnavailableError(DailyBriefingError):
    """Raised when the pipeline fails and nothing was ever cached for the category."""
