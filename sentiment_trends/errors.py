# sentiment_trends/errors.py
from typing import Any, Optional


class SentimentTrendsError(Exception):
    """Base exception for all scoring pipeline errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class MalformedLexiconError(SentimentTrendsError, ValueError):
    """A lexicon entry is missing its key, score or category."""

    def __init__(
        self,
        message: str,
        row: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details)
        self.row = row

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["row"] = self.row
        return data


class EmptyCorpusError(SentimentTrendsError, ValueError):
    """Zero documents were supplied."""
    pass


class UnknownGroupingKeyError(SentimentTrendsError, ValueError):
    """The grouping references a mode or metadata field the corpus does not have."""

    def __init__(
        self,
        message: str,
        key: str = "",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details)
        self.key = key

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["key"] = self.key
        return data


class DivisionUndefinedError(SentimentTrendsError, ZeroDivisionError):
    """A ratio was requested for a group with zero total tokens."""

    def __init__(
        self,
        message: str,
        groups: Optional[list] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details)
        self.groups = groups or []

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["groups"] = [str(g) for g in self.groups]
        return data
