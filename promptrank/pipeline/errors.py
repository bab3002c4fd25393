"""Error taxonomy for the ranking pipeline.

Only caller misuse is raised out of ``rank()``. Catalog failures are
recovered inside the retriever and kept as ``SubQueryFailure`` records.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from .models import RetrievalSource


class RankingError(Exception):
    """Base class for ranking pipeline errors."""


class InputError(RankingError, ValueError):
    """Caller supplied an invalid argument to ``rank()``."""


class CollaboratorError(RankingError):
    """A catalog sub-query failed, timed out or returned a malformed payload."""

    def __init__(self, label: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"{label}: {message}")
        self.label = label
        self.cause = cause

    @property
    def timed_out(self) -> bool:
        return isinstance(self.cause, asyncio.TimeoutError)


@dataclass
class SubQueryFailure:
    """Record of a recovered catalog failure."""
    label: str
    source: RetrievalSource
    error_type: str
    message: str
    timestamp: datetime = field(default_factory=datetime.now)
    context: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_error(cls, error: CollaboratorError, source: RetrievalSource,
                   context: Optional[Dict[str, Any]] = None) -> "SubQueryFailure":
        """Failure record for a wrapped error. ``context`` describes the sub-query."""
        cause = error.cause if error.cause is not None else error
        return cls(
            label=error.label,
            source=source,
            error_type=type(cause).__name__,
            message=str(cause) or type(cause).__name__,
            context=dict(context or {})
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp.isoformat(),
            'label': self.label,
            'source': self.source.value,
            'error_type': self.error_type,
            'message': self.message,
            'context': self.context
        }
