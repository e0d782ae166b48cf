"""Data models.

Defines the data structures exchanged with the transport:
- Source: The polled resource (pydantic)
- SourceStatus: Pending vs. terminal lifecycle status
- FetchResult: Outcome of one status fetch
"""

from source_poller.models.source import (
    FetchResult,
    ModelValidationError,
    Source,
    SourceStatus,
)

__all__ = [
    "FetchResult",
    "ModelValidationError",
    "Source",
    "SourceStatus",
]
