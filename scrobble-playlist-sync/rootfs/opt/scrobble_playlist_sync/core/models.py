"""Data models and error types for sync operations."""

from dataclasses import dataclass, field
from typing import List


class SyncError(Exception):
    """Base class for errors that terminate a sync run."""
    pass


class ConfigurationError(SyncError):
    """A required setting is missing or invalid."""
    pass


class ValidationError(SyncError):
    """A response did not match the expected shape."""
    pass


class TransportError(SyncError):
    """A request failed: network error, timeout or non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @property
    def is_server_error(self) -> bool:
        return self.status_code is not None and self.status_code >= 500


class PartialMutationError(SyncError):
    """A chunked add/delete failed after some chunks were already applied."""

    def __init__(self, action: str, applied: int, total: int):
        super().__init__(f"{action} failed after {applied} of {total} chunks were applied")
        self.action = action
        self.applied = applied
        self.total = total


@dataclass(frozen=True)
class Track:
    """A track from a scrobble source or a playlist snapshot."""
    name: str
    artist: str
    provider_id: str | None = None
    added_at: int | None = None  # Unix seconds


Snapshot = tuple[Track, ...]


@dataclass
class Page:
    """One page of playlist items."""
    items: List[Track]
    has_next: bool


@dataclass(frozen=True)
class SearchResult:
    """A catalog search hit."""
    provider_id: str
    is_playable: bool
    is_local: bool = False


@dataclass(frozen=True)
class ProviderLimits:
    """Per-provider request size limits."""
    page_size: int
    mutation_limit: int
    resolve_batch_size: int


@dataclass
class SyncResult:
    """Result of a sync operation."""
    added: int = 0
    deleted: int = 0
    skipped: List[str] = field(default_factory=list)

    def summary(self) -> str:
        return f"+{self.added} -{self.deleted}"
