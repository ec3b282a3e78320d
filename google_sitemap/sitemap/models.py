"""
Sitemap data model: entries, documents, index entries and run state.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional, Union

from dateutil.parser import isoparse, parse as parse_date

CHANGE_FREQUENCIES = ("always", "hourly", "daily", "weekly", "monthly", "yearly", "never")

NEWS_FIELDS = ("name", "language", "publication_date", "title")

DateValue = Union[str, date, datetime]


def format_w3c_date(value: Optional[DateValue]) -> Optional[str]:
    """
    Render a date for <lastmod> / <news:publication_date>.

    Dates render as YYYY-MM-DD and datetimes as full ISO 8601 with an offset;
    naive datetimes are taken to be UTC. Strings must be ISO 8601 and are
    re-rendered the same way, so "20240419" becomes "2024-04-19".

    Raises:
        ValueError: if a string value is not an ISO 8601 date or datetime
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()

    text = str(value).strip()
    try:
        parsed = isoparse(text)
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Invalid date {text!r}: {e}") from e

    # YYYY, YYYY-MM, YYYY-MM-DD and their basic forms carry no time part
    if len(text) <= 10:
        return parsed.date().isoformat()
    return format_w3c_date(parsed)


@dataclass
class SitemapEntry:
    """A single URL entry."""
    location: str
    lastmod: Optional[str] = None
    changefreq: Optional[str] = None  # validated, never written
    priority: Optional[float] = None

    # Literal entries are written as-is, without the hostname prefix
    absolute: bool = False

    # News sitemap specific
    news_publication_name: Optional[str] = None
    news_publication_language: Optional[str] = None
    news_publication_date: Optional[str] = None
    news_title: Optional[str] = None

    @property
    def is_news(self) -> bool:
        return all([
            self.news_publication_name,
            self.news_publication_language,
            self.news_publication_date,
            self.news_title,
        ])

    @property
    def lastmod_datetime(self) -> Optional[datetime]:
        """Parse lastmod as datetime."""
        if not self.lastmod:
            return None
        try:
            return parse_date(self.lastmod)
        except (ValueError, TypeError):
            return None


@dataclass
class SitemapDocument:
    """
    One urlset file worth of entries.
    Holds at most max_entries entries and rejects appends once sealed.
    """
    sequence: int
    max_entries: int
    entries: List[SitemapEntry] = field(default_factory=list)
    sealed: bool = False

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def is_full(self) -> bool:
        return len(self.entries) >= self.max_entries

    def append(self, entry: SitemapEntry):
        if self.sealed:
            raise ValueError(f"Sitemap document {self.sequence} is sealed")
        if self.is_full:
            raise ValueError(f"Sitemap document {self.sequence} already holds {self.max_entries} entries")
        self.entries.append(entry)

    def seal(self):
        self.sealed = True


@dataclass
class SitemapIndexEntry:
    """A sitemap reference from a sitemap index."""
    loc: str
    lastmod: Optional[str] = None


class GeneratorState(str, Enum):
    """Lifecycle of one generation run."""
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    ENDED = "ended"
    INDEX_BUILT = "index_built"
    INDEX_WRITTEN = "index_written"
    FAILED = "failed"


@dataclass
class RunReport:
    """Status and error messages collected during a run."""
    status_items: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    documents_written: int = 0
    url_count_total: int = 0
    index_filename: Optional[str] = None
    state: GeneratorState = GeneratorState.IDLE

    @property
    def ok(self) -> bool:
        return not self.errors and self.state == GeneratorState.INDEX_WRITTEN


@dataclass
class GenerationSession:
    """
    Mutable accumulation state for one run, owned by the builder.
    """
    max_entries: int
    current: Optional[SitemapDocument] = None
    url_count_total: int = 0
    documents_produced: int = 0
    failed_sequences: List[int] = field(default_factory=list)
    state: GeneratorState = GeneratorState.IDLE
    report: RunReport = field(default_factory=RunReport)

    def open_document(self) -> SitemapDocument:
        self.current = SitemapDocument(
            sequence=self.documents_produced + 1,
            max_entries=self.max_entries,
        )
        return self.current
