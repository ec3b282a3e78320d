"""
Sitemap builder.
Accumulates URL entries into urlset documents, hands each full document
to the writer and finishes the run with the sitemap index.
"""

from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Union

from google_sitemap.config import GeneratorConfig
from google_sitemap.database.row_source import RowSource
from google_sitemap.errors import (
    DataSourceError,
    GeneratorStateError,
    OutputDirectoryError,
    SitemapWriteError,
)
from google_sitemap.logging_config import get_logger
from google_sitemap.sitemap.models import (
    CHANGE_FREQUENCIES,
    NEWS_FIELDS,
    GenerationSession,
    GeneratorState,
    RunReport,
    SitemapEntry,
    format_w3c_date,
)
from google_sitemap.sitemap.template import LocationTemplate, get_field
from google_sitemap.sitemap.writer import SitemapWriter

logger = get_logger("sitemap.builder")

URL_TAGS = ("lastmod", "changefreq", "priority")

_OPEN_STATES = (GeneratorState.IDLE, GeneratorState.ACCUMULATING)


def _entry_tags(entry: SitemapEntry) -> Dict[str, Any]:
    """Tags of a prepared entry, keyed the way add_url takes them."""
    values = {
        "lastmod": entry.lastmod,
        "changefreq": entry.changefreq,
        "priority": entry.priority,
        "name": entry.news_publication_name,
        "language": entry.news_publication_language,
        "publication_date": entry.news_publication_date,
        "title": entry.news_title,
    }
    return {name: value for name, value in values.items() if value is not None}


class SitemapBuilder:
    """
    Builds one set of sitemap files.

    Usage:
        builder = SitemapBuilder(config)
        builder.add_url("/about/", {"lastmod": "2024-04-19"})
        builder.add_urls_from_query(source, "/city-[name]/[id]/", ["name", "id"])
        report = builder.end()
    """

    def __init__(self, config: GeneratorConfig, writer: Optional[SitemapWriter] = None):
        self.config = config.validate()
        self.writer = writer or SitemapWriter(self.config)
        self.session = GenerationSession(max_entries=self.config.max_entries_per_file)
        self.index_content: Optional[str] = None

    @property
    def state(self) -> GeneratorState:
        return self.session.state

    @property
    def report(self) -> RunReport:
        report = self.session.report
        report.url_count_total = self.session.url_count_total
        report.state = self.session.state
        return report

    def configure(self, **options: Any) -> GeneratorConfig:
        """
        Change generator options before any URL is added.

        Raises:
            ConfigurationError: for unknown or invalid options
            GeneratorStateError: once URLs have been added
        """
        if self.state != GeneratorState.IDLE:
            raise GeneratorStateError(f"Cannot configure the builder in state {self.state.value}")

        self.config = self.config.with_options(**options)
        self.writer.config = self.config
        self.session.max_entries = self.config.max_entries_per_file
        return self.config

    def _require_open(self):
        if self.state not in _OPEN_STATES:
            raise GeneratorStateError(f"Cannot add URLs in state {self.state.value}")

    def _reject(self, message: str):
        self.session.report.errors.append(message)
        logger.warning(message)

    # ==================== ENTRIES ====================

    def _make_entry(
        self,
        location: str,
        tags: Optional[Mapping[str, Any]] = None,
        absolute: bool = False
    ) -> SitemapEntry:
        """Validate a location and its tags. Raises ValueError on bad input."""
        if not location or not str(location).strip():
            raise ValueError("URL location cannot be empty")

        tags = dict(tags or {})
        unknown = sorted(set(tags) - set(URL_TAGS) - set(NEWS_FIELDS))
        if unknown:
            raise ValueError(f"Unknown tag(s) {', '.join(unknown)} for {location}")

        entry = SitemapEntry(location=str(location), absolute=absolute)

        entry.lastmod = format_w3c_date(tags.get("lastmod"))

        changefreq = tags.get("changefreq")
        if changefreq:
            changefreq = str(changefreq).strip().lower()
            if changefreq not in CHANGE_FREQUENCIES:
                raise ValueError(f"Invalid changefreq {changefreq!r} for {location}")
            entry.changefreq = changefreq

        priority = tags.get("priority")
        if priority is not None and priority != "":
            try:
                priority = float(priority)
            except (TypeError, ValueError):
                raise ValueError(f"Invalid priority {priority!r} for {location}") from None
            if not 0.0 <= priority <= 1.0:
                raise ValueError(f"Priority {priority} for {location} is outside 0.0-1.0")
            entry.priority = priority

        if self.config.sitemap_type == "news":
            missing = [name for name in NEWS_FIELDS if not tags.get(name)]
            if missing:
                raise ValueError(f"News URL {location} is missing {', '.join(missing)}")
            entry.news_publication_name = str(tags["name"])
            entry.news_publication_language = str(tags["language"])
            entry.news_publication_date = format_w3c_date(tags["publication_date"])
            entry.news_title = str(tags["title"])

        return entry

    def _append(self, entry: SitemapEntry):
        session = self.session
        if session.current is None:
            session.open_document()

        session.current.append(entry)
        session.url_count_total += 1
        session.state = GeneratorState.ACCUMULATING

        if session.current.is_full:
            self._flush_current()

    def add_url(self, location: str, tags: Optional[Mapping[str, Any]] = None) -> bool:
        """
        Add one URL to the in-progress sitemap.

        Args:
            location: Path below the hostname (e.g. "somepath/"), or a full
                URL when use_hostname_prefix is off
            tags: Optional lastmod, changefreq, priority; news sitemaps also
                need name, language, publication_date and title

        Returns:
            True if the URL was added, False if it was rejected
        """
        self._require_open()
        try:
            entry = self._make_entry(location, tags)
        except ValueError as e:
            self._reject(str(e))
            return False

        self._append(entry)
        return True

    def add_urls(self, urls: Iterable[Union[str, SitemapEntry]]) -> int:
        """
        Add literal URLs, used verbatim as <loc>. Prepared entries keep their
        own absolute flag and are validated like add_url input.

        Args:
            urls: "URL" or "URL|changefreq" strings, or prepared SitemapEntry objects

        Returns:
            Number of URLs added
        """
        self._require_open()
        added = 0

        for item in urls:
            if isinstance(item, SitemapEntry):
                location, tags, absolute = item.location, _entry_tags(item), item.absolute
            else:
                location, _, changefreq = str(item).partition("|")
                location = location.strip()
                tags = {"changefreq": changefreq} if changefreq else None
                absolute = True

            try:
                entry = self._make_entry(location, tags, absolute=absolute)
            except ValueError as e:
                self._reject(str(e))
                continue
            self._append(entry)
            added += 1

        return added

    def add_urls_from_query(
        self,
        source: RowSource,
        template: str,
        fields: Sequence[str],
        tag_fields: Optional[Mapping[str, str]] = None
    ) -> int:
        """
        Add one URL per row of a row source.

        Rows are fetched in pages of max_entries_per_file; page N starts at
        offset N * max_entries_per_file. Each row's `fields` values fill the
        template's [placeholders] left to right.

        Args:
            source: Paged row source
            template: Location template, e.g. "/online-[city_name]-coupons/[oct_id]/"
            fields: Row field names, one per placeholder, in template order
            tag_fields: Optional mapping of tag name to row field
                (e.g. {"lastmod": "updated_at", "title": "headline"})

        Returns:
            Number of URLs added

        Raises:
            ConfigurationError: placeholder/field count mismatch or missing row field
            DataSourceError: a page could not be fetched
        """
        self._require_open()
        location_template = LocationTemplate(template, fields)
        tag_fields = dict(tag_fields or {})

        page_size = self.config.max_entries_per_file
        page_index = 0
        added = 0

        while True:
            offset = page_index * page_size
            try:
                rows = source.fetch_page(offset, page_size)
            except DataSourceError as e:
                self.session.report.errors.append(f"Query failed at offset {offset}: {e}")
                logger.error(f"Stopping query at offset {offset}: {e}")
                raise

            if not rows:
                break

            for row in rows:
                tags: Dict[str, Any] = {tag: get_field(row, name) for tag, name in tag_fields.items()}
                if self.add_url(location_template.render(row), tags):
                    added += 1

            if len(rows) < page_size:
                break
            page_index += 1

        logger.info(
            f"Added {added} URLs from {page_index + 1} page(s) for {template}",
            extra={"url_count": added}
        )
        return added

    # ==================== DOCUMENTS ====================

    def _flush_current(self):
        session = self.session
        document = session.current
        session.current = None
        if document is None:
            return

        document.seal()
        if not len(document):
            return

        session.documents_produced += 1
        filename = self.config.sitemap_filename(document.sequence)

        try:
            bytes_written = self.writer.flush_document(document)
        except OutputDirectoryError as e:
            session.state = GeneratorState.FAILED
            session.report.errors.append(str(e))
            logger.error(f"Aborting sitemap generation: {e}")
            raise
        except SitemapWriteError as e:
            session.failed_sequences.append(document.sequence)
            session.report.errors.append(f"Could not write {filename}: {e}")
            logger.error(f"Sitemap file not written: {e}", extra={"sitemap_file": filename})
            return

        session.report.documents_written += 1
        session.report.status_items.append(f"Wrote {bytes_written:,} bytes to {filename}")

    def end_document(self):
        """Seal the in-progress document, writing it if it holds any URLs."""
        if self.state not in _OPEN_STATES:
            raise GeneratorStateError(f"Cannot end the document in state {self.state.value}")
        self._flush_current()
        self.session.state = GeneratorState.ENDED

    def build_index(self) -> str:
        """Build the sitemap index content for every document written."""
        if self.state != GeneratorState.ENDED:
            raise GeneratorStateError(f"Cannot build the index in state {self.state.value}")

        self.index_content = self.writer.build_index(
            self.session.documents_produced,
            exclude=self.session.failed_sequences
        )
        self.session.state = GeneratorState.INDEX_BUILT
        return self.index_content

    def write_index(self) -> bool:
        """Write the index built by build_index(). Failure is reported, not raised."""
        if self.state != GeneratorState.INDEX_BUILT:
            raise GeneratorStateError(f"Cannot write the index in state {self.state.value}")

        filename = self.config.index_filename
        if self.writer.write_index(self.index_content):
            self.session.state = GeneratorState.INDEX_WRITTEN
            self.session.report.index_filename = filename
            self.session.report.status_items.append(f"Wrote {filename}")
            return True

        self.session.report.errors.append(f"Could not open file {filename} for writing")
        return False

    def end(self) -> RunReport:
        """
        Signal that all URLs have been added: write the last document,
        then build and write the sitemap index.

        Returns:
            RunReport with status items and errors for the run
        """
        if self.state in _OPEN_STATES:
            self.end_document()
        if self.state == GeneratorState.ENDED:
            self.build_index()
        if self.state == GeneratorState.INDEX_BUILT:
            self.write_index()

        report = self.report
        logger.info(
            f"Sitemap run finished: {report.documents_written} file(s), "
            f"{report.url_count_total} URLs, {len(report.errors)} error(s)",
            extra={"url_count": report.url_count_total}
        )
        return report
