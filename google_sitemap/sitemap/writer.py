"""
Sitemap file and index writer.
Serializes urlset documents, writes them (optionally gzipped) and builds
the sitemapindex listing every written file.
"""

import gzip
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Collection, Dict, Optional, Union
from xml.sax.saxutils import escape

from google_sitemap.config import GeneratorConfig
from google_sitemap.errors import OutputDirectoryError, SitemapWriteError
from google_sitemap.logging_config import get_logger
from google_sitemap.sitemap.models import SitemapDocument, SitemapEntry

logger = get_logger("sitemap.writer")

SITEMAP_NS = "http://www.google.com/schemas/sitemap/0.84"
NEWS_NS = "http://www.google.com/schemas/sitemap-news/0.9"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

FILE_MODE = 0o644


class SitemapWriter:
    """
    Writes urlset documents and the sitemap index.

    In 'file' mode output goes to config.output_directory. In 'memory' mode
    nothing touches the disk and every output is kept in `documents`, keyed
    by filename.
    """

    def __init__(self, config: GeneratorConfig):
        self.config = config
        self.documents: Dict[str, Union[str, bytes]] = {}
        self._directory_ready = False

    @property
    def in_memory(self) -> bool:
        return self.config.output_mode == "memory"

    # ==================== SERIALIZATION ====================

    def _urlset_start(self) -> str:
        lines = [
            XML_DECLARATION,
            f'<urlset xmlns="{SITEMAP_NS}"',
        ]
        if self.config.sitemap_type == "news":
            lines.append(f'xmlns:news="{NEWS_NS}"')
        lines.extend([
            f'xmlns:xsi="{XSI_NS}"',
            f'xsi:schemaLocation="{SITEMAP_NS}',
            f'{SITEMAP_NS}/sitemap.xsd">',
        ])
        return "\n".join(lines) + "\n"

    def location_url(self, entry: SitemapEntry) -> str:
        """Full <loc> value for an entry, before escaping."""
        if entry.absolute or not self.config.use_hostname_prefix:
            return entry.location
        return f"{self.config.base_url}/{entry.location.lstrip('/')}"

    def _url_block(self, entry: SitemapEntry) -> str:
        lines = ["   <url>", f"      <loc>{escape(self.location_url(entry))}</loc>"]

        if entry.lastmod:
            lines.append(f"      <lastmod>{escape(entry.lastmod)}</lastmod>")
        # <changefreq> is left out; crawlers ignore it
        if entry.priority is not None:
            lines.append(f"      <priority>{entry.priority}</priority>")

        if self.config.sitemap_type == "news":
            lines.extend([
                "      <news:news>",
                "         <news:publication>",
                f"            <news:name>{escape(entry.news_publication_name or '')}</news:name>",
                f"            <news:language>{escape(entry.news_publication_language or '')}</news:language>",
                "         </news:publication>",
                f"         <news:publication_date>{escape(entry.news_publication_date or '')}</news:publication_date>",
                f"         <news:title>{escape(entry.news_title or '')}</news:title>",
                "      </news:news>",
            ])

        lines.append("   </url>")
        return "\n".join(lines) + "\n"

    def render_document(self, document: SitemapDocument) -> str:
        """Serialize a document to urlset XML."""
        parts = [self._urlset_start()]
        parts.extend(self._url_block(entry) for entry in document.entries)
        parts.append("</urlset>\n")
        return "".join(parts)

    def build_index(
        self,
        document_count: int,
        exclude: Collection[int] = (),
        lastmod: Optional[datetime] = None
    ) -> str:
        """
        Build the sitemapindex document.

        Args:
            document_count: Number of urlset files produced (numbered 1..N)
            exclude: Sequence numbers to leave out (files that failed to write)
            lastmod: Timestamp for every entry; defaults to now (UTC)

        Returns:
            sitemapindex XML
        """
        when = lastmod or datetime.now(timezone.utc)
        stamp = when.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S+00:00")

        lines = [
            XML_DECLARATION,
            f'<sitemapindex xmlns="{SITEMAP_NS}"',
            f'xmlns:xsi="{XSI_NS}"',
            f'xsi:schemaLocation="{SITEMAP_NS}',
            f'{SITEMAP_NS}/siteindex.xsd">',
        ]

        for sequence in range(1, document_count + 1):
            if sequence in exclude:
                continue
            loc = f"{self.config.base_url}/{self.config.sitemap_filename(sequence)}"
            lines.extend([
                "   <sitemap>",
                f"      <loc>{escape(loc)}</loc>",
                f"      <lastmod>{stamp}</lastmod>",
                "   </sitemap>",
            ])

        lines.append("</sitemapindex>")
        return "\n".join(lines) + "\n"

    # ==================== OUTPUT ====================

    def _ensure_output_directory(self) -> Path:
        directory = Path(self.config.output_directory)
        if not self._directory_ready:
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise OutputDirectoryError(
                    f"Could not create output directory {directory}: {e}",
                    filename=str(directory)
                ) from e
            self._directory_ready = True
        return directory

    def _write(self, filename: str, data: bytes) -> int:
        directory = self._ensure_output_directory()
        path = directory / filename

        try:
            with open(path, "wb") as f:
                f.write(data)
            os.chmod(path, FILE_MODE)
        except OSError as e:
            raise SitemapWriteError(f"Could not write {path}: {e}", filename=str(path)) from e

        return len(data)

    def flush_document(self, document: SitemapDocument) -> int:
        """
        Serialize and write one urlset document.

        Args:
            document: Document to write; its sequence number names the file

        Returns:
            Number of bytes written (compressed size when gzipped)

        Raises:
            SitemapWriteError: if the file cannot be written
        """
        filename = self.config.sitemap_filename(document.sequence)
        data = self.render_document(document).encode("utf-8")
        if self.config.gzip:
            data = gzip.compress(data, compresslevel=9)

        if self.in_memory:
            self.documents[filename] = data if self.config.gzip else data.decode("utf-8")
            bytes_written = len(data)
        else:
            bytes_written = self._write(filename, data)

        logger.info(
            f"Wrote {bytes_written:,} bytes to {filename}",
            extra={"sitemap_file": filename, "bytes_written": bytes_written, "url_count": len(document)}
        )
        return bytes_written

    def write_index(self, content: str) -> bool:
        """
        Write the sitemap index file. Failures are logged, not raised.

        Returns:
            True if the index was written
        """
        filename = self.config.index_filename

        if self.in_memory:
            self.documents[filename] = content
            return True

        try:
            bytes_written = self._write(filename, content.encode("utf-8"))
        except SitemapWriteError as e:
            logger.error(f"Sitemap index not written: {e}", extra={"sitemap_file": filename})
            return False

        logger.info(
            f"Wrote sitemap index {filename}",
            extra={"sitemap_file": filename, "bytes_written": bytes_written}
        )
        return True
