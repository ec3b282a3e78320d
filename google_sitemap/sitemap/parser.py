"""
Sitemap XML parser.
Reads generated sitemap index and urlset files back into entries.
"""

import gzip
from pathlib import Path
from typing import List, Optional, Tuple, Union

from lxml import etree

from google_sitemap.logging_config import get_logger
from google_sitemap.sitemap.models import SitemapEntry, SitemapIndexEntry

logger = get_logger("sitemap.parser")

# XML namespaces - Google 0.84 plus both sitemaps.org variants
GOOGLE_NS = {"sm": "http://www.google.com/schemas/sitemap/0.84"}
SITEMAP_NS_HTTP = {"sm": "http://www.sitemaps.org/schemas/sitemap/0.9"}
SITEMAP_NS_HTTPS = {"sm": "https://www.sitemaps.org/schemas/sitemap/0.9"}
NEWS_NS = {"news": "http://www.google.com/schemas/sitemap-news/0.9"}

_KNOWN_NAMESPACES = (GOOGLE_NS, SITEMAP_NS_HTTP, SITEMAP_NS_HTTPS)


def _text(elem) -> Optional[str]:
    if elem is not None and elem.text:
        return elem.text.strip()
    return None


class SitemapParser:
    """
    Parser for XML sitemaps.
    Handles both sitemap index and regular urlsets.
    """

    def is_sitemap_index(self, xml_content: str) -> bool:
        """Check if content is a sitemap index."""
        return "<sitemapindex" in xml_content

    def _detect_sitemap_namespace(self, root) -> dict:
        """Pick the namespace map matching the root element's default namespace."""
        default_ns = root.nsmap.get(None, "")
        for ns in _KNOWN_NAMESPACES:
            if ns["sm"] == default_ns:
                return ns
        return SITEMAP_NS_HTTP

    def parse_index(self, xml_content: str) -> List[SitemapIndexEntry]:
        """
        Parse a sitemap index file.

        Args:
            xml_content: XML string

        Returns:
            List of SitemapIndexEntry, in document order

        Raises:
            etree.XMLSyntaxError: if the content is not well-formed
        """
        root = etree.fromstring(xml_content.encode("utf-8"))
        sitemap_ns = self._detect_sitemap_namespace(root)

        entries = []
        for sitemap in root.xpath("//sm:sitemap", namespaces=sitemap_ns):
            loc = _text(sitemap.find("sm:loc", namespaces=sitemap_ns))
            if loc:
                entries.append(SitemapIndexEntry(
                    loc=loc,
                    lastmod=_text(sitemap.find("sm:lastmod", namespaces=sitemap_ns))
                ))

        logger.debug(f"Parsed sitemap index with {len(entries)} sitemaps")
        return entries

    def parse_urlset(self, xml_content: str) -> List[SitemapEntry]:
        """
        Parse a regular or news sitemap (urlset).

        Args:
            xml_content: XML string

        Returns:
            List of SitemapEntry, in document order

        Raises:
            etree.XMLSyntaxError: if the content is not well-formed
        """
        root = etree.fromstring(xml_content.encode("utf-8"))
        sitemap_ns = self._detect_sitemap_namespace(root)

        entries = []
        for url_elem in root.xpath("//sm:url", namespaces=sitemap_ns):
            loc = _text(url_elem.find("sm:loc", namespaces=sitemap_ns))
            if not loc:
                continue

            priority = _text(url_elem.find("sm:priority", namespaces=sitemap_ns))
            entry = SitemapEntry(
                location=loc,
                lastmod=_text(url_elem.find("sm:lastmod", namespaces=sitemap_ns)),
                changefreq=_text(url_elem.find("sm:changefreq", namespaces=sitemap_ns)),
                priority=float(priority) if priority else None,
                absolute=True,
            )

            # Check for news sitemap data
            news_elem = url_elem.find("news:news", namespaces=NEWS_NS)
            if news_elem is not None:
                entry.news_title = _text(news_elem.find("news:title", namespaces=NEWS_NS))
                entry.news_publication_date = _text(news_elem.find("news:publication_date", namespaces=NEWS_NS))
                publication = news_elem.find("news:publication", namespaces=NEWS_NS)
                if publication is not None:
                    entry.news_publication_name = _text(publication.find("news:name", namespaces=NEWS_NS))
                    entry.news_publication_language = _text(publication.find("news:language", namespaces=NEWS_NS))

            entries.append(entry)

        logger.debug(f"Parsed urlset with {len(entries)} URLs")
        return entries

    def parse(self, xml_content: str) -> Tuple[List[SitemapEntry], List[SitemapIndexEntry]]:
        """
        Parse any sitemap content.

        Returns:
            Tuple of (url_entries, index_entries)
            One of these will be empty depending on sitemap type.
        """
        if self.is_sitemap_index(xml_content):
            return [], self.parse_index(xml_content)
        return self.parse_urlset(xml_content), []


def read_sitemap(path: Union[str, Path]) -> str:
    """Read a sitemap file from disk, decompressing .gz files."""
    content = Path(path).read_bytes()

    if str(path).endswith(".gz"):
        try:
            content = gzip.decompress(content)
        except gzip.BadGzipFile:
            logger.warning(f"{path} is not gzip-compressed, reading as plain XML")

    return content.decode("utf-8")
