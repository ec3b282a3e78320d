import gzip
import os
import stat
from datetime import datetime, timezone

import pytest

from google_sitemap.errors import OutputDirectoryError, SitemapWriteError
from google_sitemap.sitemap.models import SitemapDocument, SitemapEntry
from google_sitemap.sitemap.parser import SitemapParser
from google_sitemap.sitemap.writer import NEWS_NS, SITEMAP_NS, SitemapWriter


def make_document(*locations, sequence=1):
    document = SitemapDocument(sequence=sequence, max_entries=100)
    for location in locations:
        document.append(SitemapEntry(location=location))
    return document


def test_render_standard_urlset(make_config):
    writer = SitemapWriter(make_config())
    document = make_document("/a/")
    document.entries[0].lastmod = "2024-04-19"
    document.entries[0].changefreq = "weekly"
    document.entries[0].priority = 0.5

    xml = writer.render_document(document)

    assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert f'<urlset xmlns="{SITEMAP_NS}"' in xml
    assert "xmlns:news" not in xml
    assert "<loc>https://example.com/a/</loc>" in xml
    assert "<lastmod>2024-04-19</lastmod>" in xml
    assert "<priority>0.5</priority>" in xml
    assert "<changefreq>" not in xml
    assert xml.rstrip().endswith("</urlset>")


def test_location_joining(make_config):
    writer = SitemapWriter(make_config(https_urls=False))
    assert writer.location_url(SitemapEntry(location="somepath/")) == "http://example.com/somepath/"
    assert writer.location_url(SitemapEntry(location="/somepath/")) == "http://example.com/somepath/"
    assert writer.location_url(
        SitemapEntry(location="https://other.example.com/x/", absolute=True)
    ) == "https://other.example.com/x/"


def test_location_without_hostname_prefix(make_config):
    writer = SitemapWriter(make_config(use_hostname_prefix=False))
    entry = SitemapEntry(location="https://www.example.com/from-db/")
    assert writer.location_url(entry) == "https://www.example.com/from-db/"


def test_locations_are_escaped(make_config):
    writer = SitemapWriter(make_config())
    xml = writer.render_document(make_document("/search?a=1&b=<2>"))
    assert "<loc>https://example.com/search?a=1&amp;b=&lt;2&gt;</loc>" in xml


def test_render_news_urlset(make_config):
    writer = SitemapWriter(make_config(sitemap_type="news"))
    document = SitemapDocument(sequence=1, max_entries=10)
    document.append(SitemapEntry(
        location="/yourpath/",
        news_publication_name="The Example Times",
        news_publication_language="en",
        news_publication_date="2024-04-01",
        news_title="Sample & Article",
    ))

    xml = writer.render_document(document)

    assert f'xmlns:news="{NEWS_NS}"' in xml
    assert "<news:name>The Example Times</news:name>" in xml
    assert "<news:language>en</news:language>" in xml
    assert "<news:publication_date>2024-04-01</news:publication_date>" in xml
    assert "<news:title>Sample &amp; Article</news:title>" in xml


def test_flush_document_writes_file(make_config, tmp_path):
    config = make_config()
    writer = SitemapWriter(config)

    bytes_written = writer.flush_document(make_document("/a/", "/b/", sequence=2))

    path = tmp_path / "sitemaps" / "sitemap2.xml"
    assert path.exists()
    assert path.stat().st_size == bytes_written
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o644
    entries = SitemapParser().parse_urlset(path.read_text(encoding="utf-8"))
    assert [e.location for e in entries] == ["https://example.com/a/", "https://example.com/b/"]


def test_flush_document_gzip(make_config, tmp_path):
    writer = SitemapWriter(make_config(gzip=True))

    bytes_written = writer.flush_document(make_document("/a/"))

    path = tmp_path / "sitemaps" / "sitemap1.xml.gz"
    data = path.read_bytes()
    assert len(data) == bytes_written
    assert b"<loc>https://example.com/a/</loc>" in gzip.decompress(data)


def test_memory_mode_keeps_output(memory_config, tmp_path):
    writer = SitemapWriter(memory_config)
    writer.flush_document(make_document("/a/"))
    assert writer.write_index(writer.build_index(1))

    assert set(writer.documents) == {"sitemap1.xml", "sitemap.xml"}
    assert "<loc>https://example.com/a/</loc>" in writer.documents["sitemap1.xml"]
    assert not (tmp_path / "sitemaps").exists()


def test_build_index(make_config):
    writer = SitemapWriter(make_config(gzip=True, filename_prefix="mysitemap"))
    when = datetime(2024, 4, 19, 8, 30, 5, tzinfo=timezone.utc)

    xml = writer.build_index(3, lastmod=when)
    entries = SitemapParser().parse_index(xml)

    assert "<sitemapindex" in xml
    assert [e.loc for e in entries] == [
        "https://example.com/mysitemap1.xml.gz",
        "https://example.com/mysitemap2.xml.gz",
        "https://example.com/mysitemap3.xml.gz",
    ]
    assert all(e.lastmod == "2024-04-19T08:30:05+00:00" for e in entries)


def test_build_index_skips_excluded(make_config):
    writer = SitemapWriter(make_config())
    entries = SitemapParser().parse_index(writer.build_index(3, exclude=[2]))
    assert [e.loc for e in entries] == [
        "https://example.com/sitemap1.xml",
        "https://example.com/sitemap3.xml",
    ]


def test_build_index_empty(make_config):
    writer = SitemapWriter(make_config())
    assert SitemapParser().parse_index(writer.build_index(0)) == []


def test_flush_document_unwritable_path(make_config, tmp_path):
    output = tmp_path / "sitemaps"
    output.mkdir()
    # a directory where the file should go makes open() fail
    (output / "sitemap1.xml").mkdir()
    writer = SitemapWriter(make_config())

    with pytest.raises(SitemapWriteError) as excinfo:
        writer.flush_document(make_document("/a/"))
    assert not isinstance(excinfo.value, OutputDirectoryError)


def test_output_directory_error(make_config, tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")
    writer = SitemapWriter(make_config(output_directory=str(blocker / "sitemaps")))

    with pytest.raises(OutputDirectoryError):
        writer.flush_document(make_document("/a/"))


def test_write_index_failure_returns_false(make_config, tmp_path):
    output = tmp_path / "sitemaps"
    output.mkdir()
    (output / "sitemap.xml").mkdir()
    writer = SitemapWriter(make_config())

    assert writer.write_index(writer.build_index(0)) is False


def test_write_index(make_config, tmp_path):
    writer = SitemapWriter(make_config())
    assert writer.write_index(writer.build_index(2)) is True
    content = (tmp_path / "sitemaps" / "sitemap.xml").read_text(encoding="utf-8")
    assert content.count("<sitemap>") == 2
