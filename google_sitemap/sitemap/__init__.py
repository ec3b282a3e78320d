# Sitemap module
from google_sitemap.sitemap.builder import SitemapBuilder
from google_sitemap.sitemap.models import SitemapEntry, SitemapDocument, RunReport, GeneratorState
from google_sitemap.sitemap.parser import SitemapParser, read_sitemap
from google_sitemap.sitemap.template import LocationTemplate
from google_sitemap.sitemap.writer import SitemapWriter

__all__ = [
    "SitemapBuilder",
    "SitemapEntry",
    "SitemapDocument",
    "RunReport",
    "GeneratorState",
    "SitemapParser",
    "read_sitemap",
    "LocationTemplate",
    "SitemapWriter",
]
