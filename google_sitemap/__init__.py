"""
Google XML sitemap generator.

Builds standard and Google News sitemaps from a Supabase table or a list of
URLs, splitting output at the per-file URL limit and writing a sitemap index.
"""

__version__ = "1.0.0"
