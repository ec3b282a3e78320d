# Database module
from google_sitemap.database.row_source import RowSource, ListRowSource, SupabaseRowSource

__all__ = ["RowSource", "ListRowSource", "SupabaseRowSource"]
