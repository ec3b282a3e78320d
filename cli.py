"""
Google XML Sitemap Generator - CLI

Command-line interface for generating and inspecting sitemaps.
"""

import argparse
import json
import sys
from pathlib import Path

from google_sitemap.config import get_config
from google_sitemap.database.row_source import SupabaseRowSource
from google_sitemap.errors import SitemapError
from google_sitemap.logging_config import setup_logging, get_logger
from google_sitemap.sitemap.builder import SitemapBuilder
from google_sitemap.sitemap.parser import SitemapParser, read_sitemap


def _split(value):
    return [part.strip() for part in value.split(",") if part.strip()] if value else []


def _read_url_file(path):
    with open(path, "r", encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip() and not line.startswith("#")]


def generate(args):
    """Generate sitemap files and the sitemap index."""
    config = get_config(args.config)
    setup_logging(level=config.log_level, log_file=args.log_file)
    logger = get_logger("cli")

    builder = SitemapBuilder(config)

    options = {}
    if args.prefix:
        options["filename_prefix"] = args.prefix
    if args.output_dir:
        options["output_directory"] = args.output_dir
    if args.gzip:
        options["gzip"] = True
    if args.max_entries:
        options["max_entries_per_file"] = args.max_entries
    if options:
        builder.configure(**options)

    if args.urls_file:
        added = builder.add_urls(_read_url_file(args.urls_file))
        logger.info(f"Added {added} URLs from {args.urls_file}")

    if args.table:
        if not (args.template and args.fields and args.order_by):
            raise SystemExit("--table needs --template, --fields and --order-by")
        fields = _split(args.fields)
        source = SupabaseRowSource(
            table=args.table,
            columns=sorted(set(fields)),
            order_by=_split(args.order_by)
        )
        builder.add_urls_from_query(source, args.template, fields)

    report = builder.end()

    print("\n" + "=" * 50)
    print("SITEMAP RESULTS")
    print("=" * 50)
    print(f"URLs added:     {report.url_count_total}")
    print(f"Files written:  {report.documents_written}")
    print(f"Sitemap index:  {report.index_filename or '(not written)'}")

    for item in report.status_items:
        print(f"  - {item}")

    if report.errors:
        print("\nErrors:")
        for err in report.errors:
            print(f"  - {err}")

    print("=" * 50)

    if not report.ok:
        sys.exit(1)


def inspect(args):
    """Show the contents of a generated sitemap or index file."""
    setup_logging(level="WARNING")

    parser = SitemapParser()
    urls, sitemaps = parser.parse(read_sitemap(args.path))

    print("\n" + "=" * 50)
    print(f"{Path(args.path).name}")
    print("=" * 50)

    if sitemaps:
        print(f"Sitemap index with {len(sitemaps)} sitemap(s)")
        for entry in sitemaps:
            print(f"  - {entry.loc} ({entry.lastmod})")
    else:
        print(f"Urlset with {len(urls)} URL(s)")
        for entry in urls[:args.limit]:
            print(f"  - {entry.location}")
        if len(urls) > args.limit:
            print(f"  ... {len(urls) - args.limit} more")

    print("=" * 50)


def show_config(args):
    """Show the effective configuration."""
    setup_logging(level="WARNING")
    config = get_config(args.config)
    print(json.dumps(config.to_dict(), indent=2))


def main(argv=None):
    """CLI main entry point."""
    parser = argparse.ArgumentParser(
        description="Google XML Sitemap Generator CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("--config", help="Path to a YAML config file")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # generate command
    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate sitemap files and the sitemap index"
    )
    generate_parser.add_argument("--table", help="Supabase table to read rows from")
    generate_parser.add_argument("--fields", help="Comma-separated row fields, in template order")
    generate_parser.add_argument("--template", help="Location template, e.g. '/city-[name]/[id]/'")
    generate_parser.add_argument("--order-by", help="Comma-separated columns to order rows by")
    generate_parser.add_argument("--urls-file", help="File with one 'URL|changefreq' per line")
    generate_parser.add_argument("--prefix", help="Sitemap filename prefix")
    generate_parser.add_argument("--output-dir", help="Directory to write files to")
    generate_parser.add_argument("--gzip", action="store_true", help="Gzip the urlset files")
    generate_parser.add_argument("--max-entries", type=int, help="Maximum URLs per sitemap file")
    generate_parser.add_argument("--log-file", help="Also write JSON logs to this file")
    generate_parser.set_defaults(func=generate)

    # inspect command
    inspect_parser = subparsers.add_parser(
        "inspect",
        help="Show the contents of a sitemap or sitemap index"
    )
    inspect_parser.add_argument("path", help="Path to a .xml or .xml.gz file")
    inspect_parser.add_argument("--limit", type=int, default=20, help="URLs to list")
    inspect_parser.set_defaults(func=inspect)

    # show-config command
    config_parser = subparsers.add_parser(
        "show-config",
        help="Show the effective configuration"
    )
    config_parser.set_defaults(func=show_config)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        args.func(args)
    except SitemapError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
