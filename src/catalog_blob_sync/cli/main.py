"""
Unified CLI for catalog-blob-sync

Command-line interface for scraping the app store catalog and mirroring
the blobs its entries reference.

Usage:
    catalog-sync metadata --watchfaces --apps       # Save catalog pages
    catalog-sync blobs                              # Mirror all blobs
    catalog-sync blobs --max-entries 10             # Bounded dev run
    catalog-sync status 52b0f8ab8b5f6f4f1c000035    # Show entry index
"""

import argparse
import json
import logging
import sys

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

DEFAULT_METADATA_DIR = "./data/metadata"
DEFAULT_BLOB_DIR = "./data/blobs"


def cmd_metadata(args):
    """Scrape catalog pages to JSON files."""
    from catalog_blob_sync.client import CatalogClient

    collections = []
    if args.watchfaces:
        collections.append("watchfaces")
    else:
        logger.info("Skipping watchfaces (enable with --watchfaces)")
    if args.apps:
        collections.append("watchapps-and-companions")
    else:
        logger.info("Skipping apps (enable with --apps)")

    with CatalogClient(rate_limit_delay=args.delay) as client:
        for collection in collections:
            logger.info(f"Scraping {collection}")
            written = client.scrape_collection(
                collection, args.output or DEFAULT_METADATA_DIR, max_pages=args.max_pages
            )
            print(f"{collection}: {len(written)} page(s) written")


def cmd_blobs(args):
    """Mirror blobs referenced by saved catalog entries."""
    from catalog_blob_sync.catalog import CatalogReader
    from catalog_blob_sync.sync import SyncEngine

    reader = CatalogReader(args.metadata_dir or DEFAULT_METADATA_DIR)

    def progress(current, entry_id):
        if current % 25 == 0:
            print(f"  [{current}] {entry_id}")

    with SyncEngine(output_dir=args.output or DEFAULT_BLOB_DIR, timeout=args.timeout) as engine:
        stats = engine.sync(
            reader.iter_entries(),
            max_entries=args.max_entries,
            progress_callback=progress,
        )

    print(f"\n{'=' * 50}")
    print("BLOB SYNC COMPLETE")
    print(f"{'=' * 50}")
    print(f"Entries found:     {stats['entries_found']}")
    print(f"Entries processed: {stats['entries_processed']}")
    print(f"Entries failed:    {stats['entries_failed']}")
    print(f"Blobs found:       {stats['blobs_found']}")
    print(f"Blobs valid:       {stats['blobs_valid']}")
    print(f"Blobs fetched:     {stats['blobs_fetched']}")
    print(f"Blobs failed:      {stats['blobs_failed']}")

    for error in stats["errors"]:
        print(f"Error [{error['entry_id']}]: {error['error']}")


def cmd_status(args):
    """Show index status for a catalog entry."""
    from catalog_blob_sync.sync import SyncEngine

    with SyncEngine(output_dir=args.output or DEFAULT_BLOB_DIR) as engine:
        status = engine.get_entry_status(args.entry_id)

    if args.json:
        print(json.dumps(status, indent=2))
        return

    print(f"\n{'=' * 50}")
    print(f"STATUS: {args.entry_id}")
    print(f"{'=' * 50}")
    print(f"Index:          {status['index_path']}")
    print(f"Records:        {status['record_count']}")
    print(f"Valid files:    {status['valid_count']}")
    print(f"Invalid files:  {status['invalid_count']}")
    print(f"Failed fetches: {status['failed_count']}")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="catalog-sync",
        description="Mirror app store catalog blobs with hash re-validation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Save catalog metadata pages
  catalog-sync metadata --watchfaces --apps
  catalog-sync metadata --watchfaces --max-pages 2

  # Mirror blobs (re-running only fetches missing or corrupt files)
  catalog-sync blobs
  catalog-sync blobs --max-entries 10 -o /tmp/blobs

  # Check an entry
  catalog-sync status 52b0f8ab8b5f6f4f1c000035

Use 'catalog-sync <command> --help' for more information on each command.
        """,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # metadata command
    metadata_parser = subparsers.add_parser("metadata", help="Scrape catalog pages")
    metadata_parser.add_argument(
        "--output", "-o", help=f"Metadata directory (default: {DEFAULT_METADATA_DIR})"
    )
    metadata_parser.add_argument("--watchfaces", action="store_true", help="Scrape watchfaces")
    metadata_parser.add_argument("--apps", action="store_true", help="Scrape watchapps")
    metadata_parser.add_argument("--max-pages", type=int, help="Limit pages per collection")
    metadata_parser.add_argument(
        "--delay",
        type=float,
        default=0.0,
        help="Delay between page requests in seconds (default: 0)",
    )
    metadata_parser.set_defaults(func=cmd_metadata)

    # blobs command
    blobs_parser = subparsers.add_parser("blobs", help="Mirror blobs of catalog entries")
    blobs_parser.add_argument(
        "--metadata-dir", help=f"Metadata directory (default: {DEFAULT_METADATA_DIR})"
    )
    blobs_parser.add_argument(
        "--output", "-o", help=f"Blob output directory (default: {DEFAULT_BLOB_DIR})"
    )
    blobs_parser.add_argument("--max-entries", type=int, help="Process at most N entries")
    blobs_parser.add_argument(
        "--timeout",
        type=int,
        default=60,
        help="Request timeout in seconds (default: 60)",
    )
    blobs_parser.set_defaults(func=cmd_blobs)

    # status command
    status_parser = subparsers.add_parser("status", help="Show entry index status")
    status_parser.add_argument("entry_id", help="Catalog entry id")
    status_parser.add_argument(
        "--output", "-o", help=f"Blob output directory (default: {DEFAULT_BLOB_DIR})"
    )
    status_parser.add_argument("--json", action="store_true", help="Output as JSON")
    status_parser.set_defaults(func=cmd_status)

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Error: {e}")
        if args.verbose:
            raise
        sys.exit(1)


if __name__ == "__main__":
    main()
