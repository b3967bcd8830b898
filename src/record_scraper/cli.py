"""
CLI module for record_scraper.

Provides command-line interface and orchestration logic.
"""

import argparse
import asyncio
import json
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from .config import load_config
from .base import C4ABase
from .batch_runner import BatchRunner
from .errors import RecordScraperError
from .extraction import JSONCSSExtractor
from .persistence import create_persistence_strategy

logger = logging.getLogger(__name__)

LOG_FILE_MAX_BYTES = 500 * 1024 * 1024
LOG_FILE_BACKUPS = 3


def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """
    Set up logging configuration.

    Args:
        verbose: Log at DEBUG instead of INFO
        log_file: Write to this size-rotated file instead of stderr
    """
    level = logging.DEBUG if verbose else logging.INFO
    handlers = None
    if log_file:
        handlers = [logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding='utf-8',
        )]
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=handlers,
    )


async def run_scraper(
    config_path: str,
    output_dir: str,
    dry_run: bool = False,
) -> None:
    """
    Main scraping orchestration function.

    Args:
        config_path: Path to configuration file
        output_dir: Output directory for extracted records
        dry_run: If True, only log URLs without fetching
    """
    config = load_config(config_path)

    Path(output_dir).mkdir(parents=True, exist_ok=True)

    if dry_run:
        for item in config.items:
            logger.info(f"Would extract '{item.schema_name}' records from: {item.url}")
        return

    persistence = create_persistence_strategy(
        config.persistence_strategy,
        output_dir
    )

    async with C4ABase(config.defaults) as base:
        batch_runner = BatchRunner(base, config, persistence)
        await batch_runner.run(config.items)
        stats = batch_runner.get_stats()
        logger.info(
            f"Batch processing stats: {stats.success} success, {stats.failed} failed, "
            f"{stats.skipped} skipped, {stats.records} records"
        )

    await persistence.finalize()

    logger.info("Scraping completed successfully")


def extract_file(html_file: str, config_path: str, schema_name: str, base_url: Optional[str] = None) -> str:
    """
    Extract records from a local HTML file.

    Args:
        html_file: Path to the HTML file
        config_path: Path to configuration file holding the schema
        schema_name: Name of the schema to apply
        base_url: URL to resolve ``absolute`` fields against

    Returns:
        Records as a JSON array
    """
    config = load_config(config_path)
    extractor = JSONCSSExtractor(config.get_schema(schema_name))

    html = Path(html_file).read_text(encoding='utf-8')
    records = extractor.extract(html, url=base_url)
    logger.info(f"Extracted {len(records)} records from {html_file}")

    return json.dumps(records, ensure_ascii=False, indent=2)


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Extract typed records from repeated structures in web pages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  record-scraper run config.json output/
  record-scraper run config.json output/ --dry-run --verbose
  record-scraper extract page.html config.json members --base-url https://example.com/
        """
    )
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose logging')
    parser.add_argument('--log-file',
                        help='Write logs to a rotating file instead of stderr')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    run_parser = subparsers.add_parser('run', help='Fetch configured pages and save their records')
    run_parser.add_argument('config_file', help='Path to JSON configuration file')
    run_parser.add_argument('output_dir', help='Directory to store extracted records')
    run_parser.add_argument('--dry-run', action='store_true',
                            help='Print URLs only, don\'t fetch or save')

    extract_parser = subparsers.add_parser('extract', help='Extract records from a local HTML file')
    extract_parser.add_argument('html_file', help='Path to HTML file')
    extract_parser.add_argument('config_file', help='Path to JSON configuration file')
    extract_parser.add_argument('schema', help='Name of the schema to apply')
    extract_parser.add_argument('--base-url', help='Resolve URL fields against this URL')

    args = parser.parse_args()
    setup_logging(args.verbose, args.log_file)

    try:
        if args.command == 'run':
            asyncio.run(run_scraper(
                config_path=args.config_file,
                output_dir=args.output_dir,
                dry_run=args.dry_run,
            ))
        elif args.command == 'extract':
            print(extract_file(args.html_file, args.config_file, args.schema, args.base_url))
        else:
            parser.print_help()
            sys.exit(1)
    except (RecordScraperError, OSError, ValueError, KeyError) as e:
        logger.error(f"Scraping failed: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
