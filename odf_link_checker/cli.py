#!/usr/bin/env python3
"""
Command-line interface for the ODF link checker

This module provides the CLI functionality, separated from the core library.
"""

import argparse
import sys
from typing import List, Optional

from .app import APP_CLI, APP_NAME, greet
from .core import OdfLinkChecker, ProcessingConfig, set_logging_level
from .extract_references import DocumentError
from .wikipedia import DEFAULT_SITE


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog=APP_CLI,
        description='Check hyperlinks status and wikipedia translations in ODF files')

    parser.add_argument('input_file', help='ODF or HTML document to check')
    parser.add_argument('output_file', nargs='?', default=None,
                        help='Where to save a copy with replaced hyperlinks (default: no copy)')

    parser.add_argument('--language', type=str, default=None,
                        help='Document language, overriding the one found in the document')
    parser.add_argument('--site', type=str, default=DEFAULT_SITE,
                        help=f'Encyclopedia site whose articles get translated (default: {DEFAULT_SITE})')

    # Performance settings
    parser.add_argument('--parallel', type=int, default=1, dest='parallelism', metavar='N',
                        help='Number of URLs processed concurrently (default: 1, sequential)')
    parser.add_argument('--timeout', type=float, default=10.0,
                        help='Request timeout in seconds (default: 10.0)')
    parser.add_argument('--max-per-host', type=int, default=3, dest='pool_maxsize',
                        help='Maximum simultaneous connections per host (default: 3)')
    parser.add_argument('--insecure', action='store_true',
                        help='Do not verify TLS certificates')

    # Output settings
    parser.add_argument('--csv', type=str, default=None,
                        help='Write per-URL results to this CSV file or directory')
    parser.add_argument('--progress', action='store_true',
                        help='Show a progress bar')
    parser.add_argument('--no-color', action='store_false', dest='color',
                        help='Do not colour classification tags')
    parser.add_argument('--verbose', action='store_true', default=False,
                        help='Enable verbose output (default: False)')

    return parser


def create_config_from_args(args) -> ProcessingConfig:
    """Create a ProcessingConfig from parsed arguments."""
    return ProcessingConfig(
        language=args.language,
        parallelism=args.parallelism,
        timeout=args.timeout,
        site=args.site,
        pool_maxsize=args.pool_maxsize,
        insecure=args.insecure,
        progress=args.progress,
        color=args.color,
        verbose=args.verbose,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.parallelism < 1:
        parser.error("--parallel must be at least 1")

    config = create_config_from_args(args)
    set_logging_level(config.verbose)
    greet()

    checker = OdfLinkChecker(config)

    try:
        checker.check_file(args.input_file, args.output_file)
        if args.csv:
            csv_filepath = checker.export_to_csv(args.csv)
            print(f"📄 CSV report saved to: {csv_filepath}")
    except DocumentError as e:
        print(f"❌ {e}")
        return 1
    except KeyboardInterrupt:
        print("\n⚠️  Processing interrupted by user.")
        return 130
    except Exception as e:
        print(f"\n❌ An error occurred: {e}")
        if config.verbose:
            import traceback
            traceback.print_exc()
        return 1

    print(f"{APP_NAME} completed successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
