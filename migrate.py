#!/usr/bin/env python3
"""
Docusaurus to Mintlify Migration Tool

Converts Docusaurus documentation sources (one tree per product version)
into a Mintlify-ready MDX tree with a navigation dropdown per product.

Source layouts:
  Docusaurus site:  python migrate.py ./cosmos-sdk-docs -p sdk
                    (versioned_docs/version-X -> vX, docs/ -> next)
  Version folders:  python migrate.py ./docs-by-version -p ibc
                    (every subdirectory is one version)
  Single version:   python migrate.py ./docs -p evm --version v0.4.x
"""

import argparse
import logging
import sys

from docusaurus_migrator.options import ConfigError, MigrationOptions
from docusaurus_migrator.orchestrator import MigrationRun


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Migrate Docusaurus docs to Mintlify',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python migrate.py ./cosmos-sdk-docs --product sdk --output ./docs/sdk
  python migrate.py ./ibc-go/docs --product ibc --dry-run
  python migrate.py ./docs --product evm --version next --staging --update-nav
  python migrate.py ./docs --product sdk --update-nav --docs-json ./docs.json
        """,
    )
    parser.add_argument(
        'source',
        help='Docusaurus source directory',
    )
    parser.add_argument(
        '--product', '-p',
        required=True,
        help='Product label used in output links and navigation (e.g. sdk, ibc, evm)',
    )
    parser.add_argument(
        '--output', '-o',
        default='./output',
        help='Output directory (default: ./output)',
    )
    parser.add_argument(
        '--version',
        default=None,
        help='Treat the source directory as a single version with this label',
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Convert and report without writing anything',
    )
    parser.add_argument(
        '--staging',
        action='store_true',
        help='Write to the staging directory instead of --output',
    )
    parser.add_argument(
        '--staging-dir',
        default='./tmp/migration-staging',
        help='Staging directory (default: ./tmp/migration-staging)',
    )
    parser.add_argument(
        '--update-nav',
        action='store_true',
        help='Write navigation-snippet.json (and update --docs-json if given)',
    )
    parser.add_argument(
        '--docs-json',
        default=None,
        help='Existing docs.json to splice the product dropdown into (versions.json sits beside it)',
    )
    parser.add_argument(
        '--no-fetch',
        action='store_true',
        help="Don't download GitHub code referenced by reference blocks",
    )
    parser.add_argument(
        '--timeout',
        type=float,
        default=10.0,
        help='Timeout in seconds for reference downloads (default: 10)',
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Show debug logging',
    )
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    options = MigrationOptions(
        source_root=args.source,
        output_dir=args.output,
        product=args.product,
        version=args.version,
        dry_run=args.dry_run,
        staging=args.staging,
        staging_dir=args.staging_dir,
        update_navigation=args.update_nav,
        docs_json=args.docs_json,
        fetch_references=not args.no_fetch,
        fetch_timeout=args.timeout,
    )

    try:
        MigrationRun(options).run()
    except ConfigError as e:
        print(f"  ✗ {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
