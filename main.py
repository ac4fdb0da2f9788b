# main.py
"""
Command-line entry point.

Usage:
    python main.py serve
    python main.py sync
    python main.py ranking
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace

from g2history.config import Settings
from g2history.database import Database
from g2history.errors import FetchFailed, StoreError, SyncPersistError
from g2history.scraper import RemotePageFetcher
from g2history.sync import MatchSync


def _serve(settings: Settings, args: argparse.Namespace) -> int:
    import uvicorn

    from web.app import create_app

    uvicorn.run(
        create_app(settings),
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


def _sync(settings: Settings, args: argparse.Namespace) -> int:
    db = Database(settings.database_url, settings.database_auth_token)
    try:
        sync = MatchSync(RemotePageFetcher.from_settings(settings), db)
        result = asyncio.run(sync.sync_upcoming_matches())
    except (FetchFailed, SyncPersistError, StoreError) as e:
        print(f"[SYNC] Failed: {e}", file=sys.stderr)
        return 1
    finally:
        db.close()
    print(f"[SYNC] Updated {result.updated} upcoming matches")
    return 0


def _ranking(settings: Settings, args: argparse.Namespace) -> int:
    fetcher = RemotePageFetcher.from_settings(settings)
    try:
        entries = asyncio.run(fetcher.fetch_ranking())
    except FetchFailed as e:
        print(f"[RANKING] Failed: {e}", file=sys.stderr)
        return 1
    print(json.dumps(entries, indent=2, ensure_ascii=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='G2 History API server and scrape jobs',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --port 8080
  python main.py sync
  python main.py ranking --headed
        """
    )
    scrape_options = argparse.ArgumentParser(add_help=False)
    scrape_options.add_argument('--headed', action='store_true', help='Show the browser window while scraping')
    subparsers = parser.add_subparsers(dest='command', required=True)

    serve = subparsers.add_parser('serve', parents=[scrape_options], help='Run the HTTP API')
    serve.add_argument('--host', default=None, help='Bind address (default: HOST or 0.0.0.0)')
    serve.add_argument('--port', type=int, default=None, help='Listen port (default: PORT or 3000)')
    serve.set_defaults(handler=_serve)

    sync = subparsers.add_parser(
        'sync', parents=[scrape_options], help='Replace stored upcoming matches with a fresh scrape'
    )
    sync.set_defaults(handler=_sync)

    ranking = subparsers.add_parser('ranking', parents=[scrape_options], help='Scrape and print the SoloQ ranking')
    ranking.set_defaults(handler=_ranking)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    if args.headed:
        settings = replace(settings, scraper_headless=False)
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.handler(settings, args)


if __name__ == "__main__":
    sys.exit(main())
