#!/usr/bin/env python3
"""
Main entry point for the search engine: crawl a site, serve or query its index.
"""

import asyncio
import argparse
import logging
import signal
import sys
from typing import Any, Dict, List, Optional

from minisearch import __version__
from minisearch.crawler.scheduler import CrawlerScheduler, CrawledPage, InvalidStartURLError
from minisearch.index.inverted_index import build_index
from minisearch.index.ranker import search
from minisearch.server.api import run_server
from minisearch.storage.index_store import IndexLoadError, load_index, save_index
from minisearch.utils.config import Config, ConfigurationError, load_config
from minisearch.utils.logger import log_system_info, setup_logging
from minisearch.utils.monitoring import initialize_monitoring


EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


class SearchEngineApp:
    """Main application class wiring configuration, crawling, indexing and serving."""

    def __init__(self):
        self.scheduler: Optional[CrawlerScheduler] = None
        self.logger = logging.getLogger(__name__)
        self._shutdown_event: Optional[asyncio.Event] = None

    def setup(self, config: Config):
        """Setup logging and monitoring."""
        setup_logging(config.logging)
        initialize_monitoring(config.monitoring.metrics_enabled)
        log_system_info()

    def setup_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> Dict[int, Any]:
        """Setup signal handlers for graceful shutdown. Returns the previous handlers."""
        def signal_handler(signum, frame):
            self.logger.info(f"Received signal {signum}, initiating shutdown...")
            loop.call_soon_threadsafe(self._shutdown_event.set)

        previous = {}
        for signum in (signal.SIGINT, signal.SIGTERM):
            previous[signum] = signal.signal(signum, signal_handler)
        return previous

    async def crawl(self, config: Config, start_url: str) -> List[CrawledPage]:
        """Run the crawler until it finishes or a shutdown signal arrives."""
        self._shutdown_event = asyncio.Event()
        previous_handlers = self.setup_signal_handlers(asyncio.get_running_loop())

        self.scheduler = CrawlerScheduler(config.crawler)
        crawl_task = asyncio.create_task(self.scheduler.crawl(start_url))
        shutdown_task = asyncio.create_task(self._shutdown_event.wait())

        try:
            # Wait for either crawling to complete or shutdown signal
            done, pending = await asyncio.wait(
                [crawl_task, shutdown_task],
                return_when=asyncio.FIRST_COMPLETED
            )

            if shutdown_task in done:
                self.logger.info("Shutdown requested, finishing in-flight fetches...")
                await self.scheduler.stop()
            else:
                shutdown_task.cancel()

            # Pages crawled so far are kept and indexed
            return await crawl_task
        finally:
            for signum, handler in previous_handlers.items():
                signal.signal(signum, handler)

    def run_crawl(self, args: argparse.Namespace) -> int:
        """Crawl a site, build the index and save it."""
        config = load_config(args.config, overrides={
            'crawler': {
                'max_pages': args.max_pages,
                'max_depth': args.max_depth,
                'concurrency': args.concurrency,
                'request_timeout': args.timeout,
            },
            'index': {'path': args.output},
        })
        self.setup(config)

        self.logger.info("=== CRAWL STARTING ===")
        self.logger.info(f"Start URL: {args.url}")
        self.logger.info(f"Max pages: {config.crawler.max_pages}")
        self.logger.info(f"Max depth: {config.crawler.max_depth}")
        self.logger.info(f"Concurrency: {config.crawler.concurrency}")
        self.logger.info(f"Output: {config.index.path}")

        try:
            pages = asyncio.run(self.crawl(config, args.url))
        except InvalidStartURLError as e:
            self.logger.error(str(e))
            return EXIT_FAILURE

        index = build_index(pages)
        try:
            save_index(index, config.index.path)
        except OSError as e:
            self.logger.error(f"Could not save index to {config.index.path}: {e}")
            return EXIT_FAILURE
        print(f"Crawled {len(pages)} pages, index saved to {config.index.path}")
        return EXIT_OK

    def run_serve(self, args: argparse.Namespace) -> int:
        """Load the index and serve the search API."""
        config = load_config(args.config, overrides={
            'index': {'path': args.index},
            'server': {'host': args.host, 'port': args.port},
        })
        self.setup(config)

        try:
            index = load_index(config.index.path)
        except IndexLoadError as e:
            self.logger.error(f"Cannot start server: {e}")
            return EXIT_FAILURE

        run_server(index, host=config.server.host, port=config.server.port,
                   default_limit=config.server.default_limit)
        return EXIT_OK

    def run_search(self, args: argparse.Namespace) -> int:
        """Answer one query from the terminal."""
        config = load_config(args.config, overrides={'index': {'path': args.index}})
        setup_logging(config.logging)

        try:
            index = load_index(config.index.path)
        except IndexLoadError as e:
            self.logger.error(str(e))
            return EXIT_FAILURE

        for result in search(index, args.query, args.limit):
            print(f"{result.score:.4f}\t{result.url}\t{result.title}")
        return EXIT_OK


def positive_int(value: str) -> int:
    """argparse type for options that must be >= 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {value}")
    return number


def non_negative_int(value: str) -> int:
    """argparse type for options that must be >= 0."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return number


def positive_float(value: str) -> float:
    """argparse type for timeouts."""
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="minisearch",
        description="Crawl a website, build a TF-IDF index and serve search",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py crawl --url https://example.com/              # Crawl with defaults
  python main.py crawl --url https://example.com/ --max-pages 200 --max-depth 5
  python main.py serve --index index.json --port 3000        # Serve GET /search?q=...
  python main.py search --index index.json "rust async"      # Query from the terminal
        """
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'MiniSearch {__version__}'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    crawl_parser = subparsers.add_parser('crawl', help='Crawl a site and build an index file')
    crawl_parser.add_argument('--url', '-u', required=True, help='Start URL (same host only)')
    crawl_parser.add_argument('--max-pages', '-n', type=positive_int,
                              help='Maximum number of pages to crawl (default: 50)')
    crawl_parser.add_argument('--max-depth', '-d', type=non_negative_int,
                              help='Maximum link distance from the start URL (default: 3)')
    crawl_parser.add_argument('--output', '-o', help='Index file to write (default: index.json)')
    crawl_parser.add_argument('--concurrency', '-c', type=positive_int,
                              help='Number of concurrent fetches (default: 5)')
    crawl_parser.add_argument('--timeout', type=positive_float,
                              help='Per-request timeout in seconds (default: 10)')
    crawl_parser.add_argument('--config', help='Path to YAML configuration file (default: config.yaml if present)')

    serve_parser = subparsers.add_parser('serve', help='Serve the search API for an index file')
    serve_parser.add_argument('--index', '-i', help='Index file to load (default: index.json)')
    serve_parser.add_argument('--port', '-p', type=positive_int, help='Port to listen on (default: 3000)')
    serve_parser.add_argument('--host', help='Interface to bind (default: 127.0.0.1)')
    serve_parser.add_argument('--config', help='Path to YAML configuration file (default: config.yaml if present)')

    search_parser = subparsers.add_parser('search', help='Query an index file from the terminal')
    search_parser.add_argument('query', help='Search terms')
    search_parser.add_argument('--index', '-i', help='Index file to load (default: index.json)')
    search_parser.add_argument('--limit', '-k', type=positive_int, help='Maximum number of results')
    search_parser.add_argument('--config', help='Path to YAML configuration file (default: config.yaml if present)')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    app = SearchEngineApp()
    commands = {
        'crawl': app.run_crawl,
        'serve': app.run_serve,
        'search': app.run_search,
    }

    try:
        return commands[args.command](args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_USAGE
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == '__main__':
    sys.exit(main())
