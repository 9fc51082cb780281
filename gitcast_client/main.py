"""Main entry point for the GitCast feed client."""

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from . import event_types
from .config import AppConfig, load_config
from .feed_sync import FeedSyncStateMachine, SyncState, ViewState
from .filters import FilterEngine
from .host import StaticHost, follow_link
from .http_backend import HTTPFeedBackend
from .identity import IdentityResolver
from .poller import StatusPoller
from .render import render_feed, render_repositories
from .repos import TopRepositories
from .sorting import SortMode

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    # stdout carries the rendered view, logs go to stderr
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)]
    )


def _build_filters(names: List[str]) -> FilterEngine:
    filters = FilterEngine()
    for name in names:
        key = event_types.resolve(name).key
        if not filters.state[key]:
            filters.toggle(key)
    return filters


def _event_type_name(value: str) -> str:
    try:
        event_types.resolve(value)
    except KeyError:
        known = ", ".join(t.alias for t in event_types.EVENT_TYPES)
        raise argparse.ArgumentTypeError(f"unknown event type '{value}' (choose from {known})")
    return value


async def run_once(config: AppConfig, args: argparse.Namespace) -> int:
    """
    Mount the client, wait for the feed cycle to settle, and print the view.

    Returns:
        Process exit status: 1 if the feed ended in the error state, else 0.
    """
    viewer_id = args.fid if args.fid is not None else config.identity.viewer_id
    host = StaticHost(viewer_id=viewer_id, open_browser=not args.no_browser)

    async with HTTPFeedBackend(config.server) as backend:
        resolver = IdentityResolver(host, config.identity.default_viewer_id)
        poller = StatusPoller(backend, config.poller)
        machine = FeedSyncStateMachine(backend, resolver, poller, config.server.feed_limit)
        repos = TopRepositories(backend)
        repos.select(SortMode(args.sort))

        def report(view: ViewState) -> None:
            if view.state is SyncState.INITIALIZING and view.progress:
                logger.info(view.progress)

        machine.subscribe(report)

        try:
            await machine.mount()
            if args.tab == "repos":
                await repos.load()
                # the feed is not shown on this tab
                machine.unmount()
                view = await machine.wait()
            else:
                view, _ = await asyncio.gather(machine.wait(), repos.load())
        finally:
            machine.unmount()

    filters = _build_filters(args.filter or [])
    if args.tab == "repos":
        ordered = repos.ordered()
        print(render_repositories(ordered, loading=repos.loading))
        urls = [repo.html_url for repo in ordered]
    else:
        print(render_feed(view, filters))
        events = filters.apply(view.snapshot.events) if view.snapshot else []
        urls = [event.event_url for event in events]

    if args.open is not None:
        if not 1 <= args.open <= len(urls):
            logger.error(f"--open {args.open} is out of range (1-{len(urls)})")
            return 1
        link = follow_link(host, resolver.result.context if resolver.result else None, urls[args.open - 1])
        if link:
            print(link)

    if args.tab == "feed" and view.state is SyncState.ERROR:
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point with command-line argument parsing."""
    parser = argparse.ArgumentParser(
        description="Merged GitHub/Farcaster activity feed and top repositories"
    )
    parser.add_argument(
        "--fid",
        type=int,
        default=None,
        help="Viewer FID (default: GITCAST_FID env var, then the built-in default)"
    )
    parser.add_argument(
        "--tab",
        choices=["feed", "repos"],
        default="feed",
        help="Which view to print (default: feed)"
    )
    parser.add_argument(
        "--filter",
        action="append",
        type=_event_type_name,
        metavar="TYPE",
        help="Only show events of this type; repeat for several (push, pr, watch, delete, create)"
    )
    parser.add_argument(
        "--sort",
        choices=[mode.value for mode in SortMode],
        default=SortMode.NONE.value,
        help="Repository ordering for the repos tab (default: none)"
    )
    parser.add_argument(
        "--open",
        type=int,
        default=None,
        metavar="N",
        help="Open the Nth item shown (1-based)"
    )
    parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Never launch a browser for --open"
    )

    args = parser.parse_args(argv)
    _configure_logging()

    try:
        config = load_config()
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    try:
        status = asyncio.run(run_once(config, args))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
        status = 130
    sys.exit(status)


if __name__ == "__main__":
    main()
