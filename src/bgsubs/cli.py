"""Command line access to the resolver, the aggregated search and the proxy."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from .context import RequestContext, resolve_base_url
from .errors import BgSubsError
from .log import setup_logging
from .service import SubtitleService, build_label
from .settings import get_settings


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="bgsubs", description="Search and download Bulgarian subtitles.")
    parser.add_argument("--log-level", default=None, help="Override BG_SUBS_LOG_LEVEL (e.g. DEBUG).")
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="List subtitles for a Stremio id (tt0133093 or tt0944947:1:2).")
    search.add_argument("media_id")
    search.add_argument("--base-url", default=None, help="Base URL for subtitle links (default: from settings).")
    search.add_argument("--json", action="store_true", help="Print Stremio subtitle entries as JSON.")

    fetch = sub.add_parser("fetch", help="Download one subtitle as UTF-8 SubRip.")
    fetch.add_argument("provider")
    fetch.add_argument("subtitle_id")
    fetch.add_argument("-o", "--output", default=None, help="Write to this file instead of stdout.")

    resolve = sub.add_parser("resolve", help="Show title/year/kind for a Stremio id.")
    resolve.add_argument("media_id")

    return parser.parse_args(argv)


def _search(service: SubtitleService, args: argparse.Namespace) -> int:
    base_url = args.base_url if args.base_url is not None else resolve_base_url(settings=service.settings)
    ctx = RequestContext(base_url=base_url.rstrip("/"))
    if args.json:
        entries = asyncio.run(service.subtitles_for(args.media_id, ctx))
        print(json.dumps({"subtitles": entries}, ensure_ascii=False, indent=2))
        return 0

    ref = service.parse(args.media_id)
    metadata = service.resolve(args.media_id)
    records = asyncio.run(service.search_all(metadata, ref.season, ref.episode, ref.canonical_id))
    print(f"{metadata.title} ({metadata.year or 'n/a'}) [{metadata.kind.value}]: {len(records)} subtitle(s)")
    for record in records:
        print(f"  {record.provider}/{record.external_id}  {build_label(record)}")
    return 0


def _fetch(service: SubtitleService, args: argparse.Namespace) -> int:
    subtitle = service.fetch(args.provider, args.subtitle_id)
    if args.output:
        with open(args.output, "wb") as fh:
            fh.write(subtitle.content)
        print(
            f"[bgsubs] wrote {len(subtitle.content)} bytes to {args.output} "
            f"(encoding={subtitle.encoding}, entry={subtitle.source_name or '-'}, converted={subtitle.converted})",
            file=sys.stderr,
        )
    else:
        sys.stdout.write(subtitle.text)
    return 0


def _resolve(service: SubtitleService, args: argparse.Namespace) -> int:
    metadata = service.resolve(args.media_id)
    print(json.dumps({"title": metadata.title, "year": metadata.year, "kind": metadata.kind.value}, ensure_ascii=False))
    return 0


COMMANDS = {
    "search": _search,
    "fetch": _fetch,
    "resolve": _resolve,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    setup_logging(args.log_level or settings.log_level, settings.json_logs)

    service = SubtitleService(settings=settings)
    try:
        return COMMANDS[args.command](service, args)
    except BgSubsError as exc:
        print(f"[bgsubs] {exc.__class__.__name__}: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
