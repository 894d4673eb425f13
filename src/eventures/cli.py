from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Dict, List, Optional

from rich.console import Console
from rich.table import Table

from eventures.config import settings
from eventures.core.models import MapUpdate
from eventures.core.paging import NO_PAGE
from eventures.core.session import MapSession
from eventures.providers.combined import build_source
from eventures.tools.make_map import write_map


def _parse_filters(pairs: List[str]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise SystemExit(f"--filter expects key=value, got '{pair}'")
        out[key.strip()] = value.strip()
    return out


def _points_table(update: MapUpdate, title: str) -> Table:
    table = Table(title=title)
    table.add_column("Id", justify="right")
    table.add_column("Lat")
    table.add_column("Lng")
    table.add_column("Events", justify="right")
    table.add_column("Focus")

    for marker_id, ap in enumerate(update.points):
        table.add_row(
            str(marker_id),
            ap.lat_text,
            ap.lng_text,
            str(ap.occurrences),
            "*" if marker_id == update.focus_index else "",
        )
    return table


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="eventures", description="Search events and list their map markers")
    ap.add_argument("--query", default="", help="Free-text event search")
    ap.add_argument("--page", type=int, default=0, help="0-based result page")
    ap.add_argument("--filter", action="append", default=[], metavar="KEY=VALUE", help="Extra source filter")
    ap.add_argument("--source", default=settings.default_source, help="eventfinda | mock")
    ap.add_argument("--records", type=Path, default=None, help="JSON file of records for the mock source")
    ap.add_argument("--step", type=int, default=0, help="Move the focus N markers (negative = back)")
    ap.add_argument("--map", type=Path, default=None, help="Write a Leaflet HTML map here")
    ap.add_argument("--debug", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s [eventures] %(levelname)s %(message)s",
    )

    console = Console()
    session = MapSession(build_source(args.source, args.records))

    if not session.search(args.query, page=args.page, filters=_parse_filters(args.filter)):
        console.print("[red]Event source unavailable[/red]")
        return 1

    for _ in range(abs(args.step)):
        if args.step > 0:
            session.step_next()
        else:
            session.step_previous()

    update = session.snapshot()
    if not update.points:
        console.print(f"No events with a location for '{args.query}' (page {args.page})")
        return 0

    console.print(_points_table(update, title=f"Eventures: '{args.query}' page {args.page}"))

    focus = update.focus
    if focus is not None:
        console.print(f"Focus: marker {update.focus_index} at {focus.point.lat:.5f}, {focus.point.lon:.5f}")
    if session.aggregator.dropped:
        console.print(f"Dropped {session.aggregator.dropped} record(s) with malformed coordinates")

    nxt = session.next_page()
    prev = session.previous_page()
    console.print(
        f"Next page: {nxt if nxt != NO_PAGE else '-'}   Previous page: {prev if prev != NO_PAGE else '-'}"
    )

    if args.map is not None:
        out = write_map(args.map, update)
        console.print(f"Saved: {out.resolve()}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
