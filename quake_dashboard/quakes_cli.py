from __future__ import annotations
import argparse, json, sys
from quake_dashboard.details import detail_fields, detail_title
from quake_dashboard.table import TABLE_COLUMNS, TableView, PAGE_SIZES
from quake_dashboard.usgs import fetch_quakes, FeedError, FEEDS

def main(argv=None) -> int:
    p = argparse.ArgumentParser(description="Earthquake feed CLI")
    sub = p.add_subparsers(dest="cmd", required=True)

    fetchp = sub.add_parser("fetch", help="Fetch a feed and print one page of records")
    fetchp.add_argument("--feed", default="all_day", help=f"feed key ({', '.join(FEEDS)}) or URL")
    fetchp.add_argument("--limit", type=int, default=10, choices=PAGE_SIZES)
    fetchp.add_argument("--page", type=int, default=1)
    fetchp.add_argument("--sort", choices=list(TABLE_COLUMNS), default=None)
    fetchp.add_argument("--desc", action="store_true")

    showp = sub.add_parser("show", help="Print the details of one record")
    showp.add_argument("--feed", default="all_day")
    showp.add_argument("--id", required=True)

    args = p.parse_args(argv)

    if args.feed in FEEDS:
        print(f"Using USGS feed key: {args.feed} -> {FEEDS[args.feed]}", file=sys.stderr)
    else:
        print(f"Using custom URL: {args.feed}", file=sys.stderr)

    try:
        quakes = fetch_quakes(args.feed)
    except FeedError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    if args.cmd == "fetch":
        table = TableView(quakes, page_size=args.limit)
        if args.sort:
            table.sort_by(args.sort)
            if args.desc:
                table.sort_by(args.sort)
        table.go_to(args.page - 1)
        print(f"Fetched {len(quakes)} quakes; page {table.effective_page + 1}/{table.total_pages}", file=sys.stderr)
        print(json.dumps([row.quake.to_dict() for row in table.rows()], indent=2))
    elif args.cmd == "show":
        match = next((q for q in quakes if q.id == args.id), None)
        if match is None:
            print(f"No record with id {args.id}", file=sys.stderr)
            return 1
        print(detail_title(match))
        for label, value in detail_fields(match):
            print(f"  {label:<12} {value}")
    return 0

if __name__ == "__main__":
    sys.exit(main())
