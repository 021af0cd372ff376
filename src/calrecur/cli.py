from __future__ import annotations

import argparse
import json
import re
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

_DATE_RE = re.compile(r"^(-?\d+)-(\d{1,2})-(\d{1,2})$")


def _parse_date(s: str):
    """``YYYY-MM-DD`` with a 1-based month, the way dates are printed."""
    from calrecur import CalDate

    m = _DATE_RE.match(s)
    if not m:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {s!r}")
    y, mo, d = map(int, m.groups())
    return CalDate(y, mo - 1, d)


def _load_json(path: str) -> Any:
    with Path(path).open(encoding="utf-8") as fh:
        return json.load(fh)


def _setup_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")
    logger.enable("calrecur")


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("event", help="path to a JSON note record")
    p.add_argument("--calendar", default="gregorian", help="registered calendar name")
    p.add_argument("--calendar-file", help="JSON calendar definition (overrides --calendar)")
    p.add_argument("--events", help="JSON object mapping note ids to records (linked events, event: anchors)")


def _context(args) -> Dict[str, Any]:
    import calrecur

    calendar = calrecur.calendar_from_dict(_load_json(args.calendar_file)) if args.calendar_file else args.calendar
    events = _load_json(args.events) if args.events else None
    return {"calendar": calendar, "events": events}


def _print_dates(dates: List[Any], as_json: bool) -> None:
    if as_json:
        print(json.dumps([d.as_dict() for d in dates], indent=2))
        return
    for d in dates:
        print(d)


# ============================================================
# Sub-commands
# ============================================================

def cmd_calendars(args) -> int:
    import calrecur

    if args.info:
        print(json.dumps(calrecur.calendar_info(args.info), indent=2))
        return 0
    for name in calrecur.list_calendars():
        print(name)
    return 0


def cmd_occurs(args) -> int:
    import calrecur

    ctx = _context(args)
    spec = calrecur.spec_from_dict(_load_json(args.event), calendar=ctx["calendar"])
    hit = calrecur.is_occurring(spec, args.date, **ctx)
    print("yes" if hit else "no")
    return 0 if hit else 1


def cmd_list(args) -> int:
    import calrecur

    ctx = _context(args)
    spec = calrecur.spec_from_dict(_load_json(args.event), calendar=ctx["calendar"])
    dates = calrecur.occurrences_in_range(spec, args.start, args.end, args.max, **ctx)
    _print_dates(dates, args.json)
    return 0


def cmd_describe(args) -> int:
    import calrecur

    ctx = _context(args)
    spec = calrecur.spec_from_dict(_load_json(args.event), calendar=ctx["calendar"])
    print(calrecur.describe_recurrence(spec, **ctx))
    return 0


def cmd_computed(args) -> int:
    import calrecur

    ctx = _context(args)
    spec = calrecur.spec_from_dict(_load_json(args.event), calendar=ctx["calendar"])
    if spec.computed_config is None:
        print(f"{args.event}: record has no computedConfig", file=sys.stderr)
        return 2
    for year in range(args.year, args.year + args.years):
        d = calrecur.resolve_computed_date(spec.computed_config, year, **ctx)
        print(f"{year}: {d if d is not None else '-'}")
    return 0


def cmd_random(args) -> int:
    import calrecur

    ctx = _context(args)
    spec = calrecur.spec_from_dict(_load_json(args.event), calendar=ctx["calendar"])
    dates = calrecur.generate_random_occurrences(spec, args.year, calendar=ctx["calendar"])
    _print_dates(dates, args.json)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    p = argparse.ArgumentParser(prog="calrecur", description="Recurring events on configurable calendars.")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging on stderr")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_cal = sub.add_parser("calendars", help="List registered calendars")
    p_cal.add_argument("--info", metavar="NAME", help="print one calendar's summary as JSON")
    p_cal.set_defaults(func=cmd_calendars)

    p_occ = sub.add_parser("occurs", help="Does the event occur on a date? (exit 0 = yes, 1 = no)")
    _add_common(p_occ)
    p_occ.add_argument("date", type=_parse_date, help="YYYY-MM-DD")
    p_occ.set_defaults(func=cmd_occurs)

    p_list = sub.add_parser("list", help="List occurrence start dates in a range")
    _add_common(p_list)
    p_list.add_argument("start", type=_parse_date, help="YYYY-MM-DD")
    p_list.add_argument("end", type=_parse_date, help="YYYY-MM-DD")
    p_list.add_argument("--max", type=int, default=100, help="maximum number of dates (default 100)")
    p_list.add_argument("--json", action="store_true", help="print dates as JSON objects")
    p_list.set_defaults(func=cmd_list)

    p_desc = sub.add_parser("describe", help="Print a one-line summary of the recurrence")
    _add_common(p_desc)
    p_desc.set_defaults(func=cmd_describe)

    p_comp = sub.add_parser("computed", help="Resolve a computed event per year")
    _add_common(p_comp)
    p_comp.add_argument("year", type=int)
    p_comp.add_argument("--years", type=int, default=1, help="number of consecutive years (default 1)")
    p_comp.set_defaults(func=cmd_computed)

    p_rand = sub.add_parser("random", help="Pre-generate seeded random occurrences through a year")
    _add_common(p_rand)
    p_rand.add_argument("year", type=int, help="last year to generate")
    p_rand.add_argument("--json", action="store_true", help="print dates as JSON objects")
    p_rand.set_defaults(func=cmd_random)

    args = p.parse_args(argv)
    _setup_logging(args.verbose)

    from calrecur import CalrecurError

    try:
        return int(args.func(args) or 0)
    except (CalrecurError, OSError, json.JSONDecodeError) as exc:
        print(f"calrecur: error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
