"""
Catenary CLI entrypoint.

Subcommands:
- `serve`: run the API with uvicorn.
- `settings`: print the effective settings (defaults + YAML + env) as JSON.
- `replay`: feed a CSV of `seconds,lat,lon` samples through a location history with a
  simulated clock and print the trace result after every sample. Handy for tuning
  thresholds against a recorded ride.
"""

from __future__ import annotations

import argparse
import csv
import json
from datetime import datetime, timedelta, timezone
from typing import Any

from catenary.config.settings import get_settings
from catenary.core.geo import GeoPoint
from catenary.core.logging import configure_logging
from catenary.domain.models import Trace
from catenary.tracing.guidance import guidance
from catenary.tracing.history import LocationHistory

_REPLAY_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "catenary.api.app:app",
        host=args.host or settings.app.host,
        port=int(args.port or settings.app.port),
        log_config=None,
    )
    return 0


def _cmd_settings(_: argparse.Namespace) -> int:
    print(json.dumps(get_settings().model_dump(mode="json"), indent=2))
    return 0


def _read_samples(path: str) -> list[tuple[float, GeoPoint]]:
    """Parse `seconds,lat,lon` rows; a header row and blank lines are skipped."""
    out: list[tuple[float, GeoPoint]] = []
    with open(path, newline="", encoding="utf-8") as f:
        for row in csv.reader(f):
            if not row or not "".join(row).strip():
                continue
            try:
                seconds, lat, lon = (float(v) for v in row[:3])
            except ValueError:
                if not out:
                    continue
                raise ValueError(f"Invalid sample row {row!r}, expected seconds,lat,lon") from None
            out.append((seconds, GeoPoint(lat=lat, lon=lon)))
    return out


def replay(samples: list[tuple[float, GeoPoint]], history: LocationHistory, clock: dict[str, datetime]) -> list[dict]:
    """Run samples through `history`, moving `clock["now"]` to each sample's offset."""
    results = []
    for seconds, point in samples:
        clock["now"] = _REPLAY_EPOCH + timedelta(seconds=seconds)
        history.add_location(point)
        result = history.trace()
        row: dict[str, Any] = {"t": seconds, "lat": point.lat, "lon": point.lon}
        if isinstance(result, Trace):
            row["trace"] = result.model_dump(mode="json")
        else:
            row["no_trace"] = result.model_dump(mode="json")
            row["guidance"] = guidance(result)
        results.append(row)
    return results


def _cmd_replay(args: argparse.Namespace) -> int:
    settings = get_settings()
    clock = {"now": _REPLAY_EPOCH}
    history = LocationHistory(settings.tuning, clock=lambda: clock["now"])
    rows = replay(_read_samples(args.csv), history, clock)

    if args.json:
        print(json.dumps(rows, indent=2))
        return 0

    for row in rows:
        if "trace" in row:
            t = row["trace"]
            print(f"{row['t']:>8.1f}s  trace  speed={t['speed']:.2f} m/s  slope={t['slope']:.1f} deg")
        else:
            print(f"{row['t']:>8.1f}s  {row['no_trace']['kind']:<28} {row['guidance']}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the Catenary CLI."""
    parser = argparse.ArgumentParser(prog="catenary")
    sub = parser.add_subparsers(dest="command", required=True)

    srv = sub.add_parser("serve", help="Run the chat API server.")
    srv.add_argument("--host", type=str, default=None)
    srv.add_argument("--port", type=int, default=None)
    srv.set_defaults(func=_cmd_serve)

    st = sub.add_parser("settings", help="Print effective settings as JSON.")
    st.set_defaults(func=_cmd_settings)

    rp = sub.add_parser("replay", help="Replay recorded location samples through trace derivation.")
    rp.add_argument("csv", help="CSV file with seconds,lat,lon rows")
    rp.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    rp.set_defaults(func=_cmd_replay)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m catenary.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
