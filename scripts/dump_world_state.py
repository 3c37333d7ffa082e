#!/usr/bin/env python3
"""Dump one world-state snapshot for a coordinate.

Fetches every signal once, printing the values, where each one came
from (live, fallback or simulated), and the share link query.

Usage
-----
::

    python scripts/dump_world_state.py --lat 40.4168 --lng -3.7038

Options::

    --lat / --lng        Coordinate (default: Mexico City)
    --json               Output the response envelope as JSON
    --output FILE        Write output to FILE instead of stdout
    --no-geocoding       Skip reverse geocoding
    --verbose            Enable debug logging

Provider credentials are read from ``TOMTOM_API_KEY`` and
``TWITTER_BEARER_TOKEN`` when set.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyworldstate import (  # noqa: E402
    WorldState,
    WorldStateAggregator,
    WorldStateConfig,
    WorldStateResponse,
    build_share_query,
)
from pyworldstate._constants import DEFAULT_LAT, DEFAULT_LNG, SIGNAL_NAMES  # noqa: E402

# ── helpers ──────────────────────────────────────────────────


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


def _format_signal(name: str, values: dict[str, Any], health: str) -> list[str]:
    lines = [f"  {name} [{health}]"]
    for key, value in values.items():
        lines.append(f"      {key}: {value}")
    return lines


def render_text(state: WorldState) -> str:
    out: list[str] = [_section("LOCATION")]
    loc = state.location
    out.append(f"  lat={loc.lat} lng={loc.lng} city={loc.city or '-'} code={loc.city_code}")
    out.append(f"  generated_at={state.generated_at.isoformat()}")
    out.append(f"  edition={state.edition_number} seed={state.seed}")

    out.append(_section("SIGNALS"))
    for name in SIGNAL_NAMES:
        signal = getattr(state, name)
        entry = state.api_health.get(name)
        health = "?"
        if entry is not None:
            health = entry.status.value
            if entry.latency_ms is not None:
                health += f", {entry.latency_ms} ms"
        out.extend(_format_signal(name, signal.model_dump(mode="json"), health))

    out.append(_section("SHARE"))
    out.append(f"  /?{build_share_query(state)}")
    return "\n".join(out)


# ── main ─────────────────────────────────────────────────────


async def main() -> None:
    parser = argparse.ArgumentParser(
        description="Dump one world-state snapshot",
    )
    parser.add_argument("--lat", type=float, default=DEFAULT_LAT, help="Latitude (default: Mexico City)")
    parser.add_argument("--lng", type=float, default=DEFAULT_LNG, help="Longitude (default: Mexico City)")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--output", "-o", help="Write output to FILE instead of stdout")
    parser.add_argument("--no-geocoding", action="store_true", help="Skip reverse geocoding")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    overrides: dict[str, Any] = {}
    if args.no_geocoding:
        overrides["geocoding_enabled"] = False
    config = WorldStateConfig.from_env(**overrides)

    async with WorldStateAggregator(config) as aggregator:
        state, cached = await aggregator.get_world_state(args.lat, args.lng)

    if args.json_mode:
        payload = json.dumps(
            WorldStateResponse(data=state, cached=cached).to_json_dict(),
            indent=2,
            ensure_ascii=False,
        )
    else:
        payload = render_text(state)

    if args.output:
        Path(args.output).write_text(payload, encoding="utf-8")
        print(f"Output written to {args.output}", file=sys.stderr)
    else:
        print(payload)


if __name__ == "__main__":
    asyncio.run(main())
