#!/usr/bin/env python3
"""Dump everything the brandfeed store loads in one refresh cycle.

Runs a single refresh against the live API and prints, per domain, the
record count, then the first combined brand entity and any errors. Useful
for checking field names after the provider changes its payloads.

Usage
-----
Set environment variables and run::

    export BRANDFEED_API_KEY="..."
    python scripts/dump_brands.py

Options::

    --json               Output as machine-readable JSON
    --output FILE        Write output to FILE instead of stdout
    --force              Bypass the cache (no effect on a fresh process)
    --sort-by FIELD      Order the combined brands by FIELD
    --sort-order ORDER   asc or desc
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

from brandfeed import BrandFeedClient, BrandFeedConfig, StoreSnapshot  # noqa: E402
from brandfeed.exceptions import BrandFeedConfigError  # noqa: E402


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


def _to_jsonable(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json", exclude={"raw"})
    if isinstance(value, list):
        return [_to_jsonable(item) for item in value]
    return value


def _summarize(snapshot: StoreSnapshot) -> dict[str, Any]:
    counts = {name: (None if data is None else len(data)) for name, data in snapshot.slices.items()}
    combined = snapshot.slices.get("combined_brands") or []
    return {
        "cycle": snapshot.cycle,
        "last_updated": snapshot.last_updated,
        "counts": counts,
        "first_combined": _to_jsonable(combined[0]) if combined else None,
        "error": snapshot.error,
        "errors": snapshot.errors,
    }


def _format_text(summary: dict[str, Any]) -> str:
    out: list[str] = [_section("RECORD COUNTS PER DOMAIN")]
    for name, count in summary["counts"].items():
        out.append(f"  {name}: {'not loaded' if count is None else count}")
    out.append(_section("FIRST COMBINED BRAND"))
    out.append(json.dumps(summary["first_combined"], indent=2, default=str, ensure_ascii=False))
    out.append(_section("ERRORS"))
    if summary["errors"]:
        out.extend(f"  {message}" for message in summary["errors"].values())
    else:
        out.append("  none")
    out.append(f"\nCycle {summary['cycle']} finished at {summary['last_updated']}")
    return "\n".join(out)


async def main() -> int:
    parser = argparse.ArgumentParser(
        description="Dump one brandfeed refresh cycle for debugging / development.",
    )
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--output", "-o", help="Write output to FILE instead of stdout")
    parser.add_argument("--force", action="store_true", help="Bypass the cache")
    parser.add_argument("--sort-by", help="Field ordering the combined brands")
    parser.add_argument("--sort-order", choices=("asc", "desc"), help="Combined ordering direction")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    overrides: dict[str, Any] = {}
    if args.sort_by:
        overrides["combined_sort_by"] = args.sort_by
    if args.sort_order:
        overrides["combined_sort_order"] = args.sort_order

    try:
        config = BrandFeedConfig.from_env(**overrides)
        client = BrandFeedClient(config)
    except BrandFeedConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    progress: list[str] = []

    def _on_update(snapshot: StoreSnapshot) -> None:
        loaded = sum(1 for data in snapshot.slices.values() if data is not None)
        progress.append(f"loading={snapshot.is_loading} loaded={loaded}/{len(snapshot.slices)}")

    async with client:
        unsubscribe = client.subscribe(_on_update)
        await client.refresh_data(force_refresh=args.force)
        unsubscribe()
        summary = _summarize(client.get_state())

    if args.verbose:
        for line in progress:
            print(line, file=sys.stderr)

    if args.json_mode or args.output:
        payload = json.dumps(summary, indent=2, default=str, ensure_ascii=False)
        if args.output:
            Path(args.output).write_text(payload, encoding="utf-8")
            print(f"JSON written to {args.output}", file=sys.stderr)
        else:
            print(payload)
    else:
        print(_format_text(summary))

    return 1 if summary["errors"] else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
