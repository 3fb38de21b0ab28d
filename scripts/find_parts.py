#!/usr/bin/env python3
"""Walk the fitment cascade from the shell.

Each level given on the command line is selected in turn.  At the first
level left unspecified the script prints that level's options and stops;
when every level is given it prints the reconciled parts.

Usage
-----
Set environment variables and run::

    export FITMENT_API_TOKEN="..."
    export FITMENT_TYPES_URL="https://fitment.example.com/api/types"
    ...
    export FITMENT_CATALOG_BASE_URL="https://shop.example.com"
    python scripts/find_parts.py --type ATV --make Yamaha --year 2019 --model Raptor

Options::

    --type/--category/--make/--year/--model   Cascade values
    --no-category        Use the four-level cascade
    --part ITEM          Print the vehicles ITEM fits instead
    --filter TERM        Narrow --part output by make/model/years
    --json               Output machine-readable JSON
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

from pyfitment import (  # noqa: E402
    FitmentClient,
    FitmentConfig,
    FitmentError,
    FitmentFinder,
    Level,
    LevelStatus,
    ReconciliationResult,
    filter_part_fitments,
)


def _emit(payload: Any, *, json_mode: bool) -> None:
    if json_mode:
        print(json.dumps(payload, indent=2, default=str, ensure_ascii=False))
        return
    if isinstance(payload, list):
        for line in payload:
            print(f"  {line}")
    else:
        print(payload)


def _report_error(finder: FitmentFinder) -> int:
    error = finder.state.error
    if error is not None:
        hint = " (retryable)" if error.retryable else ""
        print(f"error: {error.message}{hint}", file=sys.stderr)
        return 1
    if finder.state.notice:
        print(finder.state.notice, file=sys.stderr)
    return 2


def _result_rows(result: ReconciliationResult) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for item in result.items:
        record = item.source_record
        match = item.catalog_match
        rows.append(
            {
                "itemNumber": record.item_number,
                "description": record.description,
                "category": record.category,
                "subCategory": record.sub_category,
                "matched": match is not None,
                "title": match.display_title if match else None,
                "price": match.display_price if match else None,
                "url": match.url if match else None,
            }
        )
    return rows


async def _walk(client: FitmentClient, args: argparse.Namespace) -> int:
    finder = client.create_finder("cli", with_category=not args.no_category)
    await finder.initialize()
    wanted = {
        Level.TYPE: args.type,
        Level.CATEGORY: args.category,
        Level.MAKE: args.make,
        Level.YEAR: args.year,
        Level.MODEL: args.model,
    }
    for level in finder.levels:
        slot = finder.level(level)
        if slot.status is not LevelStatus.POPULATED:
            return _report_error(finder)
        value = wanted[level]
        if not value:
            if not args.json_mode:
                print(f"{slot.placeholder}")
            _emit([str(option) for option in slot.options], json_mode=args.json_mode)
            return 0
        await finder.select(level, value)

    result = await finder.confirm()
    if result is None:
        return _report_error(finder)
    if args.json_mode:
        _emit(_result_rows(result), json_mode=True)
        return 0
    print(f"{finder.current_selection().display_name}: {result.summary}")
    for row in _result_rows(result):
        status = f"{row['title']} {row['price']}" if row["matched"] else "not in catalog"
        print(f"  {row['itemNumber']:<16} {status}")
    return 0


async def _part(client: FitmentClient, args: argparse.Namespace) -> int:
    fitments = filter_part_fitments(await client.get_part_fitments(args.part), args.filter)
    if args.json_mode:
        _emit([fitment.model_dump(by_alias=True) for fitment in fitments], json_mode=True)
    elif not fitments:
        print("No matching vehicles found.")
    else:
        _emit(
            [f"{f.fitment_make} {f.fitment_model} ({f.fitment_years})" for f in fitments],
            json_mode=False,
        )
    return 0


async def main() -> int:
    parser = argparse.ArgumentParser(description="Find parts fitting a vehicle.")
    parser.add_argument("--type", help="Vehicle type")
    parser.add_argument("--category", help='Composite category, e.g. "Engine - Filters"')
    parser.add_argument("--make", help="Vehicle make")
    parser.add_argument("--year", help="Model year")
    parser.add_argument("--model", help="Vehicle model")
    parser.add_argument("--no-category", action="store_true", help="Skip the category level")
    parser.add_argument("--part", help="Print the vehicles this part number fits")
    parser.add_argument("--filter", help="Narrow --part output by make, model or years")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = FitmentConfig.from_env()
    try:
        async with FitmentClient(config) as client:
            if args.part:
                return await _part(client, args)
            return await _walk(client, args)
    except FitmentError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
