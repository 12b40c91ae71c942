from __future__ import annotations

import argparse
import asyncio
import json
from dataclasses import asdict

from oddsgraph.core.config import get_settings
from oddsgraph.core.database import AsyncSessionLocal
from oddsgraph.core.errors import OddsGraphError
from oddsgraph.core.logging import setup_logging
from oddsgraph.services.ingestion import OddsIngestionService
from oddsgraph.store.odds_store import OddsStore


def _csv(raw: str | None) -> list[str] | None:
    if not raw:
        return None
    return [item.strip() for item in raw.split(",") if item.strip()] or None


def _build_arg_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="oddsgraph operational CLI")
    subparsers = parser.add_subparsers(dest="command")

    refresh_parser = subparsers.add_parser("refresh", help="Fetch current odds for one sport and store them")
    refresh_parser.add_argument("--sport", default=settings.odds_default_sport_key, help="Sport key, e.g. basketball_nba")
    refresh_parser.add_argument("--regions", default=settings.odds_default_regions, help="Comma-separated regions")
    refresh_parser.add_argument("--markets", default=settings.odds_default_markets, help="Comma-separated markets")
    refresh_parser.add_argument(
        "--odds-format",
        default="american",
        choices=["american", "decimal", "hongkong"],
    )

    archive_parser = subparsers.add_parser("archive", help="Move snapshots older than N days to the archive table")
    archive_parser.add_argument("--days", type=float, default=settings.odds_archive_days)

    subparsers.add_parser("status", help="Print snapshot counts and the latest fetch time")

    return parser


def _print(payload: dict) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True, default=str))


async def _run(args: argparse.Namespace) -> int:
    async with AsyncSessionLocal() as db:
        service = OddsIngestionService(OddsStore(db))
        if args.command == "refresh":
            result = await service.refresh_odds(
                args.sport,
                regions=_csv(args.regions),
                markets=_csv(args.markets),
                odds_format=args.odds_format,
            )
        elif args.command == "archive":
            result = await service.archive_old_snapshots(args.days)
        else:
            result = await service.status()
    _print(asdict(result))
    return 0


def main() -> int:
    parser = _build_arg_parser()
    args = parser.parse_args()
    if args.command not in {"refresh", "archive", "status"}:
        parser.print_help()
        return 1

    setup_logging()
    try:
        return asyncio.run(_run(args))
    except OddsGraphError as exc:
        _print({"error": {"code": exc.code, "message": exc.message}})
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
