"""Command line entry point: python -m chainpulse."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from chainpulse.config import get_settings
from chainpulse.database import StoreHandle
from chainpulse.errors import MalformedImport, StoreUnavailable
from chainpulse.logs import configure_logging
from chainpulse.schemas.analytics import AnalyticsCategory, AnalyticsQuery, AnalyticsType, ReportType
from chainpulse.services.analytics_service import AnalyticsService

logger = logging.getLogger("chainpulse")


def _build_service(database_url: str | None) -> AnalyticsService:
    settings = get_settings()
    store = StoreHandle(
        database_url or settings.database_url,
        echo=settings.database_echo,
        busy_timeout_seconds=settings.busy_timeout_seconds,
    )
    return AnalyticsService(store, settings)


def _query_from_args(args: argparse.Namespace) -> AnalyticsQuery:
    return AnalyticsQuery(
        type=args.type,
        category=args.category,
        start_date=args.start_date,
        end_date=args.end_date,
        limit=getattr(args, "limit", None),
    )


async def _run(args: argparse.Namespace) -> int:
    service = _build_service(args.database_url)
    try:
        if args.command == "stats":
            stats = await service.summarize(_query_from_args(args))
            print(stats.model_dump_json(indent=2))
        elif args.command == "export":
            payload = await service.export(_query_from_args(args))
            if args.output:
                Path(args.output).write_text(payload, encoding="utf-8")
                logger.info("Exported analytics events to %s", args.output)
            else:
                print(payload)
        elif args.command == "import":
            text = sys.stdin.read() if args.path == "-" else Path(args.path).read_text(encoding="utf-8")
            summary = await service.import_events(text)
            print(
                "import:",
                f"received={summary['received']}",
                f"imported={summary['imported']}",
                f"skipped={summary['skipped']}",
                f"rejected={summary['rejected']}",
            )
        elif args.command == "clear":
            await service.clear()
            print("cleared")
        elif args.command == "reports":
            report_type = ReportType(args.type) if args.type else None
            reports = await service.list_reports(report_type)
            rows = [
                {
                    "id": report.id,
                    "title": report.title,
                    "type": report.type.value,
                    "events": len(report.data),
                    "created_at": report.created_at.isoformat(),
                }
                for report in reports
            ]
            print(json.dumps(rows, indent=2))
    except MalformedImport as exc:
        logger.error("Import rejected: %s", exc)
        return 2
    except StoreUnavailable as exc:
        logger.error("Analytics store unavailable: %s", exc)
        return 1
    finally:
        await service.close()
    return 0


def _add_query_arguments(parser: argparse.ArgumentParser, *, with_limit: bool) -> None:
    parser.add_argument("--type", choices=[item.value for item in AnalyticsType], default=None)
    parser.add_argument(
        "--category", choices=[item.value for item in AnalyticsCategory], default=None
    )
    parser.add_argument("--start-date", default=None, help="ISO-8601 lower bound (inclusive).")
    parser.add_argument("--end-date", default=None, help="ISO-8601 upper bound (inclusive).")
    if with_limit:
        parser.add_argument("--limit", type=int, default=None, help="Maximum events to export.")


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect and maintain the analytics store.")
    parser.add_argument(
        "--database-url",
        default=None,
        help="Override ANALYTICS_DATABASE_URL for this invocation.",
    )
    parser.add_argument("--log-level", default=None, help="Override ANALYTICS_LOG_LEVEL.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    stats = subparsers.add_parser("stats", help="Print summary statistics as JSON.")
    _add_query_arguments(stats, with_limit=False)

    export = subparsers.add_parser("export", help="Export matching events as a JSON array.")
    _add_query_arguments(export, with_limit=True)
    export.add_argument("--output", "-o", default=None, help="Write to this file instead of stdout.")

    import_cmd = subparsers.add_parser("import", help="Import events from a JSON array.")
    import_cmd.add_argument("path", help="JSON file to import, or '-' for stdin.")

    subparsers.add_parser("clear", help="Delete every event; reports are kept.")

    reports = subparsers.add_parser("reports", help="List stored reports.")
    reports.add_argument("--type", choices=[item.value for item in ReportType], default=None)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _parser().parse_args(argv)
    configure_logging(args.log_level or get_settings().log_level)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
