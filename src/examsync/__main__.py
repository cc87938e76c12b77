"""
Main entrypoint: runs the sync scheduler, or a single sync on demand.

FastAPI runs separately under uvicorn (for the manual trigger endpoints).

Usage:
    python -m examsync                          # starts the scheduler
    python -m examsync exam-halls               # one facility sync
    python -m examsync hall-rooms 12            # rooms of one hall
    python -m examsync participants 2025-06-01  # one exam date
    python -m examsync window --days 3          # participant window
    python -m examsync status                   # latest run per type
    uvicorn examsync.api.main:app --host 0.0.0.0 --port 8000  # starts API
"""
import argparse
import asyncio
import logging
from datetime import date

from examsync.config import get_settings

logger = logging.getLogger(__name__)


def _describe(log) -> str:
    if log is None:
        return "never run"
    text = (
        f"#{log.id} {log.sync_type.value} {log.status.value}: "
        f"{log.records_created} created, {log.records_updated} updated, "
        f"{log.records_errored} errored"
    )
    if log.error_message:
        text += f" ({log.error_message})"
    return text


async def _run_scheduler(service) -> None:
    from examsync.scheduler.jobs import build_scheduler

    settings = get_settings()
    scheduler = build_scheduler(service)
    scheduler.start()
    logger.info(
        "Scheduler started (exam halls '%s', participants '%s' UTC)",
        settings.exam_halls_sync_cron,
        settings.participants_sync_cron,
    )
    try:
        await asyncio.Event().wait()
    except (KeyboardInterrupt, SystemExit, asyncio.CancelledError):
        logger.info("Shutting down...")
    finally:
        scheduler.shutdown()


async def _run(args) -> int:
    from examsync.bootstrap import build_sync_service

    service = build_sync_service()
    try:
        if args.command in (None, "scheduler"):
            await _run_scheduler(service)
        elif args.command == "exam-halls":
            print(_describe(await service.run_facility_sync()))
        elif args.command == "hall-rooms":
            print(_describe(await service.run_hall_rooms_sync(args.hall_id)))
        elif args.command == "participants":
            print(_describe(await service.run_participant_sync(args.exam_date)))
        elif args.command == "window":
            logs = await service.run_participant_sync_window(args.days)
            for log in logs:
                print(_describe(log) if log else "failed (see log)")
            if any(log is None for log in logs):
                return 1
        elif args.command == "status":
            for sync_type, log in service.get_sync_status().items():
                print(f"{sync_type.value}: {_describe(log)}")
    finally:
        await service.client.close()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="examsync", description="Exam hall mirror synchronization"
    )
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("scheduler", help="Run the cron scheduler (default)")
    sub.add_parser("exam-halls", help="Sync all exam halls and their rooms")
    rooms = sub.add_parser("hall-rooms", help="Sync the rooms of one hall")
    rooms.add_argument("hall_id", type=int)
    participants = sub.add_parser("participants", help="Sync participants for a date")
    participants.add_argument("exam_date", type=date.fromisoformat)
    window = sub.add_parser("window", help="Sync participants for upcoming days")
    window.add_argument(
        "--days",
        type=int,
        default=get_settings().participants_window_days,
        help="Number of days starting today (default: from settings)",
    )
    sub.add_parser("status", help="Show the latest run of each sync type")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except Exception as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
