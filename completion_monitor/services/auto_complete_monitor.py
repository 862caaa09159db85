"""
Auto-Complete Monitor
Handles jobs cleaners forget to mark complete:
- Sends reminders at configured intervals after the scheduled end
- Auto-completes jobs once the configured hours past scheduled end have elapsed
- Covers single-cleaner appointments and per-cleaner multi-cleaner completions
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import inspect
from sqlalchemy.orm import Session, contains_eager, joinedload

from ..database import SessionLocal
from ..models import Appointment, CleanerJobCompletion
from ..schemas import AutoCompleteConfig
from .auto_complete_config import get_auto_complete_config
from .auto_completion import auto_complete, is_auto_complete_due
from .completion_targets import (
    IN_PROGRESS,
    MultiCleanerTarget,
    SingleCleanerTarget,
    find_first_cleaner,
)
from .reminder_scheduler import get_due_reminder, send_auto_complete_reminder

logger = logging.getLogger(__name__)

OPEN_CLEANER_STATUSES = ["assigned", "started"]


def _single_cleaner_jobs(db: Session):
    return (
        db.query(Appointment)
        .options(joinedload(Appointment.user), joinedload(Appointment.home))
        .filter(
            Appointment.completion_status == IN_PROGRESS,
            Appointment.completed.is_(False),
            Appointment.was_cancelled.is_(False),
            Appointment.has_been_assigned.is_(True),
            Appointment.is_multi_cleaner_job.is_(False),
        )
        .order_by(Appointment.id)
    )


def _multi_cleaner_completions(db: Session):
    return (
        db.query(CleanerJobCompletion)
        .join(CleanerJobCompletion.appointment)
        .options(
            contains_eager(CleanerJobCompletion.appointment),
            joinedload(CleanerJobCompletion.cleaner),
        )
        .filter(
            CleanerJobCompletion.completion_status == IN_PROGRESS,
            CleanerJobCompletion.status.in_(OPEN_CLEANER_STATUSES),
            Appointment.was_cancelled.is_(False),
        )
        .order_by(CleanerJobCompletion.id)
    )


async def _process_records(
    description: str,
    session_factory: Callable[[], Session],
    fetch: Callable,
    handle: Callable,
) -> tuple[int, int]:
    """
    Fetch one population and handle each record in isolation.

    A failing record is rolled back, counted and skipped; it stays eligible
    for the next run.
    """
    processed = 0
    errors = 0

    try:
        db = session_factory()
    except Exception as e:
        logger.error(f"❌ Could not open session for {description}: {e}")
        return processed, errors + 1

    try:
        records = fetch(db)
        logger.info(f"🔍 Found {len(records)} {description}")

        for record in records:
            # Identity key, so an expired row that was deleted does not reload here
            record_id = inspect(record).identity[0]
            try:
                if await handle(db, record):
                    processed += 1
            except Exception as e:
                errors += 1
                db.rollback()
                logger.error(f"❌ Error processing {description} (record {record_id}): {e}")

    except Exception as e:
        errors += 1
        db.rollback()
        logger.error(f"❌ Failed to load {description}: {e}")
    finally:
        db.close()

    return processed, errors


async def process_reminders(
    config: AutoCompleteConfig,
    now: datetime,
    session_factory: Callable[[], Session] = SessionLocal,
) -> dict:
    """Send due reminders for single-cleaner jobs"""

    def fetch(db: Session):
        # In the reminder window: past scheduled end, before the auto-complete deadline
        return (
            _single_cleaner_jobs(db)
            .filter(Appointment.scheduled_end_time < now, Appointment.auto_complete_at > now)
            .all()
        )

    async def handle(db: Session, appointment: Appointment) -> bool:
        target = SingleCleanerTarget(appointment, None)
        reminder_number = get_due_reminder(target, config, now)
        if not reminder_number:
            return False
        target.cleaner = find_first_cleaner(db, appointment)
        return await send_auto_complete_reminder(db, target, reminder_number, config, now)

    sent, errors = await _process_records(
        "single-cleaner jobs to check for reminders", session_factory, fetch, handle
    )
    return {"reminders_sent": sent, "errors": errors}


async def process_multi_cleaner_reminders(
    config: AutoCompleteConfig,
    now: datetime,
    session_factory: Callable[[], Session] = SessionLocal,
) -> dict:
    """Send due reminders to each cleaner on multi-cleaner jobs"""

    def fetch(db: Session):
        return (
            _multi_cleaner_completions(db)
            .filter(
                Appointment.scheduled_end_time < now,
                CleanerJobCompletion.auto_complete_at > now,
            )
            .all()
        )

    async def handle(db: Session, completion: CleanerJobCompletion) -> bool:
        target = MultiCleanerTarget(completion)
        reminder_number = get_due_reminder(target, config, now)
        if not reminder_number:
            return False
        return await send_auto_complete_reminder(db, target, reminder_number, config, now)

    sent, errors = await _process_records(
        "multi-cleaner completions to check for reminders", session_factory, fetch, handle
    )
    return {"reminders_sent": sent, "errors": errors}


async def process_auto_completions(
    config: AutoCompleteConfig,
    now: datetime,
    session_factory: Callable[[], Session] = SessionLocal,
) -> dict:
    """Auto-complete single-cleaner jobs whose deadline has passed"""

    def fetch(db: Session):
        return _single_cleaner_jobs(db).filter(Appointment.auto_complete_at <= now).all()

    async def handle(db: Session, appointment: Appointment) -> bool:
        target = SingleCleanerTarget(appointment, find_first_cleaner(db, appointment))
        if not is_auto_complete_due(target, now):
            return False
        return await auto_complete(db, target, config, now)

    completed, errors = await _process_records(
        "single-cleaner jobs to auto-complete", session_factory, fetch, handle
    )
    return {"auto_completed": completed, "errors": errors}


async def process_multi_cleaner_auto_completions(
    config: AutoCompleteConfig,
    now: datetime,
    session_factory: Callable[[], Session] = SessionLocal,
) -> dict:
    """Auto-complete each overdue cleaner's share of multi-cleaner jobs"""

    def fetch(db: Session):
        return (
            _multi_cleaner_completions(db)
            .filter(CleanerJobCompletion.auto_complete_at <= now)
            .all()
        )

    async def handle(db: Session, completion: CleanerJobCompletion) -> bool:
        target = MultiCleanerTarget(completion)
        if not is_auto_complete_due(target, now):
            return False
        return await auto_complete(db, target, config, now)

    completed, errors = await _process_records(
        "multi-cleaner completions to auto-complete", session_factory, fetch, handle
    )
    return {"auto_completed": completed, "errors": errors}


def load_config(session_factory: Callable[[], Session] = SessionLocal) -> AutoCompleteConfig:
    """Read the config once per run; any failure means defaults"""
    try:
        db = session_factory()
    except Exception as e:
        logger.warning(f"⚠️ Could not open session for auto-complete config, using defaults: {e}")
        return AutoCompleteConfig()

    try:
        return get_auto_complete_config(db)
    finally:
        db.close()


async def run_auto_complete_monitor(
    now: Optional[datetime] = None,
    session_factory: Callable[[], Session] = SessionLocal,
) -> dict:
    """
    Run all auto-complete monitoring tasks once.

    Reminders are evaluated before completions. Their eligibility windows do
    not overlap (deadline still ahead vs. reached), so a record gets at most
    one of the two per run. Never raises; failures are counted in the summary.

    Returns:
        dict: Summary of reminders sent, auto-completions and errors
    """
    now = now or datetime.now()
    logger.info("🚀 Starting auto-complete monitoring...")

    config = load_config(session_factory)

    reminder_results, multi_reminder_results = await asyncio.gather(
        process_reminders(config, now, session_factory),
        process_multi_cleaner_reminders(config, now, session_factory),
    )
    completion_results, multi_completion_results = await asyncio.gather(
        process_auto_completions(config, now, session_factory),
        process_multi_cleaner_auto_completions(config, now, session_factory),
    )

    summary = {
        "reminders": {
            "single_cleaner": reminder_results,
            "multi_cleaner": multi_reminder_results,
            "total": reminder_results["reminders_sent"] + multi_reminder_results["reminders_sent"],
        },
        "auto_completions": {
            "single_cleaner": completion_results,
            "multi_cleaner": multi_completion_results,
            "total": completion_results["auto_completed"] + multi_completion_results["auto_completed"],
        },
        "errors": sum(
            result["errors"]
            for result in (
                reminder_results,
                multi_reminder_results,
                completion_results,
                multi_completion_results,
            )
        ),
        "timestamp": now.isoformat(),
    }
    summary["reminders_sent"] = summary["reminders"]["total"]
    summary["auto_completed"] = summary["auto_completions"]["total"]

    logger.info(
        f"📊 Auto-complete monitor completed. Reminders: {summary['reminders_sent']}, "
        f"Auto-completions: {summary['auto_completed']}, Errors: {summary['errors']}"
    )
    return summary
