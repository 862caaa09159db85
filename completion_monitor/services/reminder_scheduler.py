"""
Auto-complete reminders
Decides which reminder a cleaner is due once their job's window has ended,
and sends it at most once per reminder number
"""

import logging
from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from ..schemas import AutoCompleteConfig
from .completion_targets import IN_PROGRESS, CompletionTarget
from .notification_service import send_auto_complete_reminder_notification

logger = logging.getLogger(__name__)


def get_reminder_number(minutes_passed: int, intervals: List[int]) -> int:
    """
    Get the most advanced reminder whose interval has been reached

    Args:
        minutes_passed: Minutes since scheduled end
        intervals: Ascending reminder intervals in minutes

    Returns:
        1-based reminder number, or 0 if no reminder is due yet
    """
    for i in range(len(intervals) - 1, -1, -1):
        if minutes_passed >= intervals[i]:
            return i + 1
    return 0


def get_minutes_until_auto_complete(auto_complete_at: datetime, now: datetime) -> int:
    remaining = (auto_complete_at - now).total_seconds()
    return max(0, int(remaining // 60))


def format_time_remaining(minutes: int) -> str:
    """Human-readable duration like '2 hours 30 minutes'"""
    hours, mins = divmod(max(0, minutes), 60)
    parts = []
    if hours:
        parts.append(f"{hours} hour{'s' if hours != 1 else ''}")
    if mins or not hours:
        parts.append(f"{mins} minute{'s' if mins != 1 else ''}")
    return " ".join(parts)


def get_in_app_reminder_message(
    reminder_number: int, date: str, minutes_left: int, total_reminders: int
) -> str:
    """Reminder copy escalates with the reminder number; the last one is the final warning"""
    remaining = format_time_remaining(minutes_left)
    if reminder_number >= total_reminders:
        return f"FINAL REMINDER: Your job on {date} will auto-complete in {remaining}."

    messages = {
        1: f"Don't forget to mark your job on {date} complete! It will auto-complete in {remaining}.",
        2: f"Your job on {date} will auto-complete in {remaining}. Please mark it complete.",
        3: f"{remaining} remaining to mark your job on {date} complete.",
        4: f"Only {remaining} left! Please mark your job on {date} complete now.",
    }
    return messages.get(reminder_number, messages[4])


def get_due_reminder(target: CompletionTarget, config: AutoCompleteConfig, now: datetime) -> int:
    """
    Reminder number newly due for this record, or 0.

    Only the single most advanced reminder is returned, so a monitor that was
    down across several intervals sends one reminder, not a backlog.
    """
    if target.completion_status != IN_PROGRESS:
        return 0

    auto_complete_at = target.auto_complete_at
    if auto_complete_at is None or now >= auto_complete_at:
        return 0

    minutes_passed = int((now - target.scheduled_end_time).total_seconds() // 60)
    if minutes_passed < 0:
        return 0

    expected = get_reminder_number(minutes_passed, config.reminder_intervals)
    if expected > target.reminders_sent:
        return expected
    return 0


async def send_auto_complete_reminder(
    db: Session,
    target: CompletionTarget,
    reminder_number: int,
    config: AutoCompleteConfig,
    now: datetime,
) -> bool:
    """
    Record the reminder and notify the cleaner.

    The counter is written first with a guard on its previous value, so two
    overlapping runs cannot both send the same reminder. Notification failures
    are logged and never undo the recorded reminder.

    Returns:
        True if this call recorded the reminder
    """
    cleaner = target.cleaner
    if not cleaner:
        logger.warning(f"⚠️ No cleaner found for {target.label}, skipping reminder")
        return False

    auto_complete_at = target.auto_complete_at
    appointment_id = target.appointment.id
    appointment_date = target.date
    home_address = target.home_address

    model = type(target.record)
    claimed = target.guarded_update(
        db,
        [
            model.completion_status == IN_PROGRESS,
            model.auto_complete_reminders_sent < reminder_number,
        ],
        {"auto_complete_reminders_sent": reminder_number, "last_reminder_sent_at": now},
    )
    if not claimed:
        logger.info(f"⏭️ Reminder #{reminder_number} for {target.label} already recorded, skipping")
        return False

    minutes_left = get_minutes_until_auto_complete(auto_complete_at, now)
    total_reminders = len(config.reminder_intervals)

    try:
        await send_auto_complete_reminder_notification(
            db=db,
            cleaner=cleaner,
            appointment_id=appointment_id,
            appointment_date=appointment_date,
            home_address=home_address,
            message=get_in_app_reminder_message(
                reminder_number, appointment_date, minutes_left, total_reminders
            ),
            time_remaining=format_time_remaining(minutes_left),
            is_final=reminder_number >= total_reminders,
        )
    except Exception as e:
        logger.error(f"❌ Reminder #{reminder_number} recorded for {target.label} but delivery failed: {e}")

    logger.info(f"🔔 Sent reminder #{reminder_number} for {target.label} to cleaner {cleaner.id}")
    return True
